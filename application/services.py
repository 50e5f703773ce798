from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator, List, Optional, Tuple

from application.session import SessionController
from domain.bank_service import BankService
from domain.errors import InvalidState
from domain.models import MAX_AMOUNT, Account, Card

lg = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Generic result type for simple operations."""

    success: bool
    error_message: Optional[str] = None
    balance: Optional[int] = None


@dataclass
class AccountListResult:
    """Result of listing the accounts of the inserted card."""

    success: bool
    error_message: Optional[str] = None
    accounts: List[Account] = field(default_factory=list)


class SessionRegistry:
    """
    Keeps one `SessionController` per external session key.

    Chat front-ends serve many users at once; each user gets their own
    controller so that sessions never share state. Keys are opaque to the
    registry, e.g. ``("telegram", user_id)``.

    Front-ends that handle updates on several threads must drive a
    controller through `use`, which serialises calls per session.
    """

    def __init__(self, bank_service: BankService) -> None:
        self._bank_service = bank_service
        self._lock = threading.Lock()
        self._sessions: Dict[Hashable, Tuple[SessionController, threading.Lock]] = {}

    def _entry(self, key: Hashable) -> Tuple[SessionController, threading.Lock]:
        with self._lock:
            entry = self._sessions.get(key)
            if entry is None:
                entry = (SessionController(self._bank_service), threading.Lock())
                self._sessions[key] = entry
                lg.debug("opened session %r", key)
            return entry

    def get(self, key: Hashable) -> SessionController:
        return self._entry(key)[0]

    @contextmanager
    def use(self, key: Hashable) -> Iterator[SessionController]:
        """Yield the controller for `key` while holding its session lock."""

        controller, session_lock = self._entry(key)
        with session_lock:
            yield controller

    def end(self, key: Hashable) -> bool:
        """Forget the session for `key`. Return True if there was one."""

        with self._lock:
            return self._sessions.pop(key, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def _validate_positive_amount(amount: int) -> Optional[str]:
    if amount <= 0:
        return "Amount must be greater than zero."
    return None


def validate_amount_range(amount: int) -> Optional[str]:
    """Reject amounts that no bank backend can store."""

    if abs(amount) > MAX_AMOUNT:
        return "Amount is too large."
    return None


def start_session(
    controller: SessionController,
    card_number: str,
    pin: str,
) -> OperationResult:
    """Insert the card and check the PIN."""

    card_number = card_number.strip()
    if not card_number:
        # A blank read still ends whatever session was running.
        controller.eject_card()
        return OperationResult(success=False, error_message="Card number is required.")

    if not controller.insert_card_and_verify_pin(Card(card_number), pin):
        return OperationResult(success=False, error_message="Invalid PIN.")
    return OperationResult(success=True)


def list_accounts(controller: SessionController) -> AccountListResult:
    try:
        accounts = controller.get_accounts()
    except InvalidState as exc:
        return AccountListResult(success=False, error_message=str(exc))

    if not accounts:
        return AccountListResult(
            success=False,
            error_message="No accounts are linked to this card.",
        )
    return AccountListResult(success=True, accounts=list(accounts))


def choose_account(controller: SessionController, account_id: str) -> OperationResult:
    """
    Select the account with `account_id` among the card's accounts.

    Front-ends only ever carry the account ID around (in a button or a
    command argument), so the account is looked up again here.
    """

    listing = list_accounts(controller)
    if not listing.success:
        return OperationResult(success=False, error_message=listing.error_message)

    for account in listing.accounts:
        if account.account_id == account_id:
            controller.select_account(account)
            return OperationResult(success=True, balance=account.balance)

    return OperationResult(
        success=False,
        error_message=f"Unknown account: {account_id}",
    )


def check_balance(controller: SessionController) -> OperationResult:
    try:
        balance = controller.see_balance()
    except InvalidState as exc:
        return OperationResult(success=False, error_message=str(exc))
    return OperationResult(success=True, balance=balance)


def deposit_cash(controller: SessionController, amount: int) -> OperationResult:
    """
    Deposit into the selected account.

    The controller is still asked first for non-positive amounts so that a
    missing account selection is reported before a bad amount.
    """

    error = validate_amount_range(amount)
    if error:
        return OperationResult(success=False, error_message=error)

    try:
        success = controller.deposit(amount)
    except InvalidState as exc:
        return OperationResult(success=False, error_message=str(exc))

    if not success:
        error = _validate_positive_amount(amount) or "Deposit was rejected by the bank."
        return OperationResult(success=False, error_message=error)

    return OperationResult(
        success=True,
        balance=controller.get_selected_account().balance,
    )


def withdraw_cash(controller: SessionController, amount: int) -> OperationResult:
    """Withdraw from the selected account. Same semantics as `deposit_cash`."""

    error = validate_amount_range(amount)
    if error:
        return OperationResult(success=False, error_message=error)

    try:
        success = controller.withdraw(amount)
    except InvalidState as exc:
        return OperationResult(success=False, error_message=str(exc))

    if not success:
        error = (
            _validate_positive_amount(amount)
            or "Withdrawal was rejected by the bank."
        )
        return OperationResult(success=False, error_message=error)

    return OperationResult(
        success=True,
        balance=controller.get_selected_account().balance,
    )
