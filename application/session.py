from __future__ import annotations

import enum
import logging
from dataclasses import replace
from typing import List, Optional

from domain.bank_service import BankService
from domain.errors import InvalidArgument, InvalidState
from domain.models import Account, Card

lg = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"  # waiting for a card
    CARD_INSERTED = "card_inserted"
    PIN_VERIFIED = "pin_verified"
    ACCOUNT_SELECTED = "account_selected"


_AUTHENTICATED = (SessionState.PIN_VERIFIED, SessionState.ACCOUNT_SELECTED)


class SessionController:
    """
    Drives a single ATM session against a `BankService`.

    The controller only enforces ordering: card and PIN first, then an
    account, then balance/deposit/withdraw. Everything the bank decides
    (PIN correctness, account ownership, available funds) is left to the
    bank service.

    One instance is one session and is not safe to share between threads.
    """

    def __init__(self, bank_service: Optional[BankService]) -> None:
        if bank_service is None:
            raise InvalidArgument("Bank service cannot be null")

        self._bank_service = bank_service
        self._state = SessionState.IDLE
        self._card: Optional[Card] = None
        self._account = Account(account_id="", balance=0)

    @property
    def state(self) -> SessionState:
        return self._state

    def _set_state(self, state: SessionState) -> None:
        lg.debug("session state %s -> %s", self._state.name, state.name)
        self._state = state

    def _require(self, allowed, message: str) -> None:
        if self._state not in allowed:
            lg.info("rejected in state %s: %s", self._state.name, message)
            raise InvalidState(message)

    def insert_card_and_verify_pin(self, card: Card, pin: str) -> bool:
        """
        Start a new session with `card` and check `pin` against the bank.

        Any previous session on this controller is discarded first, even if
        the new PIN turns out to be wrong.
        """

        self._set_state(SessionState.CARD_INSERTED)
        self._card = card
        self._account = Account(account_id="", balance=0)

        if self._bank_service.verify_pin(card, pin):
            self._set_state(SessionState.PIN_VERIFIED)
            return True

        self._set_state(SessionState.IDLE)
        return False

    def eject_card(self) -> None:
        """End the session: forget the card and account and go back to IDLE."""

        self._card = None
        self._account = Account(account_id="", balance=0)
        self._set_state(SessionState.IDLE)

    def get_accounts(self) -> List[Account]:
        """Return the accounts of the inserted card, as listed by the bank."""

        self._require(_AUTHENTICATED, "PIN not verified. Cannot get accounts")
        return self._bank_service.get_accounts(self._card)

    def select_account(self, account: Account) -> None:
        # Ownership is not checked here; the bank rejects foreign accounts.
        self._require(_AUTHENTICATED, "PIN not verified. Cannot select account")
        self._account = replace(account)
        self._set_state(SessionState.ACCOUNT_SELECTED)

    def get_selected_account(self) -> Account:
        return replace(self._account)

    def see_balance(self) -> int:
        """Refresh the selected account's balance from the bank and return it."""

        self._require(
            (SessionState.ACCOUNT_SELECTED,),
            "Account not selected. Cannot check balance.",
        )
        self._account.balance = self._bank_service.get_balance(
            self._account.account_id
        )
        return self._account.balance

    def deposit(self, amount: int) -> bool:
        """
        Deposit `amount` into the selected account.

        Returns False without asking the bank when `amount` is not positive.
        On success the cached balance is bumped locally, not re-read.
        """

        self._require(
            (SessionState.ACCOUNT_SELECTED,),
            "Account not selected. Cannot deposit.",
        )
        if amount <= 0:
            return False

        success = self._bank_service.deposit(self._account.account_id, amount)
        if success:
            self._account.balance += amount
        return success

    def withdraw(self, amount: int) -> bool:
        """
        Withdraw `amount` from the selected account.

        Same rules as `deposit`. Whether the funds are sufficient is up to
        the bank; no local balance check is made.
        """

        self._require(
            (SessionState.ACCOUNT_SELECTED,),
            "Account not selected. Cannot withdraw.",
        )
        if amount <= 0:
            return False

        success = self._bank_service.withdraw(self._account.account_id, amount)
        if success:
            self._account.balance -= amount
        return success
