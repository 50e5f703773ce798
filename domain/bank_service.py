from __future__ import annotations

from typing import List, Protocol

from .models import Account, Card


class BankService(Protocol):
    """
    Abstraction over the bank the ATM talks to.

    Implementations are responsible for:
    - Checking PINs against whatever the bank keeps on file.
    - Deciding whether a deposit or withdrawal is allowed (funds, limits).
    - Hiding any network / SQL / driver details from the application layer.
    """

    def verify_pin(self, card: Card, pin: str) -> bool:
        """Return True iff `pin` is the PIN on file for `card`."""

        ...

    def get_accounts(self, card: Card) -> List[Account]:
        """Return every account linked to `card`."""

        ...

    def get_balance(self, account_id: str) -> int:
        """Return the authoritative balance of the account."""

        ...

    def deposit(self, account_id: str, amount: int) -> bool:
        """Credit `amount` to the account. Return True iff it succeeded."""

        ...

    def withdraw(self, account_id: str, amount: int) -> bool:
        """
        Debit `amount` from the account.

        Return True iff the debit went through; implementations decide
        whether the account may go below zero.
        """

        ...
