from __future__ import annotations

import logging
import sqlite3
from typing import List

from domain.bank_service import BankService
from domain.models import MAX_AMOUNT, Account, Card

lg = logging.getLogger(__name__)


class SqliteBankService(BankService):
    """
    SQLite-backed implementation of `BankService`.

    Owns two tables:
      - `cards`: card numbers and the PIN on file for each card.
      - `accounts`: accounts linked to a card, with their balance.

    It is self-initialising: the tables are created if needed. PINs are
    stored as given; protecting them is the job of a real bank backend.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_tables()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_tables(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS cards (
                    card_number TEXT PRIMARY KEY,
                    pin TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    card_number TEXT NOT NULL REFERENCES cards (card_number),
                    balance INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> Account:
        return Account(account_id=str(row[0]), balance=int(row[1]))

    # Provisioning helpers; not part of the `BankService` contract.

    def add_card(self, card: Card, pin: str) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "INSERT OR REPLACE INTO cards (card_number, pin) VALUES (?, ?)",
                (card.card_number, pin),
            )
            conn.commit()

    def add_account(self, card: Card, account: Account) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT OR IGNORE INTO accounts (id, card_number, balance)
                VALUES (?, ?, ?)
                """,
                (account.account_id, card.card_number, account.balance),
            )
            conn.commit()

    def verify_pin(self, card: Card, pin: str) -> bool:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT pin FROM cards WHERE card_number = ?",
                (card.card_number,),
            )
            row = cur.fetchone()
            return row is not None and row[0] == pin

    def get_accounts(self, card: Card) -> List[Account]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT id, balance FROM accounts WHERE card_number = ? ORDER BY id",
                (card.card_number,),
            )
            rows = cur.fetchall()
            return [self._to_domain(row) for row in rows]

    def get_balance(self, account_id: str) -> int:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT balance FROM accounts WHERE id = ?", (account_id,))
            row = cur.fetchone()
            if not row:
                raise KeyError(f"Unknown account: {account_id}")
            return int(row[0])

    def deposit(self, account_id: str, amount: int) -> bool:
        if amount <= 0 or amount > MAX_AMOUNT:
            return False

        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE accounts
                SET balance = balance + ?
                WHERE id = ? AND balance <= ? - ?
                """,
                (amount, account_id, MAX_AMOUNT, amount),
            )
            conn.commit()
            success = cur.rowcount == 1

        lg.debug("deposit %s into %s: %s", amount, account_id, success)
        return success

    def withdraw(self, account_id: str, amount: int) -> bool:
        if amount <= 0 or amount > MAX_AMOUNT:
            return False

        # The balance check and the debit happen in one statement.
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE accounts
                SET balance = balance - ?
                WHERE id = ? AND balance >= ?
                """,
                (amount, account_id, amount),
            )
            conn.commit()
            success = cur.rowcount == 1

        lg.debug("withdraw %s from %s: %s", amount, account_id, success)
        return success
