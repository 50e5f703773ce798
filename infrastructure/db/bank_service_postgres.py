from __future__ import annotations

import logging
from typing import List

import psycopg2

from domain.bank_service import BankService
from domain.models import MAX_AMOUNT, Account, Card

lg = logging.getLogger(__name__)


class PostgresBankService(BankService):
    """
    Postgres-backed implementation of `BankService`.

    Uses the same `cards` / `accounts` layout as `SqliteBankService` so that
    a deployment can move from one backend to the other without changing
    the application layer.
    """

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_tables()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_tables(self) -> None:
        """
        Ensure that the `cards` and `accounts` tables exist.

        Schema (minimal):
          - cards(card_number TEXT PK, pin TEXT)
          - accounts(id TEXT PK, card_number TEXT FK, balance BIGINT)
        """

        with self._get_connection() as conn:
            with conn.cursor() as cur:
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
                        balance BIGINT NOT NULL DEFAULT 0
                    )
                    """
                )
                conn.commit()

    def add_card(self, card: Card, pin: str) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO cards (card_number, pin)
                    VALUES (%s, %s)
                    ON CONFLICT (card_number) DO UPDATE SET pin = EXCLUDED.pin
                    """,
                    (card.card_number, pin),
                )
                conn.commit()

    def add_account(self, card: Card, account: Account) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO accounts (id, card_number, balance)
                    VALUES (%s, %s, %s)
                    ON CONFLICT (id) DO NOTHING
                    """,
                    (account.account_id, card.card_number, account.balance),
                )
                conn.commit()

    def verify_pin(self, card: Card, pin: str) -> bool:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT pin FROM cards WHERE card_number = %s",
                    (card.card_number,),
                )
                row = cur.fetchone()
                return row is not None and row[0] == pin

    def get_accounts(self, card: Card) -> List[Account]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, balance
                    FROM accounts
                    WHERE card_number = %s
                    ORDER BY id
                    """,
                    (card.card_number,),
                )
                rows = cur.fetchall()
                return [
                    Account(account_id=str(row[0]), balance=int(row[1]))
                    for row in rows
                ]

    def get_balance(self, account_id: str) -> int:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT balance FROM accounts WHERE id = %s", (account_id,))
                row = cur.fetchone()
                if not row:
                    raise KeyError(f"Unknown account: {account_id}")
                return int(row[0])

    def deposit(self, account_id: str, amount: int) -> bool:
        if amount <= 0 or amount > MAX_AMOUNT:
            return False

        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE accounts
                    SET balance = balance + %s
                    WHERE id = %s AND balance <= %s - %s
                    """,
                    (amount, account_id, MAX_AMOUNT, amount),
                )
                success = cur.rowcount == 1
                conn.commit()

        lg.debug("deposit %s into %s: %s", amount, account_id, success)
        return success

    def withdraw(self, account_id: str, amount: int) -> bool:
        if amount <= 0 or amount > MAX_AMOUNT:
            return False

        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE accounts
                    SET balance = balance - %s
                    WHERE id = %s AND balance >= %s
                    """,
                    (amount, account_id, amount),
                )
                success = cur.rowcount == 1
                conn.commit()

        lg.debug("withdraw %s from %s: %s", amount, account_id, success)
        return success
