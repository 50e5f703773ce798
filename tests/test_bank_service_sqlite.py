import os
import tempfile
import unittest

from application.session import SessionController
from application.services import deposit_cash
from domain.models import MAX_AMOUNT, Account, Card
from infrastructure.db.bank_service_sqlite import SqliteBankService


class SqliteBankServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self._tmpdir.name, "atm.db")
        self.bank = SqliteBankService(self.db_path)

        self.card = Card("1234")
        self.bank.add_card(self.card, "1234")
        self.bank.add_account(self.card, Account("ACCT-002", 500))
        self.bank.add_account(self.card, Account("ACCT-001", 100))

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_verify_pin(self):
        self.assertTrue(self.bank.verify_pin(self.card, "1234"))
        self.assertFalse(self.bank.verify_pin(self.card, "9999"))
        self.assertFalse(self.bank.verify_pin(Card("0000"), "1234"))

    def test_get_accounts_for_card(self):
        self.assertEqual(
            self.bank.get_accounts(self.card),
            [Account("ACCT-001", 100), Account("ACCT-002", 500)],
        )
        self.assertEqual(self.bank.get_accounts(Card("0000")), [])

    def test_get_balance(self):
        self.assertEqual(self.bank.get_balance("ACCT-002"), 500)
        with self.assertRaises(KeyError):
            self.bank.get_balance("ACCT-999")

    def test_deposit(self):
        self.assertTrue(self.bank.deposit("ACCT-001", 50))
        self.assertEqual(self.bank.get_balance("ACCT-001"), 150)
        self.assertFalse(self.bank.deposit("ACCT-999", 50))
        self.assertFalse(self.bank.deposit("ACCT-001", 0))

    def test_withdraw_checks_funds(self):
        self.assertFalse(self.bank.withdraw("ACCT-001", 200))
        self.assertEqual(self.bank.get_balance("ACCT-001"), 100)

        self.assertTrue(self.bank.withdraw("ACCT-001", 100))
        self.assertEqual(self.bank.get_balance("ACCT-001"), 0)
        self.assertFalse(self.bank.withdraw("ACCT-999", 1))

    def test_amounts_beyond_storage_range_are_rejected(self):
        self.assertFalse(self.bank.deposit("ACCT-001", 10**20))
        self.assertFalse(self.bank.withdraw("ACCT-001", 10**20))
        self.assertEqual(self.bank.get_balance("ACCT-001"), 100)

    def test_deposit_never_overflows_balance(self):
        self.bank.add_account(self.card, Account("ACCT-BIG", MAX_AMOUNT - 5))

        self.assertFalse(self.bank.deposit("ACCT-BIG", 10))
        self.assertEqual(self.bank.get_balance("ACCT-BIG"), MAX_AMOUNT - 5)
        self.assertTrue(self.bank.deposit("ACCT-BIG", 5))
        self.assertEqual(self.bank.get_balance("ACCT-BIG"), MAX_AMOUNT)

    def test_huge_deposit_through_session_is_refused(self):
        controller = SessionController(self.bank)
        controller.insert_card_and_verify_pin(self.card, "1234")
        controller.select_account(Account("ACCT-001", 100))

        result = deposit_cash(controller, 10**20)
        self.assertFalse(result.success)
        self.assertEqual(result.error_message, "Amount is too large.")
        self.assertEqual(self.bank.get_balance("ACCT-001"), 100)

    def test_tables_survive_reopening(self):
        reopened = SqliteBankService(self.db_path)
        self.assertTrue(reopened.verify_pin(self.card, "1234"))
        self.assertEqual(len(reopened.get_accounts(self.card)), 2)

    def test_session_against_sqlite(self):
        controller = SessionController(self.bank)
        self.assertTrue(controller.insert_card_and_verify_pin(self.card, "1234"))

        account = controller.get_accounts()[0]
        controller.select_account(account)
        self.assertEqual(controller.see_balance(), 100)
        self.assertTrue(controller.deposit(50))
        self.assertTrue(controller.withdraw(30))
        self.assertFalse(controller.withdraw(1000))

        self.assertEqual(controller.get_selected_account().balance, 120)
        self.assertEqual(self.bank.get_balance("ACCT-001"), 120)


if __name__ == "__main__":
    unittest.main()
