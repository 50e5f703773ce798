import os
import tempfile
import unittest

from infrastructure.config import Settings, create_bank_service, load_settings
from infrastructure.db.bank_service_sqlite import SqliteBankService


class LoadSettingsTests(unittest.TestCase):
    def test_defaults(self):
        settings = load_settings({})
        self.assertEqual(settings.bank_backend, "sqlite")
        self.assertEqual(settings.db_path, "atm.db")
        self.assertEqual(settings.pg_params, {})
        self.assertEqual(settings.log_level, "INFO")
        self.assertIsNone(settings.telegram_token)

    def test_postgres_params(self):
        settings = load_settings(
            {
                "BANK_BACKEND": "Postgres",
                "PGHOST": "db",
                "PGDATABASE": "atm",
                "PGUSER": "atm",
                "PGPASSWORD": "",
                "LOG_LEVEL": "debug",
            }
        )
        self.assertEqual(settings.bank_backend, "postgres")
        self.assertEqual(settings.pg_params, {"host": "db", "dbname": "atm", "user": "atm"})
        self.assertEqual(settings.log_level, "DEBUG")

    def test_unknown_backend(self):
        with self.assertRaises(RuntimeError):
            load_settings({"BANK_BACKEND": "mongo"})

    def test_create_sqlite_bank_service(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = Settings(db_path=os.path.join(tmpdir, "atm.db"))
            self.assertIsInstance(create_bank_service(settings), SqliteBankService)


if __name__ == "__main__":
    unittest.main()
