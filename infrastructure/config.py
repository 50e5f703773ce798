from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from domain.bank_service import BankService

lg = logging.getLogger(__name__)

_PG_KEYS = {
    "PGHOST": "host",
    "PGPORT": "port",
    "PGDATABASE": "dbname",
    "PGUSER": "user",
    "PGPASSWORD": "password",
}


@dataclass
class Settings:
    """Runtime settings read from the environment (or a `.env` file)."""

    bank_backend: str = "sqlite"
    db_path: str = "atm.db"
    pg_params: dict = field(default_factory=dict)
    log_level: str = "INFO"
    telegram_token: Optional[str] = None
    discord_token: Optional[str] = None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    backend = env.get("BANK_BACKEND", "sqlite").strip().lower()
    if backend not in ("sqlite", "postgres"):
        raise RuntimeError(f"Unsupported BANK_BACKEND: {backend}")

    return Settings(
        bank_backend=backend,
        db_path=env.get("DB_PATH", "atm.db"),
        pg_params={
            param: env[key] for key, param in _PG_KEYS.items() if env.get(key)
        },
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        telegram_token=env.get("TELEGRAM_TOKEN"),
        discord_token=env.get("DISCORD_TOKEN"),
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(levelname)-8s %(name)s: %(message)s",
    )


def create_bank_service(settings: Settings) -> BankService:
    """Build the `BankService` selected by `settings.bank_backend`."""

    if settings.bank_backend == "postgres":
        # Imported lazily so that SQLite deployments don't need a driver.
        from infrastructure.db.bank_service_postgres import PostgresBankService

        lg.info("using Postgres bank backend")
        return PostgresBankService(settings.pg_params)

    from infrastructure.db.bank_service_sqlite import SqliteBankService

    lg.info("using SQLite bank backend at %s", settings.db_path)
    return SqliteBankService(settings.db_path)
