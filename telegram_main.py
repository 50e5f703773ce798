import logging

from dotenv import load_dotenv

from application.services import SessionRegistry
from infrastructure.config import configure_logging, create_bank_service, load_settings
from interfaces.telegram.handlers import create_telegram_bot


load_dotenv()

lg = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    configure_logging(settings)

    if not settings.telegram_token:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    sessions = SessionRegistry(create_bank_service(settings))

    bot = create_telegram_bot(settings.telegram_token, sessions)
    lg.info("Telegram bot polling")
    bot.infinity_polling()


if __name__ == "__main__":
    main()
