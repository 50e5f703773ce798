from dotenv import load_dotenv

from application.services import SessionRegistry
from infrastructure.config import configure_logging, create_bank_service, load_settings
from interfaces.discord.handlers import create_discord_bot


load_dotenv()


def main() -> None:
    settings = load_settings()
    configure_logging(settings)

    if not settings.discord_token:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    sessions = SessionRegistry(create_bank_service(settings))

    bot = create_discord_bot(sessions)
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
