from __future__ import annotations

import logging

import discord
from discord.ext import commands

from application.services import (
    SessionRegistry,
    check_balance,
    choose_account,
    deposit_cash,
    list_accounts,
    start_session,
    withdraw_cash,
)

lg = logging.getLogger(__name__)


def _session_key(user: discord.abc.User) -> tuple:
    # Sessions follow the user, not the channel, so a card inserted in a DM
    # can't be used by someone else in a shared channel.
    return ("discord", user.id)


def create_discord_bot(sessions: SessionRegistry) -> commands.Bot:
    """
    Configure and return a Discord bot with behaviour analogous to
    the Telegram interface: insert a card, pick an account, then check the
    balance, deposit or withdraw.
    """

    intents = discord.Intents.default()
    intents.message_content = True

    # Disable the default help command so we can provide our own `!help`.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    @bot.event
    async def on_ready():
        lg.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.command(name="start")
    async def start_cmd(ctx: commands.Context):
        await ctx.send(
            "Welcome to the ATM bot (Discord)!\n"
            "DM me !card <number> <pin> to insert your card.\n"
            "Type !help to see available commands."
        )

    @bot.command(name="help")
    async def help_cmd(ctx: commands.Context):
        await ctx.send(
            "!card <number> <pin>       - insert a card and enter its PIN\n"
            "!accounts                  - list the card's accounts\n"
            "!select <account>          - choose an account\n"
            "!balance                   - show the selected account's balance\n"
            "!deposit <amount>          - deposit into the selected account\n"
            "!withdraw <amount>         - withdraw from the selected account\n"
            "!end                       - finish the session\n"
        )

    @bot.command(name="card")
    async def card_cmd(ctx: commands.Context, card_number: str, pin: str):
        if ctx.guild is not None:
            # Never keep a PIN visible in a shared channel.
            try:
                await ctx.message.delete()
            except discord.HTTPException as exc:
                lg.warning("could not delete PIN message: %s", exc)

        with sessions.use(_session_key(ctx.author)) as controller:
            result = start_session(controller, card_number, pin)
        if not result.success:
            await ctx.send(result.error_message or "Card was rejected.")
            return

        await ctx.send("PIN accepted. Use !accounts and !select <account>.")

    @bot.command(name="accounts")
    async def accounts_cmd(ctx: commands.Context):
        with sessions.use(_session_key(ctx.author)) as controller:
            result = list_accounts(controller)
        if not result.success:
            await ctx.send(result.error_message)
            return

        lines = [f"{a.account_id}: {a.balance}" for a in result.accounts]
        await ctx.send("\n".join(lines))

    @bot.command(name="select")
    async def select_cmd(ctx: commands.Context, account_id: str):
        with sessions.use(_session_key(ctx.author)) as controller:
            result = choose_account(controller, account_id)
        if not result.success:
            await ctx.send(result.error_message)
            return

        await ctx.send(f"Account {account_id} selected.")

    @bot.command(name="balance")
    async def balance_cmd(ctx: commands.Context):
        with sessions.use(_session_key(ctx.author)) as controller:
            result = check_balance(controller)
        if not result.success:
            await ctx.send(result.error_message)
            return

        await ctx.send(f"Balance: {result.balance}")

    @bot.command(name="deposit")
    async def deposit_cmd(ctx: commands.Context, amount: int):
        with sessions.use(_session_key(ctx.author)) as controller:
            result = deposit_cash(controller, amount)
        if not result.success:
            await ctx.send(result.error_message or "Deposit failed.")
            return

        await ctx.send(f"Deposit completed. Balance: {result.balance}")

    @bot.command(name="withdraw")
    async def withdraw_cmd(ctx: commands.Context, amount: int):
        with sessions.use(_session_key(ctx.author)) as controller:
            result = withdraw_cash(controller, amount)
        if not result.success:
            await ctx.send(result.error_message or "Withdrawal failed.")
            return

        await ctx.send(f"Withdrawal completed. Balance: {result.balance}")

    @bot.command(name="end")
    async def end_cmd(ctx: commands.Context):
        sessions.end(_session_key(ctx.author))
        await ctx.send("Session ended. Don't forget your card!")

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
            await ctx.send("Invalid arguments. Type !help to see usage.")
            return
        raise error

    return bot
