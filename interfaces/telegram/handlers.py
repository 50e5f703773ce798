from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import telebot
from telebot.apihelper import ApiTelegramException
from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup

from application.services import (
    SessionRegistry,
    check_balance,
    choose_account,
    deposit_cash,
    list_accounts,
    start_session,
    validate_amount_range,
    withdraw_cash,
)
from domain.models import Account
from interfaces.telegram.callback_data import (
    encode_account_choice,
    is_account_choice,
    parse_account_choice,
)

lg = logging.getLogger(__name__)


def _session_key(user_id: int) -> tuple:
    # Sessions follow the user, not the chat, so members of a group chat
    # can't use each other's card.
    return ("telegram", user_id)


def parse_amount(text: str) -> Tuple[Optional[int], Optional[str]]:
    """
    Parse the amount given after a command.

    Returns ``(amount, None)`` on success, ``(None, error_message)`` otherwise.
    """

    parts = text.split()
    if len(parts) < 2:
        return None, "Amount must be a number."
    try:
        amount = int(parts[1])
    except ValueError:
        return None, "Amount must be a number."

    error = validate_amount_range(amount)
    if error:
        return None, error
    return amount, None


def build_account_markup(accounts: List[Account]) -> Tuple[InlineKeyboardMarkup, List[Account]]:
    """
    Build one button per account.

    Accounts whose ID can't be carried in callback data are left out and
    returned separately so the caller can list them as text.
    """

    markup = InlineKeyboardMarkup(row_width=1)
    skipped = []
    for account in accounts:
        try:
            callback_data = encode_account_choice(account.account_id)
        except ValueError:
            skipped.append(account)
            continue
        markup.add(InlineKeyboardButton(account.account_id, callback_data=callback_data))
    return markup, skipped


def create_telegram_bot(
    bot_token: str,
    sessions: SessionRegistry,
) -> telebot.TeleBot:
    """
    Configure and return a TeleBot instance wired to the application layer.

    This module contains only Telegram-specific concerns: parsing Telegram
    messages/callbacks and mapping them to/from application services.
    Each Telegram user gets their own ATM session from `sessions`; updates
    are handled on worker threads, so sessions are only touched via
    `sessions.use`.
    """

    bot = telebot.TeleBot(bot_token)

    @bot.message_handler(commands=["start", "hello"])
    def handle_start(message):
        bot.send_message(
            message.chat.id,
            "Welcome to the ATM bot!\n"
            "Use /card <number> <pin> to insert your card.\n"
            "Type /help to see available commands.",
        )

    @bot.message_handler(commands=["help"])
    def handle_help(message):
        bot.send_message(
            message.chat.id,
            "/card <number> <pin>   - insert a card and enter its PIN\n"
            "/accounts              - choose one of the card's accounts\n"
            "/balance               - show the selected account's balance\n"
            "/deposit <amount>      - deposit into the selected account\n"
            "/withdraw <amount>     - withdraw from the selected account\n"
            "/end                   - finish the session\n",
        )

    @bot.message_handler(commands=["card"])
    def handle_card(message):
        parts = message.text.split()
        if len(parts) != 3:
            bot.send_message(message.chat.id, "Usage: /card <number> <pin>")
            return

        # Don't leave the PIN lying around in the chat history.
        try:
            bot.delete_message(message.chat.id, message.id)
        except ApiTelegramException as exc:
            lg.warning("could not delete PIN message: %s", exc)

        with sessions.use(_session_key(message.from_user.id)) as controller:
            result = start_session(controller, parts[1], parts[2])
        if not result.success:
            bot.send_message(message.chat.id, result.error_message)
            return

        bot.send_message(
            message.chat.id,
            "PIN accepted. Use /accounts to choose an account.",
        )

    @bot.message_handler(commands=["accounts"])
    def handle_accounts(message):
        with sessions.use(_session_key(message.from_user.id)) as controller:
            result = list_accounts(controller)
        if not result.success:
            bot.send_message(message.chat.id, result.error_message)
            return

        markup, skipped = build_account_markup(result.accounts)
        text = "Choose an account"
        if skipped:
            lines = [f"{a.account_id}: {a.balance}" for a in skipped]
            text += "\nThese accounts can't be chosen here:\n" + "\n".join(lines)

        bot.send_message(
            message.chat.id,
            text,
            reply_markup=markup if markup.keyboard else None,
        )

    @bot.callback_query_handler(func=lambda call: is_account_choice(call.data))
    def handle_account_choice(call):
        try:
            account_id = parse_account_choice(call.data)
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid selection.")
            return

        try:
            with sessions.use(_session_key(call.from_user.id)) as controller:
                result = choose_account(controller, account_id)
            if not result.success:
                bot.answer_callback_query(call.id)
                bot.send_message(call.message.chat.id, result.error_message)
            else:
                bot.answer_callback_query(call.id, f"Account {account_id} selected.")
                bot.send_message(
                    call.message.chat.id,
                    f"Account {account_id} selected.",
                )
        finally:
            bot.delete_message(call.message.chat.id, call.message.id)

    @bot.message_handler(commands=["balance"])
    def handle_balance(message):
        with sessions.use(_session_key(message.from_user.id)) as controller:
            result = check_balance(controller)
        if not result.success:
            bot.send_message(message.chat.id, result.error_message)
            return

        bot.send_message(message.chat.id, f"Balance: {result.balance}")

    @bot.message_handler(commands=["deposit", "withdraw"])
    def handle_transaction(message):
        amount, error = parse_amount(message.text)
        if error:
            bot.send_message(message.chat.id, error)
            return

        op = message.text.split()[0][1:]  # strip leading '/'

        with sessions.use(_session_key(message.from_user.id)) as controller:
            if op.startswith("deposit"):
                result = deposit_cash(controller, amount)
            else:
                result = withdraw_cash(controller, amount)

        if not result.success:
            bot.send_message(message.chat.id, result.error_message)
            return

        bot.send_message(
            message.chat.id,
            f"Done. Balance: {result.balance}",
        )

    @bot.message_handler(commands=["end"])
    def handle_end(message):
        sessions.end(_session_key(message.from_user.id))
        bot.send_message(message.chat.id, "Session ended. Don't forget your card!")

    return bot
