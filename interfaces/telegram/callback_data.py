from __future__ import annotations

_ACCOUNT_PREFIX = "acct"

# Telegram rejects callback data longer than this many bytes.
MAX_CALLBACK_BYTES = 64


def encode_account_choice(account_id: str) -> str:
    """
    Encode a "choose account" callback.

    Format: acct:{account_id}
    """

    if not account_id or ":" in account_id:
        raise ValueError(f"Account ID cannot be encoded: {account_id!r}")

    data = f"{_ACCOUNT_PREFIX}:{account_id}"
    if len(data.encode("utf-8")) > MAX_CALLBACK_BYTES:
        raise ValueError(f"Account ID is too long for callback data: {account_id!r}")
    return data


def is_account_choice(data: str) -> bool:
    return data.startswith(f"{_ACCOUNT_PREFIX}:")


def parse_account_choice(data: str) -> str:
    parts = data.split(":")
    if len(parts) != 2 or parts[0] != _ACCOUNT_PREFIX or not parts[1]:
        raise ValueError(f"Invalid account choice callback data: {data}")

    return parts[1]
