from dataclasses import dataclass

# Largest amount or balance the bank backends can store (signed 64-bit).
MAX_AMOUNT = 2**63 - 1


@dataclass(frozen=True)
class Card:
    """
    A bank card as read by the card reader.

    Cards are plain values: two cards are the same card when their numbers
    match. Nothing else about the physical card is known to the ATM.
    """

    card_number: str


@dataclass
class Account:
    """
    A bank account available to the card holder.

    `balance` is only a snapshot of what the bank reported; the bank service
    remains the source of truth for the real figure.
    """

    account_id: str
    balance: int = 0
