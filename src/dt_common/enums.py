"""Global enums: values match the workload file and audit log spelling."""

from enum import Enum


class CommandType(str, Enum):
    ADD = "ADD"
    QUOTE = "QUOTE"
    BUY = "BUY"
    COMMIT_BUY = "COMMIT_BUY"
    CANCEL_BUY = "CANCEL_BUY"
    SELL = "SELL"
    COMMIT_SELL = "COMMIT_SELL"
    CANCEL_SELL = "CANCEL_SELL"
    SET_BUY_AMOUNT = "SET_BUY_AMOUNT"
    CANCEL_SET_BUY = "CANCEL_SET_BUY"
    SET_BUY_TRIGGER = "SET_BUY_TRIGGER"
    SET_SELL_AMOUNT = "SET_SELL_AMOUNT"
    SET_SELL_TRIGGER = "SET_SELL_TRIGGER"
    CANCEL_SET_SELL = "CANCEL_SET_SELL"
    DISPLAY_SUMMARY = "DISPLAY_SUMMARY"
    DUMPLOG = "DUMPLOG"

    @classmethod
    def from_name(cls, name: str) -> "CommandType | None":
        """Case-insensitive lookup; None for an unknown name."""
        return cls.__members__.get(name.strip().upper())


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class LedgerEntryType(str, Enum):
    # External cash in
    DEPOSIT = "DEPOSIT"
    # Reservation freeze/unfreeze (cash)
    RESERVE_FUNDS = "RESERVE_FUNDS"
    RELEASE_FUNDS = "RELEASE_FUNDS"
    # Reservation freeze/unfreeze (shares)
    RESERVE_SHARES = "RESERVE_SHARES"
    RELEASE_SHARES = "RELEASE_SHARES"
    # Settlement
    BUY_FILL = "BUY_FILL"
    SELL_FILL = "SELL_FILL"
    # Discarded reservations (journal only, no balance change)
    FORFEIT_FUNDS = "FORFEIT_FUNDS"
    FORFEIT_SHARES = "FORFEIT_SHARES"
