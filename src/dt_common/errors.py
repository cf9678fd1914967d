"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Input format (workload lines, amounts)
  2xxx: Account / ledger
  3xxx: Order queue
  4xxx: Auto-request
  5xxx: Quote server
  9xxx: System
"""


class AppError(Exception):
    """Base application error. Caught per command by the executor."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


# --- 1xxx: Input format ---

class InvalidFormatError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1001, f"Invalid format: {detail}")


class UnknownCommandError(InvalidFormatError):
    def __init__(self, name: str) -> None:
        super().__init__(f"unknown command {name!r}")
        self.code = 1002


# --- 2xxx: Account ---

class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient funds: required {required} cents, available {available} cents",
        )


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}")


class AccountExistsError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2003, f"Account already exists for user {user_id}")


class InvalidAmountError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2004, f"Invalid amount: {detail}")


class InsufficientSharesError(AppError):
    def __init__(self, stock: str, required: int, held: int) -> None:
        super().__init__(
            2005,
            f"Insufficient shares of {stock}: required {required}, held {held}",
        )


# --- 3xxx: Order queue ---

class NoActiveOrderError(AppError):
    def __init__(self, user_id: str, side: str) -> None:
        super().__init__(3001, f"No active {side} order for user {user_id}")


# --- 4xxx: Auto-request ---

class NoPendingRequestError(AppError):
    def __init__(self, side: str, stock: str, user_id: str) -> None:
        super().__init__(
            4001, f"No pending {side} request for stock {stock} for user {user_id}"
        )


# --- 5xxx: Quote server ---

class QuoteUnavailableError(AppError):
    def __init__(self, stock: str, detail: str) -> None:
        super().__init__(5001, f"Quote unavailable for {stock}: {detail}")


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal error") -> None:
        super().__init__(9002, detail)


class AuditWriteError(AppError):
    def __init__(self, path: str, detail: str) -> None:
        super().__init__(9003, f"Could not write audit log to {path}: {detail}")
