"""AccountLedger: in-memory account store with a mutation journal.

Every primitive validates before it mutates, so a raised AppError means the
account was left untouched. Every successful mutation appends a LedgerEntry;
the conservation check in invariants.py replays the journal against the
live balances.

All methods are synchronous: under the single event loop each call is
atomic with respect to other coroutines, which is what the per-user and
per-stock asyncio locks upstream rely on.
"""

import logging
from collections.abc import Mapping

from src.dt_account.domain.models import Account, Action, LedgerEntry
from src.dt_account.domain.order_queue import OrderQueue
from src.dt_common.cents import subtract_cents
from src.dt_common.datetime_utils import Clock, utc_now
from src.dt_common.enums import LedgerEntryType, OrderSide
from src.dt_common.errors import (
    AccountExistsError,
    AccountNotFoundError,
    InsufficientSharesError,
    InvalidAmountError,
)

logger = logging.getLogger(__name__)


class AccountLedger:
    def __init__(self, clock: Clock = utc_now, auto_create: bool = True) -> None:
        self._clock = clock
        self._auto_create = auto_create
        self._accounts: dict[str, Account] = {}
        self._entries: list[LedgerEntry] = []

    @property
    def accounts(self) -> Mapping[str, Account]:
        return self._accounts

    @property
    def entries(self) -> list[LedgerEntry]:
        return self._entries

    def has_account(self, user_id: str) -> bool:
        return user_id in self._accounts

    def get_account(self, user_id: str) -> Account:
        account = self._accounts.get(user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

    def create_account(self, user_id: str) -> Account:
        if user_id in self._accounts:
            raise AccountExistsError(user_id)
        account = Account(user_id=user_id, created_at=self._clock())
        self._accounts[user_id] = account
        logger.info("Created account for %s", user_id)
        return account

    # ------------------------------------------------------------------
    # Cash
    # ------------------------------------------------------------------

    def deposit(
        self,
        user_id: str,
        amount: int,
        entry_type: LedgerEntryType = LedgerEntryType.DEPOSIT,
        *,
        stock: str | None = None,
        units: int = 0,
        unit_price: int = 0,
    ) -> Account:
        """Credit the balance. An external DEPOSIT creates the account on first use."""
        if amount <= 0:
            raise InvalidAmountError(f"can only credit > 0 cents, got {amount}")
        if entry_type == LedgerEntryType.DEPOSIT and self._auto_create:
            account = self._accounts.get(user_id) or self.create_account(user_id)
        else:
            account = self.get_account(user_id)
        account.balance += amount
        self._journal(account, entry_type, amount, stock, units, unit_price)
        return account

    def withdraw(
        self,
        user_id: str,
        amount: int,
        entry_type: LedgerEntryType = LedgerEntryType.RESERVE_FUNDS,
        *,
        stock: str | None = None,
        units: int = 0,
        unit_price: int = 0,
    ) -> Account:
        if amount <= 0:
            raise InvalidAmountError(f"can only debit > 0 cents, got {amount}")
        account = self.get_account(user_id)
        account.balance = subtract_cents(account.balance, amount)
        self._journal(account, entry_type, -amount, stock, units, unit_price)
        return account

    # ------------------------------------------------------------------
    # Shares
    # ------------------------------------------------------------------

    def add_shares(
        self,
        user_id: str,
        stock: str,
        units: int,
        entry_type: LedgerEntryType = LedgerEntryType.RELEASE_SHARES,
        *,
        unit_price: int = 0,
    ) -> Account:
        if units <= 0:
            raise InvalidAmountError(f"can only add > 0 shares, got {units}")
        account = self.get_account(user_id)
        account.portfolio[stock] = account.holding(stock) + units
        self._journal(account, entry_type, 0, stock, units, unit_price)
        return account

    def remove_shares(
        self,
        user_id: str,
        stock: str,
        units: int,
        entry_type: LedgerEntryType = LedgerEntryType.RESERVE_SHARES,
    ) -> Account:
        """Remove shares from the portfolio; all or nothing."""
        if units <= 0:
            raise InvalidAmountError(f"can only remove > 0 shares, got {units}")
        account = self.get_account(user_id)
        held = account.holding(stock)
        if units > held:
            raise InsufficientSharesError(stock, required=units, held=held)
        if held == units:
            del account.portfolio[stock]
        else:
            account.portfolio[stock] = held - units
        self._journal(account, entry_type, 0, stock, units, 0)
        return account

    def record_forfeit(
        self, user_id: str, stock: str, units: int, unit_price: int, side: OrderSide
    ) -> LedgerEntry:
        """Journal a discarded reservation. Moves nothing."""
        account = self.get_account(user_id)
        entry_type = (
            LedgerEntryType.FORFEIT_FUNDS if side == OrderSide.BUY
            else LedgerEntryType.FORFEIT_SHARES
        )
        logger.warning(
            "Forfeiting %s reservation of %s: %d x %s @ %d",
            side.value, user_id, units, stock, unit_price,
        )
        return self._journal(account, entry_type, 0, stock, units, unit_price)

    # ------------------------------------------------------------------
    # Order queues
    # ------------------------------------------------------------------

    def push_order(
        self, user_id: str, side: OrderSide, stock: str, units: int, unit_price: int
    ) -> Action:
        account = self.get_account(user_id)
        action = Action(stock=stock, units=units, unit_price=unit_price, created_at=self._clock())
        _queue(account, side).push(action)
        return action

    def pop_newest_order(self, user_id: str, side: OrderSide) -> Action | None:
        account = self.get_account(user_id)
        return _queue(account, side).pop_newest()

    def _journal(
        self,
        account: Account,
        entry_type: LedgerEntryType,
        amount: int,
        stock: str | None,
        units: int,
        unit_price: int,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            id=len(self._entries) + 1,
            user_id=account.user_id,
            entry_type=entry_type.value,
            amount=amount,
            balance_after=account.balance,
            stock=stock,
            units=units,
            unit_price=unit_price,
            created_at=self._clock(),
        )
        self._entries.append(entry)
        return entry


def _queue(account: Account, side: OrderSide) -> OrderQueue:
    return account.buy_orders if side == OrderSide.BUY else account.sell_orders
