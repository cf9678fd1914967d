"""Domain models for dt_account: pure dataclasses, held in memory for the process lifetime."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from src.dt_account.domain.order_queue import OrderQueue

DEFAULT_ORDER_VALIDITY = timedelta(seconds=60)


@dataclass
class Action:
    """A reserved buy or sell of a fixed number of shares at a fixed price."""

    stock: str
    units: int          # > 0
    unit_price: int     # cents, locked at placement time
    created_at: datetime

    @property
    def value(self) -> int:
        return self.units * self.unit_price

    def is_expired(self, now: datetime, window: timedelta = DEFAULT_ORDER_VALIDITY) -> bool:
        return now - self.created_at > window


@dataclass
class Account:
    user_id: str
    balance: int = 0    # cents, >= 0 after every operation
    portfolio: dict[str, int] = field(default_factory=dict)  # stock -> units, no zero entries
    buy_orders: OrderQueue = field(default_factory=OrderQueue)
    sell_orders: OrderQueue = field(default_factory=OrderQueue)
    created_at: datetime | None = None

    def holding(self, stock: str) -> int:
        return self.portfolio.get(stock, 0)


@dataclass
class LedgerEntry:
    id: int
    user_id: str
    entry_type: str          # LedgerEntryType value
    amount: int              # cents, positive=income negative=expense, 0 for share-only entries
    balance_after: int       # cents, balance snapshot after op
    stock: str | None = None
    units: int = 0           # shares moved (signed like amount)
    unit_price: int = 0      # cents, set for fills and forfeits
    created_at: datetime | None = None

    @property
    def value(self) -> int:
        return abs(self.units) * self.unit_price
