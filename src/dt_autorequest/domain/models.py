from dataclasses import dataclass
from datetime import datetime


@dataclass
class AutoRequest:
    """Standing conditional order for one (stock, user) on one side."""

    stock: str
    user_id: str
    side: str  # BUY / SELL
    amount: int  # cents reserved (buy) or targeted (sell)
    trigger: int = 0  # cents; 0 = not yet armed
    reserved_units: int = 0  # sell side: shares taken out of the portfolio at arming
    created_at: datetime | None = None

    @property
    def is_armed(self) -> bool:
        return self.trigger > 0


@dataclass
class AutoFill:
    """Single firing passed from matching back to the caller."""

    stock: str
    user_id: str
    side: str
    units: int
    unit_price: int  # fresh quote price
    refunded: int = 0  # cents returned to the balance (buy remainder)
    returned_units: int = 0  # sell side: reserved shares put back

    @property
    def value(self) -> int:
        return self.units * self.unit_price
