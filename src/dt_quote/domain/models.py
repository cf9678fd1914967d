"""Quote domain model: one signed price response from the quote server."""

from dataclasses import dataclass
from datetime import datetime, timedelta

DEFAULT_QUOTE_VALIDITY = timedelta(seconds=60)


@dataclass(frozen=True)
class Quote:
    stock: str
    user_id: str
    price: int  # cents
    timestamp: datetime  # server generation time
    cryptokey: str
    transaction_id: int | None = None  # command that caused the cache miss

    def is_fresh(self, now: datetime, window: timedelta = DEFAULT_QUOTE_VALIDITY) -> bool:
        return now - self.timestamp < window
