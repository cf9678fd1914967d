"""Test doubles: a controllable clock and an in-memory quote source."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from src.dt_common.errors import QuoteUnavailableError
from src.dt_quote.domain.models import Quote


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 15, 9, 30, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeQuoteSource:
    """Serves prices from a dict; stamps quotes with the fake clock."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self.prices: dict[str, int] = {}
        self.calls: list[tuple[str, str, int | None]] = []

    async def fetch(
        self, user_id: str, stock: str, transaction_id: int | None = None
    ) -> Quote:
        self.calls.append((user_id, stock, transaction_id))
        if stock not in self.prices:
            raise QuoteUnavailableError(stock, "connection refused")
        return Quote(
            stock=stock,
            user_id=user_id,
            price=self.prices[stock],
            timestamp=self._clock(),
            cryptokey=f"key-{len(self.calls)}",
            transaction_id=transaction_id,
        )


@dataclass
class QuoteServer:
    """State of the in-process TCP quote server used by integration tests."""

    port: int
    prices: dict[str, str] = field(default_factory=dict)  # stock -> "D.CC"
    requests: list[str] = field(default_factory=list)
