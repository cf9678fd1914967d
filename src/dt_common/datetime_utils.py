"""UTC datetime utilities."""

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def from_unix_seconds(seconds: int) -> datetime:
    """Quote server timestamps are integer unix seconds."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def to_unix_millis(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)
