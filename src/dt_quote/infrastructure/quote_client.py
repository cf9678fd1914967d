"""TCP client for the legacy quote server.

Protocol: send "<stock>,<userId>\\n", read one newline-terminated line back:
    <price>,<stock>,<userId>,<unixTimestamp>,<cryptokey>
"""

import asyncio
import logging

from src.dt_common.cents import parse_cents
from src.dt_common.datetime_utils import from_unix_seconds
from src.dt_common.errors import InvalidFormatError, QuoteUnavailableError
from src.dt_quote.domain.models import Quote

logger = logging.getLogger(__name__)

_FIELD_COUNT = 5


def parse_quote_response(line: str, transaction_id: int | None = None) -> Quote:
    """Convert a raw quote server line into a Quote. Raises InvalidFormatError."""
    parts = line.strip().split(",")
    if len(parts) != _FIELD_COUNT:
        raise InvalidFormatError(
            f"quote server returned {len(parts)} fields, expected {_FIELD_COUNT}"
        )
    price_str, stock, user_id, unix_str, cryptokey = (p.strip() for p in parts)
    price = parse_cents(price_str)
    try:
        unix_seconds = int(unix_str)
    except ValueError:
        raise InvalidFormatError(f"quote timestamp is not an integer: {unix_str!r}") from None
    try:
        timestamp = from_unix_seconds(unix_seconds)
    except (OverflowError, OSError, ValueError):
        raise InvalidFormatError(f"quote timestamp out of range: {unix_seconds}") from None
    return Quote(
        stock=stock,
        user_id=user_id,
        price=price,
        timestamp=timestamp,
        cryptokey=cryptokey,
        transaction_id=transaction_id,
    )


class QuoteClient:
    """One connection per fetch, bounded by a single timeout."""

    def __init__(self, host: str, port: int, timeout: float = 10.0) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout

    async def fetch(
        self, user_id: str, stock: str, transaction_id: int | None = None
    ) -> Quote:
        try:
            line = await asyncio.wait_for(self._round_trip(user_id, stock), self._timeout)
        except TimeoutError:
            raise QuoteUnavailableError(stock, f"no response within {self._timeout}s") from None
        except OSError as exc:
            raise QuoteUnavailableError(stock, str(exc)) from exc
        except ValueError as exc:
            # StreamReader.readline on a reply longer than the buffer limit
            raise QuoteUnavailableError(stock, f"malformed reply: {exc}") from exc

        try:
            quote = parse_quote_response(line, transaction_id)
        except InvalidFormatError as exc:
            raise QuoteUnavailableError(stock, exc.message) from exc
        logger.debug("Quote server: %s", line.strip())
        return quote

    async def _round_trip(self, user_id: str, stock: str) -> str:
        reader, writer = await asyncio.open_connection(self._host, self._port)
        try:
            writer.write(f"{stock},{user_id}\n".encode())
            await writer.drain()
            raw = await reader.readline()
        finally:
            writer.close()
            await writer.wait_closed()
        return raw.decode(errors="replace")
