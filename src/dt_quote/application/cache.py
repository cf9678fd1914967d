"""QuoteCache: per (stock, user) quote cache with a freshness window.

A hit is a dict lookup with no side effects. A miss or an expired entry is
the only thing that goes to the quote server; each successful fetch is
audited and then handed to every subscribed listener (the auto-request
engine) before get_quote returns.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta

from src.dt_audit.domain.sink import AuditSinkProtocol
from src.dt_common.datetime_utils import Clock, utc_now
from src.dt_quote.domain.models import DEFAULT_QUOTE_VALIDITY, Quote
from src.dt_quote.domain.repository import QuoteSourceProtocol

logger = logging.getLogger(__name__)

FreshQuoteListener = Callable[[Quote], Awaitable[object]]


class QuoteCache:
    def __init__(
        self,
        source: QuoteSourceProtocol,
        clock: Clock = utc_now,
        validity: timedelta = DEFAULT_QUOTE_VALIDITY,
        audit: AuditSinkProtocol | None = None,
    ) -> None:
        self._source = source
        self._clock = clock
        self._validity = validity
        self._audit = audit
        self._quotes: dict[str, dict[str, Quote]] = {}
        self._listeners: list[FreshQuoteListener] = []
        self.hits = 0
        self.misses = 0

    def subscribe(self, listener: FreshQuoteListener) -> None:
        self._listeners.append(listener)

    def peek(self, user_id: str, stock: str) -> Quote | None:
        """Cached entry regardless of freshness; never fetches."""
        return self._quotes.get(stock, {}).get(user_id)

    async def get_quote(
        self, user_id: str, stock: str, transaction_id: int | None = None
    ) -> Quote:
        cached = self.peek(user_id, stock)
        if cached is not None and cached.is_fresh(self._clock(), self._validity):
            self.hits += 1
            logger.debug("Quote cache hit: %s/%s", stock, user_id)
            return cached

        # QuoteUnavailableError propagates; the cache is left as it was
        quote = await self._source.fetch(user_id, stock, transaction_id)
        self.misses += 1
        self._quotes.setdefault(stock, {})[user_id] = quote
        logger.info("Quote cache miss: %s/%s refreshed at %d cents", stock, user_id, quote.price)

        if self._audit is not None:
            self._audit.log_quote_hit(quote)
        for listener in self._listeners:
            await listener(quote)
        return quote
