"""Unit tests for QuoteCache freshness and fetch side effects."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.dt_common.errors import QuoteUnavailableError
from src.dt_quote.application.cache import QuoteCache
from tests.fakes import FakeClock, FakeQuoteSource


@pytest.fixture
def cache(quote_source: FakeQuoteSource, clock: FakeClock) -> QuoteCache:
    quote_source.prices["ABC"] = 3000
    return QuoteCache(quote_source, clock=clock)


class TestQuoteCacheFreshness:
    async def test_miss_fetches(self, cache: QuoteCache, quote_source: FakeQuoteSource) -> None:
        quote = await cache.get_quote("alice", "ABC", transaction_id=1)
        assert quote.price == 3000
        assert quote_source.calls == [("alice", "ABC", 1)]
        assert cache.misses == 1

    async def test_hit_within_window(
        self, cache: QuoteCache, quote_source: FakeQuoteSource, clock: FakeClock
    ) -> None:
        first = await cache.get_quote("alice", "ABC")
        clock.advance(59)
        quote_source.prices["ABC"] = 9999
        second = await cache.get_quote("alice", "ABC")
        assert second is first
        assert len(quote_source.calls) == 1
        assert cache.hits == 1

    async def test_expired_at_window_refetches(
        self, cache: QuoteCache, quote_source: FakeQuoteSource, clock: FakeClock
    ) -> None:
        await cache.get_quote("alice", "ABC")
        clock.advance(60)
        quote_source.prices["ABC"] = 3100
        quote = await cache.get_quote("alice", "ABC")
        assert quote.price == 3100
        assert len(quote_source.calls) == 2

    async def test_keyed_per_user(self, cache: QuoteCache, quote_source: FakeQuoteSource) -> None:
        await cache.get_quote("alice", "ABC")
        await cache.get_quote("bob", "ABC")
        await cache.get_quote("alice", "ABC")
        assert [c[0] for c in quote_source.calls] == ["alice", "bob"]
        assert cache.peek("alice", "ABC") is not None
        assert cache.peek("bob", "ABC") is not None

    async def test_failure_leaves_cache_unchanged(
        self, cache: QuoteCache, quote_source: FakeQuoteSource, clock: FakeClock
    ) -> None:
        stale = await cache.get_quote("alice", "ABC")
        clock.advance(120)
        del quote_source.prices["ABC"]
        with pytest.raises(QuoteUnavailableError):
            await cache.get_quote("alice", "ABC")
        assert cache.peek("alice", "ABC") is stale


class TestQuoteCacheSideEffects:
    async def test_fresh_fetch_notifies_listener_and_audit(
        self, quote_source: FakeQuoteSource, clock: FakeClock
    ) -> None:
        quote_source.prices["ABC"] = 3000
        audit = MagicMock()
        listener = AsyncMock()
        cache = QuoteCache(quote_source, clock=clock, audit=audit)
        cache.subscribe(listener)

        quote = await cache.get_quote("alice", "ABC", transaction_id=4)

        audit.log_quote_hit.assert_called_once_with(quote)
        listener.assert_awaited_once_with(quote)

    async def test_hit_has_no_side_effects(
        self, quote_source: FakeQuoteSource, clock: FakeClock
    ) -> None:
        quote_source.prices["ABC"] = 3000
        audit = MagicMock()
        listener = AsyncMock()
        cache = QuoteCache(quote_source, clock=clock, audit=audit)
        cache.subscribe(listener)

        await cache.get_quote("alice", "ABC")
        await cache.get_quote("alice", "ABC")

        assert audit.log_quote_hit.call_count == 1
        assert listener.await_count == 1

    async def test_failed_fetch_notifies_nobody(
        self, quote_source: FakeQuoteSource, clock: FakeClock
    ) -> None:
        audit = MagicMock()
        listener = AsyncMock()
        cache = QuoteCache(quote_source, clock=clock, audit=audit)
        cache.subscribe(listener)

        with pytest.raises(QuoteUnavailableError):
            await cache.get_quote("alice", "NOPE")

        audit.log_quote_hit.assert_not_called()
        listener.assert_not_awaited()
