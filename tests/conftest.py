"""Shared test fixtures."""

import pytest

from src.dt_account.domain.ledger import AccountLedger
from src.dt_autorequest.engine.engine import AutoRequestEngine
from src.dt_command.application.executor import Executor
from src.dt_quote.application.cache import QuoteCache
from tests.fakes import FakeClock, FakeQuoteSource


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def quote_source(clock: FakeClock) -> FakeQuoteSource:
    return FakeQuoteSource(clock)


@pytest.fixture
def ledger(clock: FakeClock) -> AccountLedger:
    return AccountLedger(clock=clock)


@pytest.fixture
def autorequests(ledger: AccountLedger, clock: FakeClock) -> AutoRequestEngine:
    return AutoRequestEngine(ledger, clock=clock)


@pytest.fixture
def quote_cache(
    quote_source: FakeQuoteSource, clock: FakeClock, autorequests: AutoRequestEngine
) -> QuoteCache:
    cache = QuoteCache(quote_source, clock=clock)
    cache.subscribe(autorequests.on_fresh_quote)
    return cache


@pytest.fixture
def executor(
    ledger: AccountLedger,
    quote_cache: QuoteCache,
    autorequests: AutoRequestEngine,
    clock: FakeClock,
) -> Executor:
    return Executor(ledger, quote_cache, autorequests, clock=clock, verify_invariants=True)
