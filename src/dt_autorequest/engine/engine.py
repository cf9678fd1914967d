"""AutoRequestEngine: owns both auto-request stores and fires them on fresh quotes."""
import asyncio
import logging
from collections import defaultdict

from src.dt_account.domain.ledger import AccountLedger
from src.dt_autorequest.domain.models import AutoFill, AutoRequest
from src.dt_autorequest.domain.store import AutoRequestStore
from src.dt_autorequest.engine.matching_algo import fire_buy, fire_sell, should_fire
from src.dt_common.cents import cents_to_str, fits_into
from src.dt_common.datetime_utils import Clock, utc_now
from src.dt_common.enums import LedgerEntryType, OrderSide
from src.dt_common.errors import AppError, InvalidAmountError
from src.dt_quote.domain.models import Quote

logger = logging.getLogger(__name__)


class AutoRequestEngine:
    def __init__(
        self,
        ledger: AccountLedger,
        clock: Clock = utc_now,
        sell_trigger_reserves_shares: bool = True,
        cancel_set_sell_returns_shares: bool = True,
    ) -> None:
        self._ledger = ledger
        self._clock = clock
        self._sell_trigger_reserves_shares = sell_trigger_reserves_shares
        self._cancel_set_sell_returns_shares = cancel_set_sell_returns_shares
        self.buy_requests = AutoRequestStore(side=OrderSide.BUY.value)
        self.sell_requests = AutoRequestStore(side=OrderSide.SELL.value)
        self._stock_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _store(self, side: OrderSide) -> AutoRequestStore:
        return self.buy_requests if side == OrderSide.BUY else self.sell_requests

    async def set_amount(
        self, side: OrderSide, stock: str, user_id: str, amount: int
    ) -> AutoRequest:
        """Create or overwrite the pending request's amount.

        Buy side reserves the cash now (only the difference when overwriting).
        Sell side moves nothing unless the request is already armed with a
        share reservation, which is resized to the new amount.
        """
        if amount <= 0:
            raise InvalidAmountError(f"auto-request amount must be > 0, got {amount}")
        self._ledger.get_account(user_id)
        async with self._stock_locks[stock]:
            store = self._store(side)
            request = store.get(stock, user_id)
            if side == OrderSide.BUY:
                previous = request.amount if request else 0
                self._move_buy_reservation(user_id, stock, amount - previous)
            elif request is not None and request.reserved_units > 0:
                units, _ = fits_into(amount, request.trigger)
                if units == 0:
                    raise InvalidAmountError(
                        f"{cents_to_str(amount)} buys no {stock} share at the trigger price"
                    )
                self._resize_sell_reservation(request, units)

            if request is None:
                request = AutoRequest(
                    stock=stock,
                    user_id=user_id,
                    side=side.value,
                    amount=amount,
                    created_at=self._clock(),
                )
                store.put(request)
            else:
                request.amount = amount
        logger.info(
            "%s amount for %s/%s set to %s", side.value, user_id, stock, cents_to_str(amount)
        )
        return request

    async def set_trigger(
        self, side: OrderSide, stock: str, user_id: str, trigger: int
    ) -> AutoRequest:
        if trigger <= 0:
            raise InvalidAmountError(f"trigger price must be > 0, got {trigger}")
        async with self._stock_locks[stock]:
            request = self._store(side).require(stock, user_id)
            units, _ = fits_into(request.amount, trigger)
            if side == OrderSide.SELL and self._sell_trigger_reserves_shares:
                if units == 0:
                    raise InvalidAmountError(
                        f"{cents_to_str(request.amount)} sells no {stock} share"
                        f" at {cents_to_str(trigger)}"
                    )
                self._resize_sell_reservation(request, units)
            elif side == OrderSide.BUY and units == 0:
                logger.warning(
                    "%s reserved by %s buys no %s share at %s; request stays pending",
                    cents_to_str(request.amount), user_id, stock, cents_to_str(trigger),
                )
            request.trigger = trigger
        logger.info(
            "%s trigger for %s/%s armed at %s (%d units at trigger)",
            side.value, user_id, stock, cents_to_str(trigger), units,
        )
        return request

    async def cancel(self, side: OrderSide, stock: str, user_id: str) -> AutoRequest:
        """Remove the pending request and release what it had reserved."""
        async with self._stock_locks[stock]:
            request = self._store(side).remove(stock, user_id)
            if side == OrderSide.BUY:
                self._ledger.deposit(
                    user_id, request.amount, LedgerEntryType.RELEASE_FUNDS, stock=stock
                )
            elif request.reserved_units > 0:
                if self._cancel_set_sell_returns_shares:
                    self._ledger.add_shares(user_id, stock, request.reserved_units)
                else:
                    self._ledger.record_forfeit(
                        user_id, stock, request.reserved_units, request.trigger, OrderSide.SELL
                    )
        logger.info("Cancelled %s auto-request for %s/%s", side.value, user_id, stock)
        return request

    async def on_fresh_quote(self, quote: Quote) -> list[AutoFill]:
        """Evaluate every armed request on quote.stock against the fresh price."""
        fills: list[AutoFill] = []
        async with self._stock_locks[quote.stock]:
            for request in self.buy_requests.for_stock(quote.stock):
                fill = self._try_fire(request, quote.price)
                if fill is not None:
                    self.buy_requests.remove(request.stock, request.user_id)
                    fills.append(fill)
            for request in self.sell_requests.for_stock(quote.stock):
                fill = self._try_fire(request, quote.price)
                if fill is not None:
                    self.sell_requests.remove(request.stock, request.user_id)
                    fills.append(fill)
        return fills

    def _try_fire(self, request: AutoRequest, price: int) -> AutoFill | None:
        if not should_fire(request, price):
            return None
        try:
            if request.side == OrderSide.BUY:
                fill = fire_buy(request, price, self._ledger)
            else:
                fill = fire_sell(
                    request, price, self._ledger, self._sell_trigger_reserves_shares
                )
        except AppError as exc:
            # One user's failure must not block the others on this stock
            logger.warning(
                "Auto %s for %s/%s failed: %s",
                request.side, request.user_id, request.stock, exc.message,
            )
            return None
        if fill is not None:
            logger.info(
                "Auto %s fired for %s: %d x %s @ %s",
                fill.side, fill.user_id, fill.units, fill.stock, cents_to_str(fill.unit_price),
            )
        return fill

    def _move_buy_reservation(self, user_id: str, stock: str, delta: int) -> None:
        if delta > 0:
            self._ledger.withdraw(user_id, delta, LedgerEntryType.RESERVE_FUNDS, stock=stock)
        elif delta < 0:
            self._ledger.deposit(user_id, -delta, LedgerEntryType.RELEASE_FUNDS, stock=stock)

    def _resize_sell_reservation(self, request: AutoRequest, units: int) -> None:
        delta = units - request.reserved_units
        if delta > 0:
            self._ledger.remove_shares(request.user_id, request.stock, delta)
        elif delta < 0:
            self._ledger.add_shares(request.user_id, request.stock, -delta)
        request.reserved_units = units
