"""Executor: applies parsed commands to the ledger, quote cache and auto-requests.

One command is fully applied (quote fetch and any trigger firings included)
before the next starts. Quote fetches run without any account lock held;
ledger mutations for a user run under that user's lock.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from datetime import timedelta
from typing import Any

from src.dt_account.domain.invariants import verify_ledger_invariants
from src.dt_account.domain.ledger import AccountLedger
from src.dt_account.domain.models import DEFAULT_ORDER_VALIDITY, Account, Action
from src.dt_audit.domain.sink import AuditSinkProtocol
from src.dt_autorequest.engine.engine import AutoRequestEngine
from src.dt_command.application.parser import parse_command
from src.dt_command.application.schemas import AccountSummary, ReplayStats
from src.dt_command.domain.models import Command
from src.dt_common.cents import cents_to_str, fits_into, parse_cents
from src.dt_common.datetime_utils import Clock, utc_now
from src.dt_common.enums import CommandType, LedgerEntryType, OrderSide
from src.dt_common.errors import (
    AppError,
    AuditWriteError,
    InsufficientSharesError,
    InternalError,
    InvalidFormatError,
    NoActiveOrderError,
)
from src.dt_quote.application.cache import QuoteCache
from src.dt_quote.domain.models import Quote

logger = logging.getLogger(__name__)

Handler = Callable[[Command], Awaitable[Any]]


def _args(cmd: Command, count: int) -> list[str]:
    if len(cmd.args) != count or any(not a for a in cmd.args):
        raise InvalidFormatError(
            f"{cmd.kind.value} takes {count} non-empty argument(s), got {cmd.args!r}"
        )
    return cmd.args


class Executor:
    def __init__(
        self,
        ledger: AccountLedger,
        quotes: QuoteCache,
        autorequests: AutoRequestEngine,
        audit: AuditSinkProtocol | None = None,
        clock: Clock = utc_now,
        order_validity: timedelta = DEFAULT_ORDER_VALIDITY,
        refund_expired_orders: bool = False,
        verify_invariants: bool = False,
    ) -> None:
        self._ledger = ledger
        self._quotes = quotes
        self._autorequests = autorequests
        self._audit = audit
        self._clock = clock
        self._order_validity = order_validity
        self._refund_expired_orders = refund_expired_orders
        self._verify_invariants = verify_invariants
        self._user_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._handlers: dict[CommandType, Handler] = {
            CommandType.ADD: self._add,
            CommandType.QUOTE: self._quote,
            CommandType.BUY: self._buy,
            CommandType.COMMIT_BUY: self._commit_buy,
            CommandType.CANCEL_BUY: self._cancel_buy,
            CommandType.SELL: self._sell,
            CommandType.COMMIT_SELL: self._commit_sell,
            CommandType.CANCEL_SELL: self._cancel_sell,
            CommandType.SET_BUY_AMOUNT: self._set_buy_amount,
            CommandType.SET_BUY_TRIGGER: self._set_buy_trigger,
            CommandType.CANCEL_SET_BUY: self._cancel_set_buy,
            CommandType.SET_SELL_AMOUNT: self._set_sell_amount,
            CommandType.SET_SELL_TRIGGER: self._set_sell_trigger,
            CommandType.CANCEL_SET_SELL: self._cancel_set_sell,
            CommandType.DISPLAY_SUMMARY: self._display_summary,
            CommandType.DUMPLOG: self._dumplog,
        }

    async def execute(self, cmd: Command) -> Any:
        """Apply one command. AppError propagates after being audited."""
        if self._audit is not None:
            self._audit.log_command(cmd)
        handler = self._handlers.get(cmd.kind)
        if handler is None:
            logger.warning("Not implemented: %s", cmd.kind)
            return None
        try:
            if not cmd.user_id and cmd.kind != CommandType.DUMPLOG:
                raise InvalidFormatError(f"{cmd.kind.value} requires a user id")
            result = await handler(cmd)
        except AppError as exc:
            if self._audit is not None:
                self._audit.log_error(cmd, exc.message)
            raise
        finally:
            if self._verify_invariants:
                verify_ledger_invariants(
                    self._ledger,
                    self._autorequests.buy_requests,
                    self._autorequests.sell_requests,
                )
        logger.info("Finished command %d", cmd.id)
        return result

    async def replay(self, lines: Iterable[str]) -> ReplayStats:
        """Parse and execute workload lines in order; failures are logged and skipped."""
        stats = ReplayStats()
        for line in lines:
            try:
                cmd = parse_command(line)
            except InvalidFormatError as exc:
                stats.skipped += 1
                logger.error("Skipping unparseable line %r: %s", line, exc.message)
                continue
            stats.processed += 1
            try:
                await self.execute(cmd)
            except AppError as exc:
                stats.failed += 1
                logger.warning(
                    "Command execution error! cmd # %3d message: %s", cmd.id, exc.message
                )
        return stats

    # ------------------------------------------------------------------
    # Cash and quotes
    # ------------------------------------------------------------------

    async def _add(self, cmd: Command) -> Account:
        (amount_str,) = _args(cmd, 1)
        amount = parse_cents(amount_str)
        async with self._user_locks[cmd.user_id]:
            return self._ledger.deposit(cmd.user_id, amount)

    async def _quote(self, cmd: Command) -> Quote:
        (stock,) = _args(cmd, 1)
        self._ledger.get_account(cmd.user_id)
        quote = await self._quotes.get_quote(cmd.user_id, stock, cmd.id)
        logger.info("Quote %s for %s: %s", stock, cmd.user_id, cents_to_str(quote.price))
        return quote

    # ------------------------------------------------------------------
    # Reservations (BUY/SELL and their COMMIT/CANCEL)
    # ------------------------------------------------------------------

    async def _buy(self, cmd: Command) -> Action | None:
        stock, amount_str = _args(cmd, 2)
        self._ledger.get_account(cmd.user_id)
        amount = parse_cents(amount_str)
        quote = await self._quotes.get_quote(cmd.user_id, stock, cmd.id)
        units, _ = fits_into(amount, quote.price)
        if units == 0:
            logger.info(
                "%s cannot buy a whole %s share at %s",
                amount_str, stock, cents_to_str(quote.price),
            )
            return None
        async with self._user_locks[cmd.user_id]:
            self._ledger.withdraw(
                cmd.user_id,
                units * quote.price,
                LedgerEntryType.RESERVE_FUNDS,
                stock=stock,
                units=units,
                unit_price=quote.price,
            )
            return self._ledger.push_order(cmd.user_id, OrderSide.BUY, stock, units, quote.price)

    async def _sell(self, cmd: Command) -> Action | None:
        stock, amount_str = _args(cmd, 2)
        account = self._ledger.get_account(cmd.user_id)
        amount = parse_cents(amount_str)
        if account.holding(stock) == 0:
            raise InsufficientSharesError(stock, required=1, held=0)
        quote = await self._quotes.get_quote(cmd.user_id, stock, cmd.id)
        units, _ = fits_into(amount, quote.price)
        if units == 0:
            logger.info(
                "%s does not cover a whole %s share at %s",
                amount_str, stock, cents_to_str(quote.price),
            )
            return None
        async with self._user_locks[cmd.user_id]:
            self._ledger.remove_shares(cmd.user_id, stock, units)
            return self._ledger.push_order(cmd.user_id, OrderSide.SELL, stock, units, quote.price)

    async def _commit_buy(self, cmd: Command) -> Action:
        _args(cmd, 0)
        async with self._user_locks[cmd.user_id]:
            action = self._pop_active(cmd.user_id, OrderSide.BUY)
            # Cash left the balance when the order was placed
            self._ledger.add_shares(
                cmd.user_id,
                action.stock,
                action.units,
                LedgerEntryType.BUY_FILL,
                unit_price=action.unit_price,
            )
        return action

    async def _cancel_buy(self, cmd: Command) -> Action:
        _args(cmd, 0)
        async with self._user_locks[cmd.user_id]:
            action = self._pop(cmd.user_id, OrderSide.BUY)
            self._release(cmd.user_id, OrderSide.BUY, action)
        return action

    async def _commit_sell(self, cmd: Command) -> Action:
        _args(cmd, 0)
        async with self._user_locks[cmd.user_id]:
            action = self._pop_active(cmd.user_id, OrderSide.SELL)
            # Shares left the portfolio when the order was placed
            self._ledger.deposit(
                cmd.user_id,
                action.value,
                LedgerEntryType.SELL_FILL,
                stock=action.stock,
                units=action.units,
                unit_price=action.unit_price,
            )
        return action

    async def _cancel_sell(self, cmd: Command) -> Action:
        _args(cmd, 0)
        async with self._user_locks[cmd.user_id]:
            action = self._pop(cmd.user_id, OrderSide.SELL)
            self._release(cmd.user_id, OrderSide.SELL, action)
        return action

    def _pop(self, user_id: str, side: OrderSide) -> Action:
        action = self._ledger.pop_newest_order(user_id, side)
        if action is None:
            raise NoActiveOrderError(user_id, side.value)
        return action

    def _pop_active(self, user_id: str, side: OrderSide) -> Action:
        """Pop the newest order for a commit; an expired one is discarded."""
        action = self._pop(user_id, side)
        if action.is_expired(self._clock(), self._order_validity):
            if self._refund_expired_orders:
                self._release(user_id, side, action)
            else:
                self._ledger.record_forfeit(
                    user_id, action.stock, action.units, action.unit_price, side
                )
            raise NoActiveOrderError(user_id, side.value)
        return action

    def _release(self, user_id: str, side: OrderSide, action: Action) -> None:
        if side == OrderSide.BUY:
            self._ledger.deposit(
                user_id, action.value, LedgerEntryType.RELEASE_FUNDS, stock=action.stock
            )
        else:
            self._ledger.add_shares(user_id, action.stock, action.units)

    # ------------------------------------------------------------------
    # Auto-requests
    # ------------------------------------------------------------------

    async def _set_amount(self, cmd: Command, side: OrderSide) -> Any:
        stock, amount_str = _args(cmd, 2)
        self._ledger.get_account(cmd.user_id)
        amount = parse_cents(amount_str)
        async with self._user_locks[cmd.user_id]:
            return await self._autorequests.set_amount(side, stock, cmd.user_id, amount)

    async def _set_trigger(self, cmd: Command, side: OrderSide) -> Any:
        stock, price_str = _args(cmd, 2)
        self._ledger.get_account(cmd.user_id)
        price = parse_cents(price_str)
        async with self._user_locks[cmd.user_id]:
            return await self._autorequests.set_trigger(side, stock, cmd.user_id, price)

    async def _cancel_set(self, cmd: Command, side: OrderSide) -> Any:
        (stock,) = _args(cmd, 1)
        self._ledger.get_account(cmd.user_id)
        async with self._user_locks[cmd.user_id]:
            return await self._autorequests.cancel(side, stock, cmd.user_id)

    async def _set_buy_amount(self, cmd: Command) -> Any:
        return await self._set_amount(cmd, OrderSide.BUY)

    async def _set_buy_trigger(self, cmd: Command) -> Any:
        return await self._set_trigger(cmd, OrderSide.BUY)

    async def _cancel_set_buy(self, cmd: Command) -> Any:
        return await self._cancel_set(cmd, OrderSide.BUY)

    async def _set_sell_amount(self, cmd: Command) -> Any:
        return await self._set_amount(cmd, OrderSide.SELL)

    async def _set_sell_trigger(self, cmd: Command) -> Any:
        return await self._set_trigger(cmd, OrderSide.SELL)

    async def _cancel_set_sell(self, cmd: Command) -> Any:
        return await self._cancel_set(cmd, OrderSide.SELL)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def _display_summary(self, cmd: Command) -> AccountSummary:
        _args(cmd, 0)
        account = self._ledger.get_account(cmd.user_id)
        summary = AccountSummary.build(
            account,
            self._autorequests.buy_requests.for_user(cmd.user_id),
            self._autorequests.sell_requests.for_user(cmd.user_id),
        )
        logger.info("Summary: %s", summary.model_dump_json())
        return summary

    async def _dumplog(self, cmd: Command) -> int:
        (filename,) = _args(cmd, 1)
        if cmd.user_id:
            self._ledger.get_account(cmd.user_id)
        if self._audit is None:
            raise InternalError("audit log is not configured")
        try:
            return self._audit.dump(filename, cmd.user_id or None)
        except OSError as exc:
            raise AuditWriteError(filename, exc.strerror or str(exc)) from exc
