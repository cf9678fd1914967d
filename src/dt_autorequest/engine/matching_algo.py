"""Trigger matching for a single auto-request against a fresh quote price."""
import logging

from src.dt_account.domain.ledger import AccountLedger
from src.dt_autorequest.domain.models import AutoFill, AutoRequest
from src.dt_common.cents import fits_into
from src.dt_common.enums import LedgerEntryType, OrderSide
from src.dt_common.errors import InsufficientSharesError

logger = logging.getLogger(__name__)


def should_fire(request: AutoRequest, price: int) -> bool:
    """Buy when the price has fallen to the trigger, sell when it has risen to it."""
    if not request.is_armed:
        return False
    if request.side == OrderSide.BUY:
        return price <= request.trigger
    return price >= request.trigger


def fire_buy(request: AutoRequest, price: int, ledger: AccountLedger) -> AutoFill | None:
    """Convert the reserved cash into whole shares; the remainder goes back to the balance."""
    units, remainder = fits_into(request.amount, price)
    if units == 0:
        return None
    ledger.add_shares(
        request.user_id, request.stock, units, LedgerEntryType.BUY_FILL, unit_price=price
    )
    if remainder > 0:
        ledger.deposit(
            request.user_id, remainder, LedgerEntryType.RELEASE_FUNDS, stock=request.stock
        )
    return AutoFill(
        stock=request.stock,
        user_id=request.user_id,
        side=OrderSide.BUY.value,
        units=units,
        unit_price=price,
        refunded=remainder,
    )


def fire_sell(
    request: AutoRequest, price: int, ledger: AccountLedger, reserves_shares: bool
) -> AutoFill | None:
    """Sell whole shares worth up to request.amount at the fresh price.

    With reserves_shares the shares come out of the reservation taken at
    arming and the unsold rest is returned; otherwise they are removed from
    the portfolio now and the firing is skipped if they are not held.
    """
    units, _ = fits_into(request.amount, price)
    returned = 0
    if reserves_shares:
        units = min(units, request.reserved_units)
        if units == 0:
            return None
        returned = request.reserved_units - units
    else:
        if units == 0:
            return None
        try:
            ledger.remove_shares(request.user_id, request.stock, units)
        except InsufficientSharesError as exc:
            logger.info("Skipping sell trigger for %s: %s", request.user_id, exc.message)
            return None

    proceeds = units * price
    ledger.deposit(
        request.user_id,
        proceeds,
        LedgerEntryType.SELL_FILL,
        stock=request.stock,
        units=units,
        unit_price=price,
    )
    if returned > 0:
        ledger.add_shares(request.user_id, request.stock, returned)
    return AutoFill(
        stock=request.stock,
        user_id=request.user_id,
        side=OrderSide.SELL.value,
        units=units,
        unit_price=price,
        returned_units=returned,
    )
