"""Pydantic schemas for DISPLAY_SUMMARY and replay totals."""

from pydantic import BaseModel, Field

from src.dt_account.domain.models import Account, Action
from src.dt_autorequest.domain.models import AutoRequest
from src.dt_common.cents import cents_to_display


class OrderItem(BaseModel):
    stock: str
    units: int
    unit_price_cents: int
    unit_price_display: str
    created_at: str

    @classmethod
    def from_action(cls, action: Action) -> "OrderItem":
        return cls(
            stock=action.stock,
            units=action.units,
            unit_price_cents=action.unit_price,
            unit_price_display=cents_to_display(action.unit_price),
            created_at=action.created_at.isoformat(),
        )


class AutoRequestItem(BaseModel):
    stock: str
    amount_cents: int
    amount_display: str
    trigger_cents: int
    armed: bool
    reserved_units: int

    @classmethod
    def from_request(cls, request: AutoRequest) -> "AutoRequestItem":
        return cls(
            stock=request.stock,
            amount_cents=request.amount,
            amount_display=cents_to_display(request.amount),
            trigger_cents=request.trigger,
            armed=request.is_armed,
            reserved_units=request.reserved_units,
        )


class AccountSummary(BaseModel):
    user_id: str
    balance_cents: int
    balance_display: str
    portfolio: dict[str, int]
    buy_orders: list[OrderItem]
    sell_orders: list[OrderItem]
    buy_triggers: list[AutoRequestItem]
    sell_triggers: list[AutoRequestItem]

    @classmethod
    def build(
        cls,
        account: Account,
        buy_requests: list[AutoRequest],
        sell_requests: list[AutoRequest],
    ) -> "AccountSummary":
        return cls(
            user_id=account.user_id,
            balance_cents=account.balance,
            balance_display=cents_to_display(account.balance),
            portfolio=dict(sorted(account.portfolio.items())),
            buy_orders=[OrderItem.from_action(a) for a in account.buy_orders],
            sell_orders=[OrderItem.from_action(a) for a in account.sell_orders],
            buy_triggers=[AutoRequestItem.from_request(r) for r in buy_requests],
            sell_triggers=[AutoRequestItem.from_request(r) for r in sell_requests],
        )


class ReplayStats(BaseModel):
    processed: int = 0
    failed: int = 0
    skipped: int = Field(default=0, description="Lines that did not parse")
