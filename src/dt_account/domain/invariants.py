"""Conservation checks over the ledger journal (no money or shares created or lost)."""
import logging
from collections import defaultdict
from collections.abc import Iterable

from src.dt_account.domain.ledger import AccountLedger
from src.dt_autorequest.domain.models import AutoRequest
from src.dt_common.enums import LedgerEntryType

logger = logging.getLogger(__name__)

_SHARES_IN = {LedgerEntryType.RELEASE_SHARES.value, LedgerEntryType.BUY_FILL.value}


def verify_ledger_invariants(
    ledger: AccountLedger,
    buy_requests: Iterable[AutoRequest] = (),
    sell_requests: Iterable[AutoRequest] = (),
) -> list[str]:
    """Returns list of violation strings (empty when the ledger is consistent).

    INV-1: balances and holdings are non-negative
    INV-2: each balance / holding equals the sum of its journal entries
    INV-G: cash held + cash reserved == deposits - bought + sold - forfeited
    INV-S: shares held + shares reserved == bought - sold - forfeited, per user and stock
    """
    violations: list[str] = []
    buy_requests = list(buy_requests)
    sell_requests = list(sell_requests)

    journal_cash: dict[str, int] = defaultdict(int)
    journal_shares: dict[tuple[str, str], int] = defaultdict(int)
    acquired: dict[tuple[str, str], int] = defaultdict(int)
    deposits = bought = sold = forfeited = 0

    for e in ledger.entries:
        journal_cash[e.user_id] += e.amount
        if e.stock is not None:
            key = (e.user_id, e.stock)
            if e.entry_type in _SHARES_IN:
                journal_shares[key] += e.units
            elif e.entry_type == LedgerEntryType.RESERVE_SHARES.value:
                journal_shares[key] -= e.units

        if e.entry_type == LedgerEntryType.DEPOSIT.value:
            deposits += e.amount
        elif e.entry_type == LedgerEntryType.BUY_FILL.value:
            bought += e.value
            acquired[(e.user_id, e.stock or "")] += e.units
        elif e.entry_type == LedgerEntryType.SELL_FILL.value:
            sold += e.value
            acquired[(e.user_id, e.stock or "")] -= e.units
        elif e.entry_type == LedgerEntryType.FORFEIT_FUNDS.value:
            forfeited += e.value
        elif e.entry_type == LedgerEntryType.FORFEIT_SHARES.value:
            acquired[(e.user_id, e.stock or "")] -= e.units

    held_cash = 0
    reserved_cash = sum(r.amount for r in buy_requests)
    for account in ledger.accounts.values():
        uid = account.user_id
        held_cash += account.balance
        reserved_cash += account.buy_orders.reserved_value()

        if account.balance < 0:
            violations.append(f"INV-1 violated: {uid} balance={account.balance} < 0")
        if account.balance != journal_cash[uid]:
            violations.append(
                f"INV-2 violated: {uid} balance={account.balance} "
                f"!= journal sum={journal_cash[uid]}"
            )
        stocks = set(account.portfolio) | {s for (u, s) in journal_shares if u == uid}
        for stock in stocks:
            held = account.holding(stock)
            if held < 0:
                violations.append(f"INV-1 violated: {uid} holds {held} {stock}")
            if held != journal_shares[(uid, stock)]:
                violations.append(
                    f"INV-2 violated: {uid} holds {held} {stock} "
                    f"!= journal sum={journal_shares[(uid, stock)]}"
                )

    expected_cash = deposits - bought + sold - forfeited
    if held_cash + reserved_cash != expected_cash:
        violations.append(
            f"INV-G violated: held({held_cash}) + reserved({reserved_cash}) "
            f"= {held_cash + reserved_cash} != deposits({deposits}) - bought({bought}) "
            f"+ sold({sold}) - forfeited({forfeited}) = {expected_cash}"
        )

    reserved_units: dict[tuple[str, str], int] = defaultdict(int)
    for r in sell_requests:
        reserved_units[(r.user_id, r.stock)] += r.reserved_units
    keys = set(acquired) | set(reserved_units) | {
        (a.user_id, s) for a in ledger.accounts.values() for s in a.portfolio
    }
    for uid, stock in sorted(keys):
        account = ledger.accounts.get(uid)
        if account is None:
            continue
        on_hand = (
            account.holding(stock)
            + account.sell_orders.reserved_units(stock)
            + reserved_units[(uid, stock)]
        )
        if on_hand != acquired[(uid, stock)]:
            violations.append(
                f"INV-S violated: {uid}/{stock} held+reserved={on_hand} "
                f"!= bought-sold-forfeited={acquired[(uid, stock)]}"
            )

    for msg in violations:
        logger.error(msg)
    return violations
