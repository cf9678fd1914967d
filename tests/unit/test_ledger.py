"""Unit tests for AccountLedger primitives."""

import pytest

from src.dt_account.domain.ledger import AccountLedger
from src.dt_common.enums import LedgerEntryType, OrderSide
from src.dt_common.errors import (
    AccountExistsError,
    AccountNotFoundError,
    InsufficientFundsError,
    InsufficientSharesError,
    InvalidAmountError,
)
from tests.fakes import FakeClock


class TestCreateAccount:
    def test_initial_state(self, ledger: AccountLedger) -> None:
        account = ledger.create_account("alice")
        assert account.balance == 0
        assert account.portfolio == {}
        assert len(account.buy_orders) == 0
        assert len(account.sell_orders) == 0

    def test_duplicate_raises(self, ledger: AccountLedger) -> None:
        ledger.create_account("alice")
        with pytest.raises(AccountExistsError):
            ledger.create_account("alice")

    def test_get_unknown_raises(self, ledger: AccountLedger) -> None:
        with pytest.raises(AccountNotFoundError):
            ledger.get_account("ghost")


class TestDeposit:
    def test_auto_creates_on_first_deposit(self, ledger: AccountLedger) -> None:
        ledger.deposit("alice", 10000)
        assert ledger.get_account("alice").balance == 10000

    def test_deposits_accumulate(self, ledger: AccountLedger) -> None:
        ledger.deposit("alice", 10000)
        ledger.deposit("alice", 2550)
        assert ledger.get_account("alice").balance == 12550

    @pytest.mark.parametrize("amount", [0, -100])
    def test_non_positive_rejected_and_balance_unchanged(
        self, ledger: AccountLedger, amount: int
    ) -> None:
        ledger.deposit("alice", 10000)
        with pytest.raises(InvalidAmountError):
            ledger.deposit("alice", amount)
        assert ledger.get_account("alice").balance == 10000

    def test_rejected_first_deposit_creates_nothing(self, ledger: AccountLedger) -> None:
        with pytest.raises(InvalidAmountError):
            ledger.deposit("alice", 0)
        assert ledger.has_account("alice") is False

    def test_internal_credit_requires_account(self, ledger: AccountLedger) -> None:
        with pytest.raises(AccountNotFoundError):
            ledger.deposit("ghost", 100, LedgerEntryType.RELEASE_FUNDS)

    def test_no_auto_create_when_disabled(self, clock: FakeClock) -> None:
        strict = AccountLedger(clock=clock, auto_create=False)
        with pytest.raises(AccountNotFoundError):
            strict.deposit("alice", 100)

    def test_journals_entry(self, ledger: AccountLedger) -> None:
        ledger.deposit("alice", 10000)
        entry = ledger.entries[-1]
        assert entry.entry_type == "DEPOSIT"
        assert entry.amount == 10000
        assert entry.balance_after == 10000


class TestWithdraw:
    def test_debits(self, ledger: AccountLedger) -> None:
        ledger.deposit("alice", 10000)
        ledger.withdraw("alice", 9000)
        assert ledger.get_account("alice").balance == 1000
        assert ledger.entries[-1].amount == -9000

    def test_overdraw_raises_without_mutation(self, ledger: AccountLedger) -> None:
        ledger.deposit("alice", 10000)
        entries_before = len(ledger.entries)
        with pytest.raises(InsufficientFundsError):
            ledger.withdraw("alice", 10001)
        assert ledger.get_account("alice").balance == 10000
        assert len(ledger.entries) == entries_before

    def test_unknown_account(self, ledger: AccountLedger) -> None:
        with pytest.raises(AccountNotFoundError):
            ledger.withdraw("ghost", 1)


class TestShares:
    def test_add_and_remove(self, ledger: AccountLedger) -> None:
        ledger.create_account("alice")
        ledger.add_shares("alice", "ABC", 5)
        ledger.remove_shares("alice", "ABC", 2)
        assert ledger.get_account("alice").holding("ABC") == 3

    def test_remove_all_drops_key(self, ledger: AccountLedger) -> None:
        ledger.create_account("alice")
        ledger.add_shares("alice", "ABC", 5)
        ledger.remove_shares("alice", "ABC", 5)
        assert "ABC" not in ledger.get_account("alice").portfolio

    def test_remove_more_than_held_is_all_or_nothing(self, ledger: AccountLedger) -> None:
        ledger.create_account("alice")
        ledger.add_shares("alice", "ABC", 5)
        with pytest.raises(InsufficientSharesError):
            ledger.remove_shares("alice", "ABC", 6)
        assert ledger.get_account("alice").holding("ABC") == 5

    def test_remove_unheld_stock(self, ledger: AccountLedger) -> None:
        ledger.create_account("alice")
        with pytest.raises(InsufficientSharesError):
            ledger.remove_shares("alice", "XYZ", 1)

    def test_zero_units_rejected(self, ledger: AccountLedger) -> None:
        ledger.create_account("alice")
        with pytest.raises(InvalidAmountError):
            ledger.add_shares("alice", "ABC", 0)


class TestOrders:
    def test_push_stamps_clock(self, ledger: AccountLedger, clock: FakeClock) -> None:
        ledger.create_account("alice")
        action = ledger.push_order("alice", OrderSide.BUY, "ABC", 3, 3000)
        assert action.created_at == clock.now
        assert action.value == 9000

    def test_pop_newest_per_side(self, ledger: AccountLedger) -> None:
        ledger.create_account("alice")
        ledger.push_order("alice", OrderSide.BUY, "AAA", 1, 100)
        newest = ledger.push_order("alice", OrderSide.BUY, "BBB", 1, 100)
        ledger.push_order("alice", OrderSide.SELL, "CCC", 1, 100)
        assert ledger.pop_newest_order("alice", OrderSide.BUY) is newest
        assert len(ledger.get_account("alice").sell_orders) == 1

    def test_pop_empty_returns_none(self, ledger: AccountLedger) -> None:
        ledger.create_account("alice")
        assert ledger.pop_newest_order("alice", OrderSide.SELL) is None

    def test_record_forfeit_moves_nothing(self, ledger: AccountLedger) -> None:
        ledger.deposit("alice", 500)
        entry = ledger.record_forfeit("alice", "ABC", 3, 3000, OrderSide.BUY)
        assert entry.entry_type == "FORFEIT_FUNDS"
        assert entry.value == 9000
        assert ledger.get_account("alice").balance == 500
