"""Tests for dt_common.enums: values must match the workload and audit log spelling."""

from src.dt_common.enums import CommandType, LedgerEntryType, OrderSide


class TestAllEnumsAreStr:
    """All enums inherit from (str, Enum) so they compare equal to their wire text."""

    def test_command_type_is_str(self) -> None:
        assert isinstance(CommandType.COMMIT_BUY, str)
        assert CommandType.COMMIT_BUY == "COMMIT_BUY"

    def test_order_side_is_str(self) -> None:
        assert OrderSide.SELL == "SELL"


class TestCommandType:
    def test_all_values(self) -> None:
        expected = {
            "ADD", "QUOTE", "BUY", "COMMIT_BUY", "CANCEL_BUY", "SELL", "COMMIT_SELL",
            "CANCEL_SELL", "SET_BUY_AMOUNT", "CANCEL_SET_BUY", "SET_BUY_TRIGGER",
            "SET_SELL_AMOUNT", "SET_SELL_TRIGGER", "CANCEL_SET_SELL", "DISPLAY_SUMMARY",
            "DUMPLOG",
        }
        assert {c.value for c in CommandType} == expected

    def test_from_name_is_case_insensitive(self) -> None:
        assert CommandType.from_name("commit_buy") is CommandType.COMMIT_BUY
        assert CommandType.from_name(" Quote ") is CommandType.QUOTE

    def test_from_name_unknown(self) -> None:
        assert CommandType.from_name("FROB") is None


class TestLedgerEntryType:
    def test_all_values(self) -> None:
        expected = {
            "DEPOSIT", "RESERVE_FUNDS", "RELEASE_FUNDS", "RESERVE_SHARES", "RELEASE_SHARES",
            "BUY_FILL", "SELL_FILL", "FORFEIT_FUNDS", "FORFEIT_SHARES",
        }
        assert {e.value for e in LedgerEntryType} == expected
