"""Audit log records: one per executed command, quote server hit, or failure.

Field names follow the course audit log schema; to_xml() renders the
element exactly as the log file carries it (optional fields omitted).
"""

from xml.sax.saxutils import escape

from pydantic import BaseModel

from src.dt_command.domain.models import Command
from src.dt_common.cents import cents_to_str
from src.dt_common.enums import CommandType
from src.dt_quote.domain.models import Quote

_STOCK_AND_FUNDS = {
    CommandType.BUY,
    CommandType.SELL,
    CommandType.SET_BUY_AMOUNT,
    CommandType.SET_BUY_TRIGGER,
    CommandType.SET_SELL_AMOUNT,
    CommandType.SET_SELL_TRIGGER,
}
_STOCK_ONLY = {CommandType.QUOTE, CommandType.CANCEL_SET_BUY, CommandType.CANCEL_SET_SELL}


def _arg(cmd: Command, index: int) -> str | None:
    return cmd.args[index] if len(cmd.args) > index else None


def _element(tag: str, fields: list[tuple[str, object | None]]) -> str:
    lines = [f"\t<{tag}>"]
    lines.extend(
        f"\t\t<{name}>{escape(str(value))}</{name}>"
        for name, value in fields
        if value is not None
    )
    lines.append(f"\t</{tag}>")
    return "\n".join(lines)


class UserCommandEvent(BaseModel):
    timestamp: int  # unix ms
    server: str
    transaction_num: int
    command: str
    username: str | None = None
    stock_symbol: str | None = None
    filename: str | None = None
    funds: str | None = None

    @classmethod
    def from_command(cls, cmd: Command, server: str, timestamp: int) -> "UserCommandEvent":
        stock = funds = filename = None
        if cmd.kind == CommandType.ADD:
            funds = _arg(cmd, 0)
        elif cmd.kind in _STOCK_AND_FUNDS:
            stock, funds = _arg(cmd, 0), _arg(cmd, 1)
        elif cmd.kind in _STOCK_ONLY:
            stock = _arg(cmd, 0)
        elif cmd.kind == CommandType.DUMPLOG:
            filename = _arg(cmd, 0)
        return cls(
            timestamp=timestamp,
            server=server,
            transaction_num=cmd.id,
            command=cmd.kind.value,
            username=cmd.user_id or None,
            stock_symbol=stock,
            filename=filename,
            funds=funds,
        )

    def _fields(self) -> list[tuple[str, object | None]]:
        return [
            ("timestamp", self.timestamp),
            ("server", self.server),
            ("transactionNum", self.transaction_num),
            ("command", self.command),
            ("username", self.username),
            ("stockSymbol", self.stock_symbol),
            ("filename", self.filename),
            ("funds", self.funds),
        ]

    def to_xml(self) -> str:
        return _element("userCommand", self._fields())


class ErrorEvent(UserCommandEvent):
    error_message: str

    def to_xml(self) -> str:
        return _element("errorEvent", [*self._fields(), ("errorMessage", self.error_message)])


class QuoteServerEvent(BaseModel):
    timestamp: int  # unix ms
    server: str
    transaction_num: int | None
    price: str
    stock_symbol: str
    username: str
    quote_server_time: int  # unix ms
    cryptokey: str

    @classmethod
    def from_quote(cls, quote: Quote, server: str, timestamp: int) -> "QuoteServerEvent":
        return cls(
            timestamp=timestamp,
            server=server,
            transaction_num=quote.transaction_id,
            price=cents_to_str(quote.price),
            stock_symbol=quote.stock,
            username=quote.user_id,
            quote_server_time=int(quote.timestamp.timestamp() * 1000),
            cryptokey=quote.cryptokey,
        )

    def to_xml(self) -> str:
        return _element(
            "quoteServer",
            [
                ("timestamp", self.timestamp),
                ("server", self.server),
                ("transactionNum", self.transaction_num),
                ("price", self.price),
                ("stockSymbol", self.stock_symbol),
                ("username", self.username),
                ("quoteServerTime", self.quote_server_time),
                ("cryptokey", self.cryptokey),
            ],
        )
