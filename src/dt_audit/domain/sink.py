"""Audit sink Protocol: the core writes events, never reads them back."""

from pathlib import Path
from typing import Protocol

from src.dt_command.domain.models import Command
from src.dt_quote.domain.models import Quote


class AuditSinkProtocol(Protocol):
    def log_command(self, cmd: Command) -> None: ...

    def log_quote_hit(self, quote: Quote) -> None: ...

    def log_error(self, cmd: Command, message: str) -> None: ...

    def dump(self, path: str | Path, user_id: str | None = None) -> int: ...

    def close(self) -> None: ...
