"""XML audit log writer.

The live file is opened once per run as <dir>/<YYYYMMDDTHHMMSS>.xml, gets the
XML header immediately and the closing </log> on close(). Every record is
also kept in memory so DUMPLOG can write a standalone copy at any point.
"""

import logging
from pathlib import Path
from typing import TextIO

from src.dt_audit.domain.events import ErrorEvent, QuoteServerEvent, UserCommandEvent
from src.dt_command.domain.models import Command
from src.dt_common.datetime_utils import Clock, to_unix_millis, utc_now
from src.dt_quote.domain.models import Quote

logger = logging.getLogger(__name__)

_HEADER = '<?xml version="1.0"?>\n<log>\n'
_FOOTER = "</log>\n"


class XmlAuditLog:
    def __init__(
        self,
        path: str | Path | None = None,
        server: str = "UNKNOWN",
        clock: Clock = utc_now,
    ) -> None:
        self._server = server
        self._clock = clock
        self._records: list[tuple[str | None, str]] = []  # (username, element)
        self._file: TextIO | None = None
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            self._file = self.path.open("w", encoding="utf-8")
            self._file.write(_HEADER)

    @classmethod
    def open_in_dir(
        cls, directory: str | Path, server: str = "UNKNOWN", clock: Clock = utc_now
    ) -> "XmlAuditLog":
        """Create the directory if needed and open a file named after the current time."""
        out_dir = Path(directory)
        if not out_dir.exists():
            logger.debug("Creating log directory at %s", out_dir)
            out_dir.mkdir(parents=True)
        name = clock().strftime("%Y%m%dT%H%M%S") + ".xml"
        return cls(out_dir / name, server=server, clock=clock)

    @property
    def record_count(self) -> int:
        return len(self._records)

    def log_command(self, cmd: Command) -> None:
        event = UserCommandEvent.from_command(cmd, self._server, self._now_ms())
        self._write(event.username, event.to_xml())

    def log_quote_hit(self, quote: Quote) -> None:
        event = QuoteServerEvent.from_quote(quote, self._server, self._now_ms())
        self._write(event.username, event.to_xml())

    def log_error(self, cmd: Command, message: str) -> None:
        base = UserCommandEvent.from_command(cmd, self._server, self._now_ms())
        event = ErrorEvent(**base.model_dump(), error_message=message)
        self._write(event.username, event.to_xml())

    def dump(self, path: str | Path, user_id: str | None = None) -> int:
        """Write the records so far as a complete document; user_id filters to one user."""
        elements = [
            element for username, element in self._records
            if user_id is None or username == user_id
        ]
        with Path(path).open("w", encoding="utf-8") as fh:
            fh.write(_HEADER)
            for element in elements:
                fh.write(element + "\n")
            fh.write(_FOOTER)
        logger.info("Dumped %d audit records to %s", len(elements), path)
        return len(elements)

    def close(self) -> None:
        if self._file is not None:
            self._file.write(_FOOTER)
            self._file.close()
            self._file = None

    def _write(self, username: str | None, element: str) -> None:
        self._records.append((username, element))
        if self._file is not None:
            self._file.write(element + "\n")

    def _now_ms(self) -> int:
        return to_unix_millis(self._clock())
