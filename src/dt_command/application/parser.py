"""Workload file parsing.

Lines look like `[12] BUY,oY01WVirLr,S,276.83`; the admin dump is
`[100] DUMPLOG,./testLOG` with no user id.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

from src.dt_command.domain.models import Command
from src.dt_common.enums import CommandType
from src.dt_common.errors import InvalidFormatError, UnknownCommandError

logger = logging.getLogger(__name__)


def parse_command(line: str) -> Command:
    # `[12] BUY,u,S,1.00` -> `12,BUY,u,S,1.00`
    csv = line.strip().replace("[", "", 1).replace("] ", ",", 1)
    # Workload files carry stray spaces inside fields
    csv = csv.replace(" ", "")
    parts = csv.split(",")
    if len(parts) < 3:
        raise InvalidFormatError(f"too few fields in {line.strip()!r}")

    try:
        cmd_id = int(parts[0])
    except ValueError:
        raise InvalidFormatError(f"transaction number {parts[0]!r} is not an integer") from None

    kind = CommandType.from_name(parts[1])
    if kind is None:
        raise UnknownCommandError(parts[1])

    if kind == CommandType.DUMPLOG and len(parts) == 3:
        # Admin dump: the only field is the file name
        parsed = Command(id=cmd_id, kind=kind, user_id="", args=[parts[2]])
    else:
        parsed = Command(id=cmd_id, kind=kind, user_id=parts[2], args=parts[3:])
    logger.debug("Parsed as: %s", parsed)
    return parsed


def iter_workload(path: str | Path) -> Iterator[str]:
    """Yield non-blank stripped lines. OSError while reading propagates."""
    with Path(path).open(encoding="utf-8") as fh:
        for line in fh:
            stripped = line.strip()
            if stripped:
                yield stripped
