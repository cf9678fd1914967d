"""Command domain model: one parsed workload line."""
from dataclasses import dataclass, field

from src.dt_common.enums import CommandType


@dataclass
class Command:
    id: int  # transaction number from the workload file
    kind: CommandType
    user_id: str  # "" for the admin DUMPLOG
    args: list[str] = field(default_factory=list)
