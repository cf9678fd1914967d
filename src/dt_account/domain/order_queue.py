from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.dt_account.domain.models import Action


@dataclass
class OrderQueue:
    """Reservations of one side for one account. Commit/cancel act on the newest (LIFO)."""

    _actions: deque["Action"] = field(default_factory=deque)

    def push(self, action: "Action") -> None:
        self._actions.append(action)

    def pop_newest(self) -> "Action | None":
        if not self._actions:
            return None
        return self._actions.pop()

    def peek_newest(self) -> "Action | None":
        return self._actions[-1] if self._actions else None

    def reserved_value(self) -> int:
        return sum(a.value for a in self._actions)

    def reserved_units(self, stock: str) -> int:
        return sum(a.units for a in self._actions if a.stock == stock)

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator["Action"]:
        # Oldest first
        return iter(self._actions)
