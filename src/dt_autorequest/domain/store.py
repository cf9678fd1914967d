from collections.abc import Iterator
from dataclasses import dataclass, field

from src.dt_autorequest.domain.models import AutoRequest
from src.dt_common.errors import NoPendingRequestError


@dataclass
class AutoRequestStore:
    """Pending auto-requests of one side, keyed stock -> user_id."""

    side: str
    _requests: dict[str, dict[str, AutoRequest]] = field(default_factory=dict)

    def get(self, stock: str, user_id: str) -> AutoRequest | None:
        return self._requests.get(stock, {}).get(user_id)

    def require(self, stock: str, user_id: str) -> AutoRequest:
        request = self.get(stock, user_id)
        if request is None:
            raise NoPendingRequestError(self.side, stock, user_id)
        return request

    def put(self, request: AutoRequest) -> None:
        self._requests.setdefault(request.stock, {})[request.user_id] = request

    def remove(self, stock: str, user_id: str) -> AutoRequest:
        request = self.require(stock, user_id)
        by_user = self._requests[stock]
        del by_user[user_id]
        if not by_user:
            del self._requests[stock]
        return request

    def for_stock(self, stock: str) -> list[AutoRequest]:
        """Snapshot, safe to iterate while firings remove entries."""
        return list(self._requests.get(stock, {}).values())

    def for_user(self, user_id: str) -> list[AutoRequest]:
        return [r for r in self if r.user_id == user_id]

    def __iter__(self) -> Iterator[AutoRequest]:
        for by_user in self._requests.values():
            yield from by_user.values()

    def __len__(self) -> int:
        return sum(len(by_user) for by_user in self._requests.values())
