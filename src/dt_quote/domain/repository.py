"""Quote source Protocol: dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real TCP client.
"""

from typing import Protocol

from src.dt_quote.domain.models import Quote


class QuoteSourceProtocol(Protocol):
    async def fetch(
        self, user_id: str, stock: str, transaction_id: int | None = None
    ) -> Quote: ...
