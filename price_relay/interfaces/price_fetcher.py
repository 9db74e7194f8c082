"""Price fetcher protocol for spot price sources."""
from typing import Protocol

from ..models import PriceReport


class PriceFetcher(Protocol):
    """Abstract interface for fetching and normalizing a token price."""

    async def fetch(self, address: str) -> str: ...

    def normalize(self, raw: str) -> PriceReport: ...
