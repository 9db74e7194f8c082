"""Address resolver protocol mapping a token identifier to its contract address."""
from typing import Optional, Protocol


class AddressResolver(Protocol):
    """Abstract interface for looking up a token's contract address.

    ``None`` means the provider does not know the token; a failing provider
    raises ``AddressLookupError`` instead.
    """

    async def resolve(self, identifier: str) -> Optional[str]: ...
