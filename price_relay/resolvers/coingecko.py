"""CoinGecko coin lookup."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any, Optional

import aiohttp
import certifi

from ..config import LookupConfig
from ..errors import AddressLookupError

logger = logging.getLogger(__name__)

COIN_NOT_FOUND = "coin not found"


class CoinGeckoResolver:
    """Resolve CoinGecko coin ids to contract addresses on one platform."""

    def __init__(self, config: LookupConfig | None = None) -> None:
        config = config or LookupConfig()
        self.base_url = config.base_url.rstrip("/")
        self.platform = config.platform
        self.timeout = config.timeout

    async def resolve(self, identifier: str) -> Optional[str]:
        """Return the contract address, or None if CoinGecko does not know it.

        Raises:
            AddressLookupError: when the call fails or the body is not a JSON object.
        """
        url = f"{self.base_url}/{identifier.lower()}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    # Unknown coins come back as 404 with an error body, so
                    # the body is inspected before the status.
                    status = response.status
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AddressLookupError(f"Error calling {url}: {e}") from e
        except ValueError as e:
            raise AddressLookupError(f"Error parsing JSON response from {url}: {e}") from e

        return self._extract_address(identifier, status, data)

    def _extract_address(
        self, identifier: str, status: int, data: Any
    ) -> Optional[str]:
        if not isinstance(data, dict):
            raise AddressLookupError(f"Unexpected response for {identifier}: {data!r}")

        error = data.get("error")
        if error == COIN_NOT_FOUND:
            logger.warning("Token not found: %s. API response: %s", identifier, error)
            return None

        if status != 200:
            logger.warning(
                "Contract address not found for token: %s (HTTP %s: %s)",
                identifier,
                status,
                error or data,
            )
            return None

        platforms = data.get("platforms")
        address = platforms.get(self.platform) if isinstance(platforms, dict) else None
        if not isinstance(address, str) or not address:
            logger.warning("Contract address not found for token: %s", identifier)
            return None

        return address
