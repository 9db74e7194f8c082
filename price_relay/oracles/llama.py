"""DefiLlama coins API price fetcher."""
from __future__ import annotations

import asyncio
import json
import logging
import math
import ssl
from datetime import datetime, timezone
from typing import Any

import aiohttp
import certifi

from ..config import PricingConfig
from ..errors import FetchError, FormatError
from ..models import PriceReport

logger = logging.getLogger(__name__)


class LlamaPriceFetcher:
    """Fetch current token prices from DefiLlama by contract address."""

    def __init__(self, config: PricingConfig | None = None) -> None:
        config = config or PricingConfig()
        self.base_url = config.base_url.rstrip("/")
        self.chain = config.chain
        self.timeout = config.timeout

    def price_url(self, address: str) -> str:
        return f"{self.base_url}/{self.chain}:{address}"

    async def fetch(self, address: str) -> str:
        """Return the raw response body for ``address``.

        Raises:
            FetchError: on transport errors, timeouts, a non-200 status or a
                body that is not valid text.
        """
        url = self.price_url(address)

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        raise FetchError(f"Error calling {url}: HTTP {response.status}")
                    return await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"Error calling {url}: {e}") from e
        except UnicodeDecodeError as e:
            raise FetchError(f"Error decoding response from {url}: {e}") from e

    @staticmethod
    def normalize(raw: str) -> PriceReport:
        """Extract symbol, price and timestamp from the first coin in ``raw``.

        Fails closed: every field is required and nothing is defaulted.
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise FormatError(f"JSON parsing error: {e}") from e

        coins = data.get("coins") if isinstance(data, dict) else None
        if coins is None:
            raise FormatError("Missing 'coins' key in response")
        if not isinstance(coins, dict) or not coins:
            raise FormatError("No coins found")

        coin: dict[str, Any] = next(iter(coins.values()))
        if not isinstance(coin, dict):
            raise FormatError("No coins found")

        symbol = coin.get("symbol")
        if not isinstance(symbol, str):
            raise FormatError("Missing symbol in response")

        price = coin.get("price")
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise FormatError("Missing price in response")
        try:
            value = float(price)
        except OverflowError as e:
            raise FormatError("Non-finite price in response: out of float range") from e
        if not math.isfinite(value):
            raise FormatError(f"Non-finite price in response: {value}")

        ts = coin.get("timestamp")
        if isinstance(ts, bool) or not isinstance(ts, int):
            raise FormatError("Missing timestamp in response")
        try:
            moment = datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise FormatError(f"Invalid timestamp: {ts}") from e

        report = PriceReport(symbol=symbol, price=value, timestamp=moment.isoformat())
        logger.debug("Processed response: %s", report)
        return report
