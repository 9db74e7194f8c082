"""Feeder pool: one feeder per resolvable token, all run together."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Sequence

from ..errors import AddressLookupError, ResolutionError
from ..interfaces.address_resolver import AddressResolver
from ..interfaces.price_fetcher import PriceFetcher
from ..models import TRIGGER, Asset
from .client import FeederClient

logger = logging.getLogger(__name__)


class FeederPool:
    """Collection of feeders that run concurrently and fail independently."""

    def __init__(self, feeders: Sequence[FeederClient] = ()) -> None:
        self.feeders: list[FeederClient] = list(feeders)

    def __len__(self) -> int:
        return len(self.feeders)

    @classmethod
    async def build(
        cls,
        identifiers: Iterable[str],
        resolver: AddressResolver,
        fetcher: PriceFetcher,
        relay_url: str,
        trigger: str = TRIGGER,
    ) -> "FeederPool":
        """Resolve each identifier in order and create a feeder for each hit.

        Unknown tokens are skipped with a warning; duplicates are kept.

        Raises:
            ResolutionError: if the lookup service itself fails.
        """
        feeders: list[FeederClient] = []
        for identifier in identifiers:
            try:
                address = await resolver.resolve(identifier)
            except AddressLookupError as e:
                raise ResolutionError(f"Cannot resolve '{identifier}': {e}") from e

            if address is None:
                logger.warning("Skipping token %s: no contract address", identifier)
                continue

            feeders.append(
                FeederClient(Asset(identifier, address), relay_url, fetcher, trigger)
            )
            logger.info("Client created: %s", identifier)

        return cls(feeders)

    async def run_all(self) -> None:
        """Run every feeder concurrently and wait for all of them to finish."""
        if not self.feeders:
            logger.warning("No feeders to run")
            return

        tasks = [
            asyncio.create_task(feeder.run(), name=f"feeder-{feeder.name}")
            for feeder in self.feeders
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for feeder, result in zip(self.feeders, results):
            if isinstance(result, BaseException):
                logger.error("Error in client task %s: %s", feeder.name, result)
