"""Feeder client answering relay triggers with the price of one token."""
from __future__ import annotations

import asyncio
import logging

import aiohttp
from aiohttp import WSMsgType

from ..errors import FetchError, FormatError, RelayConnectionError
from ..interfaces.price_fetcher import PriceFetcher
from ..models import TRIGGER, Asset

logger = logging.getLogger(__name__)


class FeederClient:
    """Hold one relay connection for one asset and reply to each trigger.

    Replies go back on the same connection: the price report as JSON text on
    success, or a plain error string when the price could not be produced.
    """

    def __init__(
        self,
        asset: Asset,
        relay_url: str,
        fetcher: PriceFetcher,
        trigger: str = TRIGGER,
    ) -> None:
        self.asset = asset
        self.relay_url = relay_url
        self.trigger = trigger
        self._fetcher = fetcher

    @property
    def name(self) -> str:
        return self.asset.name

    async def run(self) -> None:
        """Connect once and serve triggers until the relay closes the socket.

        Raises:
            RelayConnectionError: if connecting, reading or replying fails.
        """
        try:
            async with aiohttp.ClientSession() as session:
                async with session.ws_connect(self.relay_url) as ws:
                    logger.info("Client connected with Token: %s", self.name)
                    await self._listen(ws)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RelayConnectionError(
                f"TCP Error: connection to {self.relay_url} failed: {e}"
            ) from e
        logger.info("Connection closed for token %s", self.name)

    async def _listen(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                if msg.data == self.trigger:
                    await self._answer(ws)
            elif msg.type == WSMsgType.ERROR:
                raise RelayConnectionError(f"WebSocket Message Error: {ws.exception()}")

    async def _answer(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        reply = await self.build_reply()
        try:
            await ws.send_str(reply)
        except (ConnectionError, RuntimeError) as e:
            raise RelayConnectionError(f"WebSocket Message Error: error sending message: {e}") from e
        logger.debug("Message sent successfully for %s", self.name)

    async def build_reply(self) -> str:
        """Fetch and normalize the current price into the reply text."""
        try:
            raw = await self._fetcher.fetch(self.asset.address)
        except FetchError as e:
            logger.error("Error calling the API for %s: %s", self.name, e)
            return f"Error calling API: {e}"

        try:
            report = self._fetcher.normalize(raw)
        except FormatError as e:
            logger.error("Error processing API response for %s: %s", self.name, e)
            return f"Error processing response: {e}"

        return report.to_json()
