"""Per-connection message pump between the broadcaster and one WebSocket."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from aiohttp import WSMsgType, web

from ..errors import RelayConnectionError
from .broadcast import ChannelClosed, Subscription

logger = logging.getLogger(__name__)

ReplyHandler = Callable[[str], Awaitable[None]]


class ConnectionPump:
    """Forward broadcast messages to a client and read what it sends back.

    The outbound and inbound loops run as two tasks; whichever finishes
    first ends the pump and the other one is cancelled.
    """

    def __init__(
        self,
        request: web.Request,
        subscription: Subscription,
        on_message: Optional[ReplyHandler] = None,
    ) -> None:
        self._request = request
        self._subscription = subscription
        self._on_message = on_message
        self.ws = web.WebSocketResponse()

    @property
    def peer(self) -> str:
        return str(self._request.remote)

    async def run(self) -> None:
        """Upgrade the request and pump messages until either side ends.

        Raises:
            RelayConnectionError: on handshake failure or a failed write.
        """
        try:
            await self._handshake()
            await self._pump()
        finally:
            self._subscription.close()
            if not self.ws.closed and self.ws.prepared:
                await self.ws.close()

    async def _handshake(self) -> None:
        if not self.ws.can_prepare(self._request).ok:
            raise RelayConnectionError(
                f"WebSocket Accept Error: {self.peer} did not request an upgrade"
            )
        try:
            await self.ws.prepare(self._request)
        except (web.HTTPException, ConnectionError) as e:
            raise RelayConnectionError(f"WebSocket Accept Error: {e}") from e
        logger.info("New client connected: %s", self.peer)

    async def _pump(self) -> None:
        send_task = asyncio.create_task(self._send_loop())
        receive_task = asyncio.create_task(self._receive_loop())

        try:
            done, pending = await asyncio.wait(
                {send_task, receive_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            send_task.cancel()
            receive_task.cancel()
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            # Re-raises a write failure from the outbound side.
            task.result()

        logger.info("Client disconnected: %s", self.peer)

    async def _send_loop(self) -> None:
        while True:
            try:
                message = await self._subscription.recv()
            except ChannelClosed:
                return
            try:
                await self.ws.send_str(message)
            except (ConnectionError, RuntimeError) as e:
                raise RelayConnectionError(
                    f"WebSocket Message Error: sending to {self.peer} failed: {e}"
                ) from e

    async def _receive_loop(self) -> None:
        async for msg in self.ws:
            if msg.type == WSMsgType.TEXT:
                logger.info("Message received from client: %s", msg.data)
                if self._on_message is not None:
                    await self._dispatch(msg.data)
            elif msg.type == WSMsgType.ERROR:
                logger.warning(
                    "Connection %s closed with exception %s", self.peer, self.ws.exception()
                )
                return

    async def _dispatch(self, text: str) -> None:
        try:
            await self._on_message(text)  # type: ignore[misc]
        except Exception as e:
            logger.error("Reply handler failed: %s", e)
