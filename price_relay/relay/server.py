"""WebSocket relay server that fans periodic price triggers out to clients."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from aiohttp import web

from ..config import RelayConfig, split_host_port
from ..errors import BindError, RelayConnectionError
from .broadcast import Broadcaster
from .connection import ConnectionPump, ReplyHandler

logger = logging.getLogger(__name__)


class RelayServer:
    """Accept WebSocket clients and broadcast a trigger to all of them on a timer.

    The broadcaster and the listening site are owned by this object for its
    whole lifetime; every accepted connection gets its own subscription and
    :class:`ConnectionPump`.
    """

    def __init__(
        self,
        config: RelayConfig | None = None,
        on_reply: Optional[ReplyHandler] = None,
    ) -> None:
        self._config = config or RelayConfig()
        self._host, self._port = split_host_port(self._config.host)
        self._on_reply = on_reply
        self.broadcaster = Broadcaster(self._config.channel_capacity)

        self._runner: Optional[web.AppRunner] = None
        self._ticker: Optional[asyncio.Task] = None

    @property
    def address(self) -> str:
        """The bound ``host:port``; reflects the real port once started."""
        if self._runner is not None:
            for sockname in self._runner.addresses:
                if isinstance(sockname, tuple) and len(sockname) >= 2:
                    return f"{sockname[0]}:{sockname[1]}"
        return f"{self._host}:{self._port}"

    @property
    def url(self) -> str:
        return f"ws://{self.address}/"

    @property
    def subscriber_count(self) -> int:
        return self.broadcaster.receiver_count

    async def start(self) -> None:
        """Bind the listening socket and start the ticker.

        A stopped server can be started again; it gets a fresh broadcaster.

        Raises:
            BindError: if the address cannot be bound.
        """
        app = web.Application()
        app.router.add_get("/", self._handle_connection)
        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._host, self._port)
        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            raise BindError(f"TCP Error: cannot bind {self._host}:{self._port}: {e}") from e

        if self.broadcaster.closed:
            self.broadcaster = Broadcaster(self._config.channel_capacity)
        self._runner = runner
        self._ticker = asyncio.create_task(self._tick_loop())
        logger.info("Server listening on %s", self.address)

    async def run(self) -> None:
        """Start the server and serve until cancelled."""
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    async def stop(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            await asyncio.gather(self._ticker, return_exceptions=True)
            self._ticker = None

        # Closing the channel ends every pump's outbound loop.
        self.broadcaster.close()

        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Server stopped")

    def tick(self) -> int:
        """Broadcast one trigger; return how many subscribers it reached."""
        receivers = self.broadcaster.send(self._config.trigger)
        if receivers == 0:
            logger.warning("Broadcast Channel Error: No clients listening")
        else:
            logger.debug("Trigger sent to %d clients", receivers)
        return receivers

    async def _tick_loop(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self._config.tick_interval)

    async def _handle_connection(self, request: web.Request) -> web.StreamResponse:
        pump = ConnectionPump(request, self.broadcaster.subscribe(), self._on_reply)
        try:
            await pump.run()
        except RelayConnectionError as e:
            logger.error("Error in connection: %s", e)

        if pump.ws.prepared:
            return pump.ws
        return web.Response(status=400, text="Expected WebSocket upgrade")
