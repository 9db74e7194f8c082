"""In-process fan-out channel for relay triggers.

Every connection pump holds its own :class:`Subscription`, a bounded queue
fed by :meth:`Broadcaster.send`. A subscriber that falls behind loses its
oldest pending messages rather than blocking the sender.
"""
from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class ChannelClosed(Exception):
    """Raised by :meth:`Subscription.recv` once the broadcaster is closed."""

    pass


_CLOSED = object()


class Subscription:
    """One receiver registered against a :class:`Broadcaster`."""

    def __init__(self, broadcaster: "Broadcaster", capacity: int) -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self.lagged = 0

    def _push(self, message: str) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.lagged += 1
            logger.warning("Subscriber lagging, dropped oldest message (%d total)", self.lagged)
        self._queue.put_nowait(message)

    def _close(self) -> None:
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def recv(self) -> str:
        """Wait for the next message; raise ChannelClosed after close()."""
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker so later calls keep failing.
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosed()
        return item

    def close(self) -> None:
        """Unregister from the broadcaster. Safe to call more than once."""
        self._broadcaster._unsubscribe(self)


class Broadcaster:
    """Multi-consumer channel; ``send`` with no subscribers is not an error."""

    def __init__(self, capacity: int = 16) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._subscribers: list[Subscription] = []
        self._closed = False

    @property
    def receiver_count(self) -> int:
        return len(self._subscribers)

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self) -> Subscription:
        """Register a receiver that sees every message sent from now on."""
        sub = Subscription(self, self.capacity)
        if self._closed:
            sub._close()
        else:
            self._subscribers.append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription) -> None:
        if sub in self._subscribers:
            self._subscribers.remove(sub)

    def send(self, message: str) -> int:
        """Deliver ``message`` to all current subscribers.

        Returns the number of subscribers reached; zero is a normal outcome.
        """
        if self._closed:
            return 0
        for sub in list(self._subscribers):
            sub._push(message)
        return len(self._subscribers)

    def close(self) -> None:
        """End every subscription; queued messages are still delivered first."""
        if self._closed:
            return
        self._closed = True
        for sub in self._subscribers:
            sub._close()
        self._subscribers.clear()
