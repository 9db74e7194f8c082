"""Relay server side: broadcast channel, connection pumps, server."""
from .broadcast import Broadcaster, ChannelClosed, Subscription
from .connection import ConnectionPump
from .server import RelayServer

__all__ = ["Broadcaster", "ChannelClosed", "ConnectionPump", "RelayServer", "Subscription"]
