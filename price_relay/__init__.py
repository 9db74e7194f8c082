"""Sui token price relay: WebSocket trigger server and price feeders."""

__version__ = "0.1.0"
