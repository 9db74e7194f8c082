"""Feeder side: per-token relay clients and the pool that runs them."""
from .client import FeederClient
from .pool import FeederPool

__all__ = ["FeederClient", "FeederPool"]
