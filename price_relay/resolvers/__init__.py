"""Token address resolvers."""
from .coingecko import CoinGeckoResolver

__all__ = ["CoinGeckoResolver"]
