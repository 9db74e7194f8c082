"""Data models — all frozen (immutable)."""
from __future__ import annotations

import json
from dataclasses import dataclass

# Sent by the relay on every tick; feeders answer it with a price report.
TRIGGER = "REQUEST_TOKEN_PRICE"


@dataclass(frozen=True)
class Asset:
    """Tracked token: identifier plus its on-chain contract address."""

    name: str
    address: str


@dataclass(frozen=True)
class PriceReport:
    """Normalized spot price for one token."""

    symbol: str
    price: float
    timestamp: str

    def to_dict(self) -> dict[str, object]:
        return {"symbol": self.symbol, "price": self.price, "timestamp": self.timestamp}

    def to_json(self) -> str:
        """Serialize as compact JSON text, keys in symbol/price/timestamp order."""
        return json.dumps(self.to_dict(), separators=(",", ":"))
