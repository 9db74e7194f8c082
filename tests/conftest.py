"""Shared test fixtures and sample data."""
from __future__ import annotations

import json
import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from price_relay.config import (
    AppConfig,
    FeedersConfig,
    LookupConfig,
    PricingConfig,
    RelayConfig,
)
from price_relay.errors import FetchError, FormatError
from price_relay.models import Asset, PriceReport


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _no_server_host(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SERVER_HOST", raising=False)


@pytest.fixture()
def relay_config() -> RelayConfig:
    # Port 0 picks a free port; a long interval keeps ticks manual.
    return RelayConfig(host="127.0.0.1:0", tick_interval=3600.0, channel_capacity=16)


@pytest.fixture()
def sample_app_config(relay_config: RelayConfig) -> AppConfig:
    return AppConfig(
        relay=relay_config,
        feeders=FeedersConfig(tokens_file="tokens.json"),
        pricing=PricingConfig(base_url="https://prices.example.com/current", chain="sui"),
        lookup=LookupConfig(base_url="https://lookup.example.com/coins", platform="sui"),
    )


SAMPLE_YAML = textwrap.dedent("""\
    relay:
      host: "0.0.0.0:9001"
      tick_interval: 5
      channel_capacity: 8
      trigger: PING_PRICE
    feeders:
      tokens_file: my_tokens.json
    pricing:
      base_url: "https://prices.example.com/current"
      chain: sui
      timeout: 12
    lookup:
      base_url: "https://lookup.example.com/coins"
      platform: sui
      timeout: 7
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


@pytest.fixture()
def sample_tokens_path(tmp_path: Path) -> Path:
    tokens_file = tmp_path / "tokens.json"
    tokens_file.write_text(json.dumps({"tokens": ["sui", "cetus-protocol", "sui"]}))
    return tokens_file


# ---------------------------------------------------------------------------
# Pricing payloads
# ---------------------------------------------------------------------------

SUI_ADDRESS = "0x2::sui::SUI"


@pytest.fixture()
def sample_asset() -> Asset:
    return Asset(name="sui", address=SUI_ADDRESS)


@pytest.fixture()
def llama_payload() -> dict:
    return {
        "coins": {
            f"sui:{SUI_ADDRESS}": {
                "decimals": 9,
                "symbol": "SUI",
                "price": 1.23,
                "timestamp": 1700000000,
                "confidence": 0.99,
            }
        }
    }


@pytest.fixture()
def sample_report() -> PriceReport:
    return PriceReport(symbol="SUI", price=1.23, timestamp="2023-11-14T22:13:20+00:00")


# ---------------------------------------------------------------------------
# Fetcher doubles
# ---------------------------------------------------------------------------


def _make_fetcher(
    report: PriceReport | None = None,
    fetch_error: Exception | None = None,
    format_error: Exception | None = None,
) -> MagicMock:
    """Build a PriceFetcher double with async fetch and sync normalize."""
    fetcher = MagicMock()
    if fetch_error is not None:
        fetcher.fetch = AsyncMock(side_effect=fetch_error)
    else:
        fetcher.fetch = AsyncMock(return_value="{}")
    if format_error is not None:
        fetcher.normalize = MagicMock(side_effect=format_error)
    else:
        fetcher.normalize = MagicMock(return_value=report)
    return fetcher


@pytest.fixture()
def ok_fetcher(sample_report: PriceReport) -> MagicMock:
    return _make_fetcher(report=sample_report)


@pytest.fixture()
def failing_fetcher() -> MagicMock:
    return _make_fetcher(fetch_error=FetchError("HTTP 503"))


@pytest.fixture()
def malformed_fetcher() -> MagicMock:
    return _make_fetcher(format_error=FormatError("Missing price in response"))


@pytest.fixture()
def fetcher_factory():
    return _make_fetcher
