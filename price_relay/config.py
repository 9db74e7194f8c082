"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .models import TRIGGER

logger = logging.getLogger(__name__)

DEFAULT_SERVER_HOST = "127.0.0.1:8080"
DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_TOKENS_FILE = "tokens.json"

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RelayConfig:
    host: str = DEFAULT_SERVER_HOST
    tick_interval: float = 10.0
    channel_capacity: int = 16
    trigger: str = TRIGGER


@dataclass(frozen=True)
class FeedersConfig:
    tokens_file: str = DEFAULT_TOKENS_FILE


@dataclass(frozen=True)
class PricingConfig:
    base_url: str = "https://coins.llama.fi/prices/current"
    chain: str = "sui"
    timeout: int = 30


@dataclass(frozen=True)
class LookupConfig:
    base_url: str = "https://api.coingecko.com/api/v3/coins"
    platform: str = "sui"
    timeout: int = 30


@dataclass(frozen=True)
class AppConfig:
    relay: RelayConfig = field(default_factory=RelayConfig)
    feeders: FeedersConfig = field(default_factory=FeedersConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    lookup: LookupConfig = field(default_factory=LookupConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_relay(raw: dict[str, Any]) -> RelayConfig:
    # SERVER_HOST wins over the file so one .env can point both processes
    # at the same relay.
    host = os.environ.get("SERVER_HOST") or raw.get("host") or DEFAULT_SERVER_HOST
    try:
        return RelayConfig(
            host=str(host),
            tick_interval=float(raw.get("tick_interval", 10.0)),
            channel_capacity=int(raw.get("channel_capacity", 16)),
            trigger=str(raw.get("trigger", TRIGGER)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid relay section: {e}") from e


def _build_feeders(raw: dict[str, Any]) -> FeedersConfig:
    return FeedersConfig(tokens_file=str(raw.get("tokens_file", DEFAULT_TOKENS_FILE)))


def _build_pricing(raw: dict[str, Any]) -> PricingConfig:
    try:
        return PricingConfig(
            base_url=raw.get("base_url", PricingConfig.base_url),
            chain=raw.get("chain", "sui"),
            timeout=int(raw.get("timeout", 30)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid pricing section: {e}") from e


def _build_lookup(raw: dict[str, Any]) -> LookupConfig:
    try:
        return LookupConfig(
            base_url=raw.get("base_url", LookupConfig.base_url),
            platform=raw.get("platform", "sui"),
            timeout=int(raw.get("timeout", 30)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid lookup section: {e}") from e


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def split_host_port(address: str) -> tuple[str, int]:
    """Split ``"host:port"`` into its parts, validating the port."""
    host, sep, port_str = address.rpartition(":")
    if not sep or not host:
        raise ConfigError(f"Address must be host:port, got '{address}'")
    try:
        port = int(port_str)
    except ValueError as e:
        raise ConfigError(f"Invalid port in address '{address}'") from e
    if not 0 <= port <= 65535:
        raise ConfigError(f"Port out of range in address '{address}'")
    return host, port


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. When omitted, ``config.yaml`` in the
            working directory is used if present, otherwise built-in defaults.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_FILE
        if not config_path.exists():
            logger.info("No %s found, using defaults", DEFAULT_CONFIG_FILE)
            cfg = AppConfig(relay=_build_relay({}))
            _validate(cfg)
            return cfg
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        relay=_build_relay(raw.get("relay") or {}),
        feeders=_build_feeders(raw.get("feeders") or {}),
        pricing=_build_pricing(raw.get("pricing") or {}),
        lookup=_build_lookup(raw.get("lookup") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def load_tokens(tokens_path: str | Path) -> tuple[str, ...]:
    """Read the ``{"tokens": [...]}`` document listing token identifiers."""
    tokens_path = Path(tokens_path)
    try:
        with open(tokens_path) as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigError(f"Error opening file {tokens_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Error deserializing JSON file {tokens_path}: {e}") from e

    if not isinstance(raw, dict) or "tokens" not in raw:
        raise ConfigError(f"Missing 'tokens' key in {tokens_path}")

    tokens = raw["tokens"]
    if not isinstance(tokens, list) or not all(isinstance(t, str) for t in tokens):
        raise ConfigError(f"'tokens' in {tokens_path} must be a list of strings")

    logger.info("Loaded %d tokens from %s", len(tokens), tokens_path)
    return tuple(tokens)


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    split_host_port(cfg.relay.host)

    if cfg.relay.tick_interval <= 0:
        raise ConfigError("relay.tick_interval must be positive")
    if cfg.relay.channel_capacity < 1:
        raise ConfigError("relay.channel_capacity must be at least 1")
    if not cfg.relay.trigger:
        raise ConfigError("relay.trigger must not be empty")
