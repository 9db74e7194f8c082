"""Unit tests for config loading, env interpolation, and validation."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from price_relay.config import (
    DEFAULT_SERVER_HOST,
    AppConfig,
    RelayConfig,
    _interpolate_env,
    load_config,
    load_tokens,
    split_host_port,
)
from price_relay.errors import ConfigError
from price_relay.models import TRIGGER


class TestInterpolateEnv:
    def test_simple_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _interpolate_env("${MY_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR_XYZ", raising=False)
        assert _interpolate_env("${NONEXISTENT_VAR_XYZ}") == ""

    def test_nested_dict(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOK", "secret")
        result = _interpolate_env({"key": "${TOK}", "plain": "text"})
        assert result == {"key": "secret", "plain": "text"}

    def test_non_string_passthrough(self) -> None:
        assert _interpolate_env(42) == 42
        assert _interpolate_env(True) is True


class TestSplitHostPort:
    def test_valid(self) -> None:
        assert split_host_port("127.0.0.1:8080") == ("127.0.0.1", 8080)

    def test_ipv6_keeps_last_colon(self) -> None:
        assert split_host_port("::1:9000") == ("::1", 9000)

    @pytest.mark.parametrize("address", ["localhost", ":8080", "host:http", "host:70000"])
    def test_invalid(self, address: str) -> None:
        with pytest.raises(ConfigError):
            split_host_port(address)


class TestLoadConfig:
    def test_loads_valid_yaml(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.relay.host == "0.0.0.0:9001"
        assert cfg.relay.tick_interval == 5.0
        assert cfg.relay.channel_capacity == 8
        assert cfg.relay.trigger == "PING_PRICE"
        assert cfg.feeders.tokens_file == "my_tokens.json"
        assert cfg.pricing.timeout == 12
        assert cfg.lookup.timeout == 7

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nonexistent.yaml")

    def test_defaults_without_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        cfg = load_config()
        assert cfg.relay.host == DEFAULT_SERVER_HOST
        assert cfg.relay.tick_interval == 10.0
        assert cfg.relay.trigger == TRIGGER

    def test_server_host_env_overrides(
        self, sample_yaml_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SERVER_HOST", "10.0.0.5:7000")
        cfg = load_config(sample_yaml_path)
        assert cfg.relay.host == "10.0.0.5:7000"

    def test_env_interpolation_in_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TEST_PRICE_URL", "https://llama.test/prices")
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text('pricing:\n  base_url: "${TEST_PRICE_URL}"\n')
        cfg = load_config(cfg_file)
        assert cfg.pricing.base_url == "https://llama.test/prices"

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text("")
        cfg = load_config(cfg_file)
        assert cfg.relay == RelayConfig()


class TestValidation:
    @pytest.mark.parametrize(
        "relay_yaml, message",
        [
            ("host: nope", "host:port"),
            ("tick_interval: 0", "tick_interval"),
            ("channel_capacity: 0", "channel_capacity"),
            ('trigger: ""', "trigger"),
            ("tick_interval: soon", "Invalid relay"),
        ],
    )
    def test_invalid_relay_section(
        self, tmp_path: Path, relay_yaml: str, message: str
    ) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(f"relay:\n  {relay_yaml}\n")
        with pytest.raises(ConfigError, match=message):
            load_config(cfg_file)

    def test_non_mapping_raises(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(cfg_file)


class TestLoadTokens:
    def test_preserves_order_and_duplicates(self, sample_tokens_path: Path) -> None:
        assert load_tokens(sample_tokens_path) == ("sui", "cetus-protocol", "sui")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Error opening file"):
            load_tokens(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "tokens.json"
        path.write_text("{tokens: ")
        with pytest.raises(ConfigError, match="deserializing"):
            load_tokens(path)

    def test_missing_key(self, tmp_path: Path) -> None:
        path = tmp_path / "tokens.json"
        path.write_text(json.dumps({"coins": ["sui"]}))
        with pytest.raises(ConfigError, match="Missing 'tokens'"):
            load_tokens(path)

    def test_non_string_entries(self, tmp_path: Path) -> None:
        path = tmp_path / "tokens.json"
        path.write_text(json.dumps({"tokens": ["sui", 3]}))
        with pytest.raises(ConfigError, match="list of strings"):
            load_tokens(path)


class TestFrozenConfigs:
    def test_relay_config_immutable(self) -> None:
        r = RelayConfig()
        with pytest.raises(AttributeError):
            r.host = "x:1"  # type: ignore[misc]
