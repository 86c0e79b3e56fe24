"""Unit tests for rsscal.config_manager."""

import logging
import os
from pathlib import Path
from types import SimpleNamespace

import pytest

from rsscal.config_manager import (
    DEFAULT_MAX_FEED_BYTES,
    ConfigManager,
    default_config,
    get_config_value,
)

pytestmark = pytest.mark.unit


class TestBuildConfigFromEnv:
    """Tests for build_config_from_env."""

    def test_build_config_when_env_empty_then_defaults(self, tmp_path: Path) -> None:
        cfg = ConfigManager(tmp_path / ".env").build_config_from_env()

        assert cfg == default_config()
        assert cfg["server_bind"] == "0.0.0.0"
        assert cfg["server_port"] == 8080
        assert cfg["request_timeout"] == 30
        assert cfg["max_retries"] == 2
        assert cfg["retry_backoff_factor"] == 1.5
        assert cfg["max_feed_bytes"] == DEFAULT_MAX_FEED_BYTES
        assert cfg["debug_logging"] is False

    def test_build_config_when_env_set_then_values_converted(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("RSSCAL_WEB_HOST", "127.0.0.1")
        monkeypatch.setenv("RSSCAL_WEB_PORT", "9000")
        monkeypatch.setenv("RSSCAL_REQUEST_TIMEOUT", "12.5")
        monkeypatch.setenv("RSSCAL_MAX_RETRIES", "4")
        monkeypatch.setenv("RSSCAL_RETRY_BACKOFF_FACTOR", "2")
        monkeypatch.setenv("RSSCAL_MAX_FEED_BYTES", "2048")
        monkeypatch.setenv("RSSCAL_DEBUG", "yes")

        cfg = ConfigManager(tmp_path / ".env").build_config_from_env()

        assert cfg["server_bind"] == "127.0.0.1"
        assert cfg["server_port"] == 9000
        assert cfg["request_timeout"] == 12.5
        assert cfg["max_retries"] == 4
        assert cfg["retry_backoff_factor"] == 2.0
        assert cfg["max_feed_bytes"] == 2048
        assert cfg["debug_logging"] is True

    def test_build_config_when_alias_vars_then_used(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("RSSCAL_SERVER_BIND", "localhost")
        monkeypatch.setenv("RSSCAL_SERVER_PORT", "8181")

        cfg = ConfigManager(tmp_path / ".env").build_config_from_env()

        assert cfg["server_bind"] == "localhost"
        assert cfg["server_port"] == 8181

    def test_build_config_when_invalid_number_then_warns_and_keeps_default(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("RSSCAL_WEB_PORT", "eighty")

        with caplog.at_level(logging.WARNING, logger="rsscal.config_manager"):
            cfg = ConfigManager(tmp_path / ".env").build_config_from_env()

        assert cfg["server_port"] == 8080
        assert "RSSCAL_WEB_PORT" in caplog.text


class TestEnvFile:
    """Tests for load_env_file / load_full_config."""

    def test_load_env_file_when_missing_then_nothing_loaded(self, tmp_path: Path) -> None:
        assert ConfigManager(tmp_path / "missing.env").load_env_file() == []

    def test_load_env_file_when_present_then_sets_unset_keys_only(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\n"
            "RSSCAL_WEB_PORT=9100\n"
            "RSSCAL_MAX_RETRIES='5'\n"
            "not a pair\n"
            "\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("RSSCAL_MAX_RETRIES", "1")
        # Register for cleanup; load_env_file writes os.environ directly
        monkeypatch.setenv("RSSCAL_WEB_PORT", "")
        monkeypatch.delenv("RSSCAL_WEB_PORT")

        loaded = ConfigManager(env_file).load_env_file()

        assert loaded == ["RSSCAL_WEB_PORT"]
        assert os.environ["RSSCAL_WEB_PORT"] == "9100"
        assert os.environ["RSSCAL_MAX_RETRIES"] == "1"

    def test_load_full_config_when_env_file_then_merged(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text('RSSCAL_WEB_HOST="10.0.0.5"\n', encoding="utf-8")
        monkeypatch.setenv("RSSCAL_WEB_HOST", "")
        monkeypatch.delenv("RSSCAL_WEB_HOST")

        cfg = ConfigManager(env_file).load_full_config()

        assert cfg["server_bind"] == "10.0.0.5"


class TestGetConfigValue:
    def test_get_config_value_when_dict_then_key_or_default(self) -> None:
        assert get_config_value({"a": 1}, "a") == 1
        assert get_config_value({"a": 1}, "b", 2) == 2

    def test_get_config_value_when_object_then_attribute_or_default(self) -> None:
        assert get_config_value(SimpleNamespace(a=1), "a") == 1
        assert get_config_value(SimpleNamespace(a=1), "b", 2) == 2
