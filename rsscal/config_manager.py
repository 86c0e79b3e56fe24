"""Configuration management for the rsscal server."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_SERVER_BIND = "0.0.0.0"  # nosec B104 - service is meant to be reachable
DEFAULT_SERVER_PORT = 8080
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_BACKOFF_FACTOR = 1.5
DEFAULT_MAX_FEED_BYTES = 5 * 1024 * 1024

TRUTHY_VALUES = ("1", "true", "yes", "on")

# (config key, env var names in priority order, converter)
_NUMERIC_SETTINGS: list[tuple[str, tuple[str, ...], Callable[[str], Any]]] = [
    ("server_port", ("RSSCAL_WEB_PORT", "RSSCAL_SERVER_PORT"), int),
    ("request_timeout", ("RSSCAL_REQUEST_TIMEOUT",), float),
    ("max_retries", ("RSSCAL_MAX_RETRIES",), int),
    ("retry_backoff_factor", ("RSSCAL_RETRY_BACKOFF_FACTOR",), float),
    ("max_feed_bytes", ("RSSCAL_MAX_FEED_BYTES",), int),
]


def default_config() -> dict[str, Any]:
    """Configuration used when the environment sets nothing."""
    return {
        "server_bind": DEFAULT_SERVER_BIND,
        "server_port": DEFAULT_SERVER_PORT,
        "request_timeout": DEFAULT_REQUEST_TIMEOUT,
        "max_retries": DEFAULT_MAX_RETRIES,
        "retry_backoff_factor": DEFAULT_RETRY_BACKOFF_FACTOR,
        "max_feed_bytes": DEFAULT_MAX_FEED_BYTES,
        "debug_logging": False,
    }


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []

        try:
            content = self.env_file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.debug(
                "Failed to read .env file for defaults (continuing): %s",
                str(self.env_file_path),
                exc_info=True,
            )
            return []

        for raw_line in content.splitlines():
            line = raw_line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, val = line.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")

            if key and key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - RSSCAL_WEB_HOST or RSSCAL_SERVER_BIND -> 'server_bind'
        - RSSCAL_WEB_PORT or RSSCAL_SERVER_PORT -> 'server_port' (int)
        - RSSCAL_REQUEST_TIMEOUT -> 'request_timeout' (float seconds)
        - RSSCAL_MAX_RETRIES -> 'max_retries' (int)
        - RSSCAL_RETRY_BACKOFF_FACTOR -> 'retry_backoff_factor' (float)
        - RSSCAL_MAX_FEED_BYTES -> 'max_feed_bytes' (int)
        - RSSCAL_DEBUG -> 'debug_logging' (bool)

        Invalid numeric values are logged and ignored.

        Returns:
            Configuration dictionary compatible with start_server
        """
        cfg = default_config()

        host = os.environ.get("RSSCAL_WEB_HOST") or os.environ.get("RSSCAL_SERVER_BIND")
        if host:
            cfg["server_bind"] = host

        for key, env_names, convert in _NUMERIC_SETTINGS:
            env_name = next((name for name in env_names if os.environ.get(name)), None)
            if env_name is None:
                continue
            raw = os.environ[env_name]
            try:
                cfg[key] = convert(raw)
            except ValueError:
                logger.warning("Invalid %s=%r; ignoring", env_name, raw)

        cfg["debug_logging"] = os.environ.get("RSSCAL_DEBUG", "").strip().lower() in TRUTHY_VALUES

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        Returns:
            Configuration dictionary
        """
        self.load_env_file()
        return self.build_config_from_env()


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and dataclass-like objects.

    Args:
        config: Configuration object (dict or object with attributes)
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)
