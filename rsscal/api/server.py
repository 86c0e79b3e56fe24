"""rsscal.api.server: asyncio HTTP server converting RSS feeds to calendars.

This module provides a small server core that:
- runs an asyncio event loop and aiohttp web server
- fetches a feed on every request through a shared pooled HTTP client
- exposes GET /api/ical, /api/debug-rss, /api/test-ical and /api/health
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any, Optional

from aiohttp import web

from rsscal.api.routes import register_calendar_routes
from rsscal.config_manager import (
    DEFAULT_SERVER_BIND,
    DEFAULT_SERVER_PORT,
    ConfigManager,
    get_config_value,
)
from rsscal.converter import FeedConverter
from rsscal.feed_fetcher import FeedFetcher
from rsscal.http_client import close_all_clients, get_shared_client
from rsscal.logging_config import configure_logging, get_logging_status
from rsscal.middleware import correlation_id_middleware
from rsscal.timezone_utils import Clock, now_utc, serialize_iso

logger = logging.getLogger(__name__)

MAX_PORT_ATTEMPTS = 10


def _build_default_config_from_env() -> dict[str, Any]:
    """Load .env defaults and build the server configuration from the environment."""
    return ConfigManager().load_full_config()


def _make_app(
    config: Any,
    fetcher: Optional[FeedFetcher] = None,
    clock: Clock = now_utc,
) -> web.Application:
    """Create aiohttp web application with the conversion routes.

    Args:
        config: Server configuration object/dict
        fetcher: Optional feed fetcher (defaults to one built from ``config``)
        clock: Source of the current instant for conversions and health checks
    """
    app = web.Application(middlewares=[correlation_id_middleware])
    fetcher = fetcher or FeedFetcher(config)

    register_calendar_routes(
        app=app,
        fetch_feed=fetcher.fetch,
        converter=FeedConverter(clock),
        time_provider=clock,
        serialize_iso=serialize_iso,
    )

    async def _shutdown(_app: web.Application) -> None:
        logger.info("Application shutdown requested")
        await fetcher.close()

    app.on_shutdown.append(_shutdown)
    return app


async def _start_site(runner: web.AppRunner, host: str, configured_port: int) -> int:
    """Start a TCP site on the configured port or the next free one.

    Returns:
        The port actually bound

    Raises:
        RuntimeError: If no port in the attempted range is free
    """
    for port_offset in range(MAX_PORT_ATTEMPTS):
        actual_port = configured_port + port_offset
        site = web.TCPSite(runner, host=host, port=actual_port)
        try:
            await site.start()
        except OSError as e:
            if "address already in use" not in str(e).lower():
                logger.exception("Failed to start server on %s:%d", host, actual_port)
                raise
            logger.debug("Port %d in use, trying next port", actual_port)
            continue

        if actual_port != configured_port:
            logger.warning(
                "Configured port %d was in use, using port %d instead",
                configured_port,
                actual_port,
            )
        return actual_port

    last_port = configured_port + MAX_PORT_ATTEMPTS - 1
    logger.error("Could not find available port in range %d-%d", configured_port, last_port)
    raise RuntimeError(f"No available port found in range {configured_port}-{last_port}")


async def _serve(config: Any, external_stop_event: asyncio.Event | None = None) -> None:
    """Run the server until signalled to stop.

    Args:
        config: Server configuration object/dict.
        external_stop_event: Optional event to signal shutdown. If provided,
            signal handlers will NOT be registered (caller owns signal handling).
    """
    stop_event = external_stop_event or asyncio.Event()

    shared_http_client = None
    try:
        shared_http_client = await get_shared_client("feed_fetcher")
        logger.debug("Initialized shared HTTP client for connection reuse")
    except RuntimeError as e:
        logger.warning(
            "Failed to initialize shared HTTP client, falling back to individual clients: %s", e
        )

    app = _make_app(config, FeedFetcher(config, shared_client=shared_http_client))
    runner = web.AppRunner(app)
    await runner.setup()

    host = get_config_value(config, "server_bind", DEFAULT_SERVER_BIND)
    configured_port = int(get_config_value(config, "server_port", DEFAULT_SERVER_PORT))
    try:
        actual_port = await _start_site(runner, host, configured_port)
    except (OSError, RuntimeError):
        await runner.cleanup()
        await close_all_clients()
        raise

    logger.info("Server started successfully on %s:%d", host, actual_port)

    if external_stop_event is None:

        def _on_signal() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)
    else:
        logger.debug("Using external stop event - skipping signal handler registration")

    await stop_event.wait()
    logger.info("Stop event received, shutting down")

    await runner.cleanup()

    try:
        await close_all_clients()
        logger.debug("Shared HTTP clients cleaned up")
    except Exception as e:
        logger.warning("Error cleaning up shared HTTP clients: %s", e)

    logger.info("Server shutdown complete")


def start_server(config: Any) -> None:
    """Start the asyncio event loop and HTTP server.

    Args:
        config: dict or dataclass-like object with keys:
            - server_bind: host to bind (str, default 0.0.0.0)
            - server_port: port (int, default 8080)
            - request_timeout: HTTP request timeout in seconds (default 30)
            - max_retries: maximum HTTP retries (int, default 2)
            - retry_backoff_factor: retry backoff multiplier (float, default 1.5)
            - max_feed_bytes: largest accepted feed body (int, default 5 MiB)
            - debug_logging: enable debug logging for rsscal (bool)

    This function blocks the calling thread and runs until a SIGINT/SIGTERM is received.
    """
    debug_mode = bool(get_config_value(config, "debug_logging", False))
    configure_logging(debug_mode=debug_mode)
    logger.info("Logging configuration applied: debug_mode=%s", debug_mode)
    logger.debug("Logger levels: %s", get_logging_status())

    try:
        logger.debug("Running asyncio event loop for server")
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception:
        logger.exception("Server terminated unexpectedly")
        raise
