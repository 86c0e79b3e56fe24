"""rsscal - convert RSS feeds into subscribable iCalendar documents.

The conversion engine (parse, normalize, build, serialize) has no I/O of its
own; the HTTP server and CLI wrap it with fetching, configuration and logging.
"""

__version__ = "0.1.0"

from typing import Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors the RSSCAL_DEBUG environment variable (truthy values: "1", "true",
    "yes", "on"), which forces DEBUG verbosity so parser and fetcher debug logs
    show up without changing code.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("RSSCAL_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure basic handler if no handlers are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message, with only the level colorized
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )


def run_server(args: Optional[object] = None) -> None:
    """Start the rsscal HTTP server.

    Args:
        args: Optional command line arguments namespace containing --port

    Behavior:
    - Initialize console logging early using RSSCAL_LOG_LEVEL (env) if present.
    - Build configuration from .env defaults and the environment.
    - Apply command line argument overrides, then block in start_server().
    """
    import logging
    import os

    _init_logging(os.environ.get("RSSCAL_LOG_LEVEL"))
    logger = logging.getLogger(__name__)

    from .api.server import _build_default_config_from_env, start_server

    cfg = _build_default_config_from_env()

    if args is not None:
        port = getattr(args, "port", None)
        if port is not None:
            try:
                port_int = int(port)
                cfg["server_port"] = port_int
                logger.debug("Applied command line port override: %d", port_int)
            except (ValueError, TypeError) as e:
                logger.warning("Invalid port value from command line '%s': %s", port, e)

    logger.info("Starting rsscal server")
    logger.debug(
        "Resolved configuration (diagnostic): %s",
        {k: cfg.get(k) for k in ("server_bind", "server_port", "request_timeout", "max_retries")},
    )

    start_server(cfg)
