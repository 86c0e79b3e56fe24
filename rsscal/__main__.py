"""Command-line entry for rsscal.

Starts the HTTP server by default; ``--convert`` and ``--convert-file`` run a
single conversion and exit.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import NoReturn, Optional

from . import _init_logging, run_server
from .config_manager import ConfigManager
from .converter import convert_feed
from .exceptions import RSSCalError
from .feed_fetcher import FeedFetcher
from .http_client import close_all_clients

logger = logging.getLogger(__name__)


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the rsscal CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="rsscal",
        description="rsscal - convert RSS feeds to iCalendar subscriptions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m rsscal                                   # Start server on default port (8080)
  python -m rsscal --port 3000                       # Start server on port 3000
  python -m rsscal --convert https://example.com/rss # Print calendar for a feed
  python -m rsscal --convert-file feed.xml -o out.ics
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number for the web server (default: 8080, or from RSSCAL_WEB_PORT env var)",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--convert",
        metavar="URL",
        help="Fetch one feed, write its calendar and exit",
    )
    source.add_argument(
        "--convert-file",
        metavar="PATH",
        help="Convert a local feed file, write its calendar and exit",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Write the calendar to FILE instead of stdout",
    )

    return parser


async def _fetch_and_convert(url: str) -> str:
    config = ConfigManager().load_full_config()
    try:
        async with FeedFetcher(config) as fetcher:
            fetched = await fetcher.fetch(url)
        return convert_feed(fetched.content, fetched.url).calendar_text
    finally:
        await close_all_clients()


def convert_url(url: str) -> str:
    """Fetch and convert one feed, returning calendar text."""
    return asyncio.run(_fetch_and_convert(url))


def convert_file(path: str) -> str:
    """Convert a local feed file; its file URI stands in for the source URL."""
    feed_path = Path(path)
    return convert_feed(feed_path.read_bytes(), feed_path.resolve().as_uri()).calendar_text


def _write_output(calendar_text: str, output: Optional[str]) -> None:
    if output:
        # newline="" keeps the CRLF line endings intact
        Path(output).write_text(calendar_text, encoding="utf-8", newline="")
        logger.info("Wrote calendar to %s", output)
    else:
        sys.stdout.write(calendar_text)
        sys.stdout.flush()


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the rsscal CLI."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    if args.convert is None and args.convert_file is None:
        run_server(args)
        sys.exit(0)

    _init_logging(os.environ.get("RSSCAL_LOG_LEVEL", "WARNING"))
    try:
        if args.convert is not None:
            calendar_text = convert_url(args.convert)
        else:
            calendar_text = convert_file(args.convert_file)
        _write_output(calendar_text, args.output)
    except (RSSCalError, OSError) as exc:
        print(f"rsscal: conversion failed: {exc}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
