"""Command that crawls a URL with settings from flags and configuration."""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
import sys
import time
from collections.abc import Sequence
from datetime import datetime

from yieldpage.config import ConfigError
from yieldpage.pages import Pages, WebUri


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Crawl a URL")
    parser.add_argument("-u", "--url", required=True, help="URL to crawl")
    parser.add_argument("-c", "--config", help="JSON configuration string")
    parser.add_argument("--config-file", help="Path to JSON configuration file")
    parser.add_argument("--concurrency", type=int, help="Maximum concurrency level")
    parser.add_argument("-i", "--idle-timeout", type=int, help="Idle timeout in seconds")
    parser.add_argument(
        "-t", "--total-timeout", type=int, help="Total runtime timeout in seconds"
    )
    return parser.parse_args(argv)


def build_pages(args: argparse.Namespace) -> Pages:
    """Build crawl settings: file config, then string config, then flag overrides.

    Raises ConfigError for a malformed configuration and OSError for an
    unreadable file.
    """
    pages = Pages(WebUri(args.url))
    if args.config_file is not None:
        print(f"Loading configuration from file: {args.config_file}")
        pages = pages.with_config_file(args.config_file)
    if args.config is not None:
        print("Applying configuration from string")
        pages = pages.with_config_str(args.config)
    if args.concurrency is not None:
        print(f"Overriding max concurrency: {args.concurrency}")
        pages = pages.with_max_concurrency(args.concurrency)
    if args.idle_timeout is not None:
        print(f"Overriding idle timeout: {args.idle_timeout}s")
        pages = pages.with_idle_timeout(args.idle_timeout)
    if args.total_timeout is not None:
        print(f"Overriding total timeout: {args.total_timeout}s")
        pages = pages.with_total_timeout(args.total_timeout)
    return pages


async def _crawl(pages: Pages) -> int:
    try:
        stream = await pages.generate()
    except (ValueError, re.error, NotImplementedError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    crawled = 0
    started = time.monotonic()
    print(f"Starting processing pages at {datetime.now().isoformat()}")
    async with stream:
        async for page in stream:
            crawled += 1
            print(f"Received page {crawled}: {page.url}")
    print(
        f"Crawling complete. Processed {crawled} pages in "
        f"{time.monotonic() - started:.2f} seconds."
    )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Crawl the URL given on the command line; return the exit status."""
    logging.basicConfig(level=logging.WARNING)
    args = _parse_args(argv)
    print(f"Starting crawler for URL: {args.url}")
    try:
        pages = build_pages(args)
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return asyncio.run(_crawl(pages))