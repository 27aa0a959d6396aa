"""Command line entry point that crawls a URI and reports each page."""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
import time
from collections.abc import Sequence
from enum import Enum

from yieldpage.pages import Pages, Uri, WebUri
from yieldpage.results import PageData

logger = logging.getLogger(__name__)

_VERSION = "0.1.0"


class UriTypeArg(Enum):
    """Kinds of URI the command accepts."""

    WEB = "web"

    def __str__(self) -> str:
        return self.value


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse the command's arguments."""
    parser = argparse.ArgumentParser(
        prog="yield-page",
        description="Crawler that yields pages from various URI types",
    )
    parser.add_argument(
        "uri", help="Source URI to crawl (web URL, git repo, file path, etc.)"
    )
    parser.add_argument(
        "-t",
        "--type",
        type=UriTypeArg,
        choices=list(UriTypeArg),
        default=UriTypeArg.WEB,
        help="URI type",
    )
    parser.add_argument(
        "-c", "--concurrency", type=int, default=4, help="Number of concurrent crawlers"
    )
    parser.add_argument(
        "--idle-timeout",
        type=int,
        default=300,
        help="Idle timeout in seconds (crawler stops if no new pages for this duration)",
    )
    parser.add_argument(
        "--total-timeout",
        type=int,
        default=1200,
        help="Total timeout in seconds (maximum runtime)",
    )
    parser.add_argument("-V", "--version", action="version", version=_VERSION)
    return parser.parse_args(argv)


def convert_uri_type(arg_type: UriTypeArg, uri: str) -> Uri:
    """Turn a command line URI type and string into a URI."""
    if arg_type is UriTypeArg.WEB:
        return WebUri(uri)
    raise ValueError(f"unsupported URI type: {arg_type}")


def process_page(page: PageData, count: int) -> None:
    """Report a crawled page."""
    logger.info("Processed page %d: %s", count, page.url)
    logger.debug("Page has %d links", len(page.links))


async def _run(pages: Pages) -> int:
    try:
        stream = await pages.generate()
    except (ValueError, re.error, NotImplementedError) as exc:
        logger.error("Failed to start crawler: %s", exc)
        return 1

    processed = 0
    started = time.monotonic()
    logger.info("Started processing pages")
    async with stream:
        async for page in stream:
            processed += 1
            process_page(page, processed)
    logger.info(
        "Crawling complete - processed %d pages in %.2f seconds",
        processed,
        time.monotonic() - started,
    )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Crawl the URI given on the command line; return the exit status."""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    args = parse_args(argv)
    logger.info("Starting crawler for URI: %s", args.uri)

    uri = convert_uri_type(args.type, args.uri)
    if isinstance(uri, WebUri):
        print("Note: Web crawling requires a WebDriver server (e.g., ChromeDriver).")
        print(
            "Set WEBDRIVER_URL environment variable if not using the default "
            "http://localhost:4444"
        )

    pages = (
        Pages(uri)
        .with_max_concurrency(args.concurrency)
        .with_idle_timeout(args.idle_timeout)
        .with_total_timeout(args.total_timeout)
    )
    return asyncio.run(_run(pages))