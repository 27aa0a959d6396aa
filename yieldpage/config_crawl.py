"""Command that crawls according to a configuration file."""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
import sys
import time
from collections.abc import Sequence
from datetime import datetime

from yieldpage.config import (
    ConfigError,
    CrawlerConfig,
    FilesystemCrawlerConfig,
    GitCrawlerConfig,
    S3CrawlerConfig,
    WebCrawlerConfig,
    config_from_file,
)
from yieldpage.pages import FilesystemUri, GitUri, Pages, S3Uri, Uri, WebUri


def uri_from_config(config: CrawlerConfig) -> Uri:
    """Return the URI a configuration starts crawling from."""
    if isinstance(config, WebCrawlerConfig):
        return WebUri(config.start_url)
    if isinstance(config, GitCrawlerConfig):
        return GitUri(config.repo_url)
    if isinstance(config, FilesystemCrawlerConfig):
        return FilesystemUri(config.root_dir)
    if isinstance(config, S3CrawlerConfig):
        return S3Uri(config.bucket, config.region)
    raise TypeError(f"not a crawler configuration: {type(config).__name__}")


def describe_config(config: CrawlerConfig) -> list[str]:
    """Return human-readable lines summarising a configuration."""
    if isinstance(config, WebCrawlerConfig):
        return [
            "Web crawler configuration:",
            f"  Start URL: {config.start_url}",
            f"  Max concurrency: {config.max_concurrency}",
            f"  WebDriver URL: {config.webdriver_url}",
            f"  Number of include patterns: {len(config.include_patterns)}",
            f"  Number of exclude patterns: {len(config.exclude_patterns)}",
        ]
    if isinstance(config, GitCrawlerConfig):
        return [
            "Git crawler configuration:",
            f"  Repository URL: {config.repo_url}",
            f"  Branch: {config.branch}",
        ]
    if isinstance(config, FilesystemCrawlerConfig):
        return [
            "Filesystem crawler configuration:",
            f"  Root directory: {config.root_dir}",
            f"  Max depth: {config.max_depth}",
        ]
    if isinstance(config, S3CrawlerConfig):
        return [
            "S3 crawler configuration:",
            f"  Bucket: {config.bucket}",
            f"  Region: {config.region}",
            f"  Prefix: {config.prefix}",
        ]
    raise TypeError(f"not a crawler configuration: {type(config).__name__}")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl according to a configuration file"
    )
    parser.add_argument(
        "-c", "--config", required=True, help="Path to crawler configuration file"
    )
    parser.add_argument(
        "-i", "--idle-timeout", type=int, help="Override idle timeout in seconds"
    )
    parser.add_argument(
        "-t", "--total-timeout", type=int, help="Override total timeout in seconds"
    )
    parser.add_argument("--concurrency", type=int, help="Override max concurrency")
    return parser.parse_args(argv)


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
    """Crawl as the configuration file says; return the exit status."""
    logging.basicConfig(level=logging.WARNING)
    args = _parse_args(argv)

    try:
        config = config_from_file(args.config)
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Loaded configuration of type: {type(config).__name__}")
    for line in describe_config(config):
        print(line)

    pages = Pages(uri_from_config(config)).with_config(config)
    if args.concurrency is not None:
        print(f"Overriding max concurrency: {args.concurrency}")
        pages = pages.with_max_concurrency(args.concurrency)
    if args.idle_timeout is not None:
        print(f"Overriding idle timeout: {args.idle_timeout}s")
        pages = pages.with_idle_timeout(args.idle_timeout)
    if args.total_timeout is not None:
        print(f"Overriding total timeout: {args.total_timeout}s")
        pages = pages.with_total_timeout(args.total_timeout)

    return asyncio.run(_crawl(pages))