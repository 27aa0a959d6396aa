"""Builder that starts a crawl for a URI and yields the pages it finds."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import timedelta
from os import PathLike
from typing import Union

from yieldpage.config import (
    CrawlerConfig,
    WebCrawlerConfig,
    config_from_file,
    config_from_json,
)
from yieldpage.crawlers.web import PageStream
from yieldpage.crawlers.web import start as start_web_crawl

DEFAULT_MAX_CONCURRENCY = 4
WEBDRIVER_URL_ENV = "WEBDRIVER_URL"


class UnsupportedUriError(NotImplementedError):
    """Raised when no crawler exists for the kind of URI given."""


@dataclass(frozen=True)
class WebUri:
    """A web URL."""

    url: str


@dataclass(frozen=True)
class GitUri:
    """A Git repository URL."""

    url: str


@dataclass(frozen=True)
class FilesystemUri:
    """A directory on the local filesystem."""

    path: str


@dataclass(frozen=True)
class S3Uri:
    """An S3 bucket in a region."""

    bucket: str
    region: str


Uri = Union[WebUri, GitUri, FilesystemUri, S3Uri]

_KIND_NAMES = {GitUri: "Git", FilesystemUri: "Filesystem", S3Uri: "S3"}


@dataclass(frozen=True)
class Pages:
    """Settings for a crawl; each `with_` method returns an updated copy."""

    uri: Uri
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    idle_timeout: timedelta | None = None
    total_timeout: timedelta | None = None

    def with_max_concurrency(self, max_concurrency: int) -> Pages:
        """Set the number of concurrent crawl workers."""
        return replace(self, max_concurrency=max_concurrency)

    def with_idle_timeout(self, timeout_seconds: int) -> Pages:
        """Set how long the crawl may go without new pages."""
        return replace(self, idle_timeout=timedelta(seconds=timeout_seconds))

    def with_total_timeout(self, timeout_seconds: int) -> Pages:
        """Set the maximum running time of the crawl."""
        return replace(self, total_timeout=timedelta(seconds=timeout_seconds))

    def with_config(self, config: CrawlerConfig) -> Pages:
        """Apply the settings a crawler configuration carries."""
        if isinstance(config, WebCrawlerConfig):
            return replace(self, max_concurrency=config.max_concurrency)
        return self

    def with_config_file(self, path: str | PathLike[str]) -> Pages:
        """Apply a configuration read from a JSON file."""
        return self.with_config(config_from_file(path))

    def with_config_str(self, config_str: str) -> Pages:
        """Apply a configuration given as a JSON string."""
        return self.with_config(config_from_json(config_str))

    async def generate(self) -> PageStream:
        """Start the crawl and return the stream of pages.

        The WebDriver URL may be overridden by the WEBDRIVER_URL environment
        variable. Raises UnsupportedUriError for URIs with no crawler.
        """
        uri = self.uri
        if isinstance(uri, WebUri):
            config = WebCrawlerConfig(uri.url, max_concurrency=self.max_concurrency)
            webdriver_url = os.environ.get(WEBDRIVER_URL_ENV)
            if webdriver_url:
                config.webdriver_url = webdriver_url
            return await start_web_crawl(config)
        kind = _KIND_NAMES.get(type(uri), type(uri).__name__)
        raise UnsupportedUriError(f"{kind} crawler not yet implemented")