"""Common interface for crawlers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from yieldpage.filter import UrlFilter
from yieldpage.parsers.types import ParseResult


class Crawler(ABC):
    """Base class for crawlers that start from a root URL and report pages.

    Subclasses must implement `start` and `process_page`. The root URL and
    the URL filter are stored on the instance by `init` and `set_url_filter`.
    """

    root_url: str | None = None
    url_filter: UrlFilter | None = None

    def init(self, root_url: str) -> None:
        """Set the URL the crawl starts from."""
        self.root_url = root_url

    @abstractmethod
    def start(self) -> None:
        """Run the crawl."""

    def set_url_filter(self, url_filter: UrlFilter) -> None:
        """Set the filter that decides which URLs are crawled."""
        self.url_filter = url_filter

    @abstractmethod
    def process_page(self, url: str, parse_result: ParseResult) -> None:
        """Handle a page that has been fetched and parsed."""