"""Concurrent web crawler that loads pages through a WebDriver server."""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import time
from dataclasses import dataclass, field
from urllib.parse import urljoin, urlsplit

from yieldpage.config import WebCrawlerConfig
from yieldpage.crawlers.webdriver import (
    WebDriverClient,
    WebDriverError,
    connect_with_fallback,
)
from yieldpage.filter import UrlFilter, UrlFilterConfig
from yieldpage.parsers.dispatch import parse_from_url
from yieldpage.parsers.text import TextParserOptions
from yieldpage.parsers.types import ParserType
from yieldpage.results import PageData

logger = logging.getLogger(__name__)

CHANNEL_CAPACITY = 10_000
URL_WAIT_SECONDS = 5.0
URL_WAIT_STEP_SECONDS = 1.0
MAX_WAIT_REDUCTION_STEPS = 4
INITIAL_PAGE_GRACE_SECONDS = 5.0
SCRAPE_TIMEOUT_SECONDS = 45.0
ASSET_EXCLUDE_PATTERN = r"\.(jpg|jpeg|png|gif|css|js|ico|woff|woff2|ttf|eot|svg|pdf)$"

_SCRAPE_TEXT_OPTIONS = TextParserOptions(
    preserve_paragraphs=True,
    preserve_line_breaks=False,
    normalize_whitespace=True,
    detect_urls=True,
)
_CLOSED = object()


class PageStream:
    """Asynchronous stream of pages produced by a running crawl.

    Iterate with ``async for`` or call ``recv()``, which returns None once
    the crawl has finished. ``aclose()`` stops the crawl early.
    """

    def __init__(self, maxsize: int = CHANNEL_CAPACITY) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize)
        self._finished = False
        self._cancelled = False
        self._tasks: list[asyncio.Task[None]] = []

    async def _send(self, page: PageData) -> bool:
        if self._cancelled:
            return False
        await self._queue.put(page)
        return True

    async def _finish(self) -> None:
        await self._queue.put(_CLOSED)

    async def recv(self) -> PageData | None:
        """Return the next page, or None when the crawl is over."""
        if self._finished:
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            self._finished = True
            return None
        assert isinstance(item, PageData)
        return item

    def __aiter__(self) -> PageStream:
        return self

    async def __anext__(self) -> PageData:
        page = await self.recv()
        if page is None:
            raise StopAsyncIteration
        return page

    async def aclose(self) -> None:
        """Stop the crawl and end the stream."""
        self._cancelled = True
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._finished = True

    async def __aenter__(self) -> PageStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


@dataclass
class _CrawlState:
    root_url: str
    url_filter: UrlFilter
    webdriver_url: str
    results: PageStream
    semaphore: asyncio.Semaphore
    crawl_queue: asyncio.Queue[str] = field(
        default_factory=lambda: asyncio.Queue(CHANNEL_CAPACITY)
    )
    crawl_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    visited: set[str] = field(default_factory=set)
    active_workers: int = 0
    initial_page_processed: bool = False


def _domain_of(url: str) -> str | None:
    host = urlsplit(url).hostname
    if not host:
        return None
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return host
    return None


def _path_of(url: str) -> str:
    parts = urlsplit(url)
    return parts.path or ("/" if parts.netloc else "")


def create_url_filter(root_url: str, config: WebCrawlerConfig) -> UrlFilter:
    """Build the filter that keeps a crawl within the start URL's site and path."""
    exclude_patterns = [ASSET_EXCLUDE_PATTERN, *config.exclude_patterns]
    restricted = not config.allow_external
    filter_config = UrlFilterConfig(
        allow_external=config.allow_external,
        required_domain=_domain_of(root_url) if restricted else None,
        required_path_prefix=_path_of(root_url) if restricted else None,
        include_patterns=list(config.include_patterns),
        exclude_patterns=exclude_patterns,
    )
    return UrlFilter(filter_config)


async def start(config: WebCrawlerConfig) -> PageStream:
    """Start crawling from the configured URL and return the stream of pages found.

    Raises ValueError if the start URL is not absolute and re.error if a
    pattern is invalid.
    """
    logger.info("Starting web crawler for: %s", config.start_url)
    root_url = config.start_url
    if not urlsplit(root_url).scheme:
        raise ValueError(f"Invalid start URL: {root_url!r}")

    url_filter = create_url_filter(root_url, config)
    results = PageStream(CHANNEL_CAPACITY)
    state = _CrawlState(
        root_url=root_url,
        url_filter=url_filter,
        webdriver_url=config.webdriver_url,
        results=results,
        semaphore=asyncio.Semaphore(config.max_concurrency),
    )
    state.crawl_queue.put_nowait(config.start_url)

    workers = [
        asyncio.create_task(_run_worker(worker_id, state))
        for worker_id in range(config.max_concurrency)
    ]
    monitor = asyncio.create_task(_monitor(state, workers))
    results._tasks = [*workers, monitor]
    return results


async def start_web_crawler(start_url: str, max_concurrency: int) -> PageStream:
    """Start a crawl with default settings and the given concurrency."""
    config = WebCrawlerConfig(start_url)
    config.max_concurrency = max_concurrency
    return await start(config)


async def _monitor(state: _CrawlState, workers: list[asyncio.Task[None]]) -> None:
    await asyncio.sleep(INITIAL_PAGE_GRACE_SECONDS)
    if not state.initial_page_processed:
        logger.info("No links found, closing result channel early")

    outcomes = await asyncio.gather(*workers, return_exceptions=True)
    for worker_id, outcome in enumerate(outcomes):
        if isinstance(outcome, Exception):
            logger.error("Worker %s failed: %s", worker_id, outcome)
    logger.info("All %d worker threads have completed", len(workers))
    await state.results._finish()


async def _run_worker(worker_id: int, state: _CrawlState) -> None:
    state.active_workers += 1
    logger.debug(
        "Worker %s started, total active: %s", worker_id, state.active_workers
    )
    try:
        if not await _worker_loop(worker_id, state):
            logger.warning("Worker %s loop terminated with an error", worker_id)
    finally:
        state.active_workers -= 1
        logger.debug(
            "Worker %s shutting down, remaining active: %s",
            worker_id,
            state.active_workers,
        )
        logger.debug("Worker %s signaled completion", worker_id)


async def _worker_loop(worker_id: int, state: _CrawlState) -> bool:
    """Process queued URLs until none arrive in time; False if results can't be sent."""
    logger.debug("Worker %s starting processing loop", worker_id)
    client: WebDriverClient | None = None
    try:
        while (url := await _next_url(worker_id, state)) is not None:
            if not _mark_visited(worker_id, url, state.visited):
                continue
            async with state.semaphore:
                logger.debug("Worker %s acquired web semaphore for: %s", worker_id, url)
                if client is None:
                    logger.debug("Worker %s connecting to WebDriver", worker_id)
                    client = await connect_with_fallback(worker_id, state.webdriver_url)
                    if client is None:
                        continue
                page = await scrape(client, url, worker_id)
                if page is None:
                    logger.error("Worker %s failed to scrape: %s", worker_id, url)
                    continue
                logger.debug("Worker %s completed scraping: %s", worker_id, url)
                if not await _process_discovered_page(worker_id, url, page, state):
                    return False
    finally:
        if client is not None:
            try:
                await client.close()
            except WebDriverError as exc:
                logger.warning("Worker %s failed to close client: %s", worker_id, exc)
    logger.debug(
        "Worker %s completed processing loop - no more URLs to process", worker_id
    )
    return True


def _url_wait_timeout(worker_id: int) -> float:
    if worker_id == 0:
        return URL_WAIT_SECONDS
    reduction = min(worker_id, MAX_WAIT_REDUCTION_STEPS) * URL_WAIT_STEP_SECONDS
    return max(URL_WAIT_SECONDS - reduction, 0.0)


async def _next_url(worker_id: int, state: _CrawlState) -> str | None:
    async with state.crawl_lock:
        try:
            url = await asyncio.wait_for(
                state.crawl_queue.get(), _url_wait_timeout(worker_id)
            )
        except asyncio.TimeoutError:
            logger.info(
                "Worker %s timed out waiting for new URLs, assuming no more URLs",
                worker_id,
            )
            return None
    logger.debug("Worker %s processing: %s", worker_id, url)
    return url


def _mark_visited(worker_id: int, url: str, visited: set[str]) -> bool:
    if url in visited:
        logger.debug("Worker %s skipping already visited: %s", worker_id, url)
        return False
    visited.add(url)
    return True


def _resolve(base: str, link: str) -> str | None:
    try:
        return urljoin(base, link)
    except ValueError:
        return None


async def _process_discovered_page(
    worker_id: int, url: str, page: PageData, state: _CrawlState
) -> bool:
    if not await state.results._send(page):
        logger.error("Worker %s failed to send result: stream closed", worker_id)
        return False

    state.initial_page_processed = True
    logger.debug("Marked initial page as processed")

    for link in page.links:
        resolved = _resolve(url, link)
        if resolved is None:
            continue
        if not state.url_filter.should_crawl(resolved, state.root_url):
            logger.debug("URL filter rejected: %s", resolved)
            continue
        logger.debug("URL filter accepted: %s", resolved)

        normalized = state.url_filter.normalize_url(resolved)
        if normalized in state.visited:
            logger.debug("Skipping already visited or queued link: %s", normalized)
            continue
        logger.info("Queuing link for crawling: %s", normalized)
        await state.crawl_queue.put(normalized)
    return True


async def scrape(client: WebDriverClient, url: str, worker_id: int) -> PageData | None:
    """Load a URL in the WebDriver session and parse it; None on any failure."""
    started = time.monotonic()
    logger.debug("SCRAPE: %s", url)
    extract_links = ParserType.from_url(url).should_extract_links()
    try:
        return await asyncio.wait_for(
            _scrape_page(client, url, worker_id, started, extract_links),
            SCRAPE_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error("Timeout scraping: %s", url)
        return None


async def _scrape_page(
    client: WebDriverClient,
    url: str,
    worker_id: int,
    started: float,
    extract_links: bool,
) -> PageData | None:
    suffix = "" if extract_links else " text file"
    if not extract_links:
        logger.debug("Special handling for text-based file: %s", url)

    try:
        await client.goto(url)
    except WebDriverError as exc:
        return _navigation_failed(exc, f"accessing{suffix}", worker_id, url)
    try:
        source = await client.source()
    except WebDriverError as exc:
        return _navigation_failed(exc, f"getting source for{suffix}", worker_id, url)

    result = parse_from_url(source, url, _SCRAPE_TEXT_OPTIONS)
    if extract_links:
        logger.info("Found %d links in %s", len(result.links), url)
    logger.debug(
        "Worker %s processed %s %s in %.2f seconds",
        worker_id,
        "HTML" if extract_links else "text file",
        url,
        time.monotonic() - started,
    )
    return PageData(url=url, title=None, content=result.content, links=result.links)


def _navigation_failed(
    error: WebDriverError, context: str, worker_id: int, url: str
) -> None:
    if "Unable to find session" in str(error):
        logger.warning("Worker %s lost session while %s %s", worker_id, context, url)
    else:
        logger.error("Failed to %s %s: %s", context, url, error)
    return None