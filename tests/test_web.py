import asyncio
import json
import re
from collections import Counter

import httpx
import pytest
import respx

from yieldpage.config import WebCrawlerConfig
from yieldpage.crawlers import web
from yieldpage.crawlers.webdriver import WebDriverClient
from yieldpage.parsers.dispatch import PDF_PLACEHOLDER

DRIVER = "http://webdriver.test"
ROOT = "http://example.com/"

SITE = {
    ROOT: (
        '<html><body><a href="/a">A</a><a href="/b#top">B</a>'
        '<a href="http://other.example.org/x">X</a>'
        '<a href="/logo.png">L</a></body></html>'
    ),
    "http://example.com/a": '<html><body><a href="/">home</a><a href="/b">B</a></body></html>',
    "http://example.com/b": "<html><body>leaf</body></html>",
}


class FakeDriver:
    def __init__(self, pages):
        self.pages = pages
        self.current = {}
        self.visits = []
        self.sessions = 0
        self.closed = 0

    def install(self, router, base=DRIVER):
        prefix = re.escape(base)
        router.post(f"{base}/session").mock(side_effect=self._new_session)
        router.post(url__regex=rf"^{prefix}/session/[^/]+/url$").mock(
            side_effect=self._goto
        )
        router.get(url__regex=rf"^{prefix}/session/[^/]+/source$").mock(
            side_effect=self._source
        )
        router.delete(url__regex=rf"^{prefix}/session/[^/]+$").mock(
            side_effect=self._delete
        )

    @staticmethod
    def _sid(request):
        return request.url.path.split("/")[2]

    def _new_session(self, request):
        self.sessions += 1
        sid = f"s{self.sessions}"
        return httpx.Response(200, json={"value": {"sessionId": sid, "capabilities": {}}})

    def _goto(self, request):
        url = json.loads(request.content)["url"]
        self.current[self._sid(request)] = url
        self.visits.append(url)
        return httpx.Response(200, json={"value": None})

    def _source(self, request):
        url = self.current.get(self._sid(request))
        if url not in self.pages:
            return httpx.Response(
                404, json={"value": {"error": "no such window", "message": "missing"}}
            )
        return httpx.Response(200, json={"value": self.pages[url]})

    def _delete(self, request):
        self.closed += 1
        return httpx.Response(200, json={"value": None})


def _mock():
    return respx.mock(assert_all_called=False)


def _refuse_rest(router):
    router.route().mock(side_effect=httpx.ConnectError)


async def _collect(stream):
    async def run():
        return [page async for page in stream]

    return await asyncio.wait_for(run(), 15)


@pytest.fixture(autouse=True)
def fast_timings(monkeypatch):
    monkeypatch.setattr(web, "URL_WAIT_SECONDS", 0.3)
    monkeypatch.setattr(web, "URL_WAIT_STEP_SECONDS", 0.05)
    monkeypatch.setattr(web, "INITIAL_PAGE_GRACE_SECONDS", 0.0)


def test_create_url_filter_keeps_crawl_on_site_and_path():
    config = WebCrawlerConfig("https://example.com/docs/")
    url_filter = web.create_url_filter(config.start_url, config)
    assert url_filter.config.required_domain == "example.com"
    assert url_filter.config.required_path_prefix == "/docs/"
    assert url_filter.should_crawl("https://example.com/docs/page.html") is True
    assert url_filter.should_crawl("https://example.com/blog/post") is False
    assert url_filter.should_crawl("https://other.example.org/docs/x") is False
    assert url_filter.should_crawl("https://example.com/docs/style.css") is False


def test_create_url_filter_appends_user_excludes():
    config = WebCrawlerConfig(ROOT, exclude_patterns=[r"/private/"])
    url_filter = web.create_url_filter(ROOT, config)
    assert url_filter.config.exclude_patterns == [web.ASSET_EXCLUDE_PATTERN, r"/private/"]
    assert url_filter.should_crawl("http://example.com/private/x") is False
    assert url_filter.should_crawl("http://example.com/public/x") is True


def test_create_url_filter_allow_external_lifts_restrictions():
    config = WebCrawlerConfig(ROOT, allow_external=True)
    url_filter = web.create_url_filter(ROOT, config)
    assert url_filter.config.required_domain is None
    assert url_filter.config.required_path_prefix is None
    assert url_filter.should_crawl("http://other.example.org/x") is True
    assert url_filter.should_crawl("http://other.example.org/x.png") is False


def test_create_url_filter_ip_root_has_no_domain():
    root = "http://127.0.0.1:8000/"
    config = WebCrawlerConfig(root)
    url_filter = web.create_url_filter(root, config)
    assert url_filter.config.required_domain is None
    assert url_filter.should_crawl("http://127.0.0.1:8000/page") is False


@pytest.mark.asyncio
async def test_scrape_html_page_returns_content_and_links():
    url = "http://example.com/page"
    html = (
        '<html><body><p>Hello</p><p>world</p><a href="/next">n</a>'
        '<a href="https://other.example.org/">o</a></body></html>'
    )
    fake = FakeDriver({url: html})
    with _mock() as router:
        fake.install(router)
        _refuse_rest(router)
        client = await WebDriverClient.connect(DRIVER)
        page = await web.scrape(client, url, 0)
        await client.close()
    assert page.url == url
    assert page.title is None
    assert page.content.startswith("Hello world")
    assert page.links == ["/next", "https://other.example.org/"]
    assert fake.visits == [url]


@pytest.mark.asyncio
async def test_scrape_text_file_keeps_paragraphs_and_has_no_links():
    url = "http://example.com/notes.txt"
    fake = FakeDriver({url: "Para one.\n\n\nPara two."})
    with _mock() as router:
        fake.install(router)
        _refuse_rest(router)
        client = await WebDriverClient.connect(DRIVER)
        page = await web.scrape(client, url, 1)
        await client.close()
    assert page.content == "Para one.\n\nPara two."
    assert page.links == []


@pytest.mark.asyncio
async def test_scrape_pdf_uses_placeholder():
    url = "http://example.com/doc.pdf"
    fake = FakeDriver({url: "%PDF-1.4"})
    with _mock() as router:
        fake.install(router)
        _refuse_rest(router)
        client = await WebDriverClient.connect(DRIVER)
        page = await web.scrape(client, url, 0)
        await client.close()
    assert page.content == PDF_PLACEHOLDER
    assert page.links == []


@pytest.mark.asyncio
async def test_scrape_returns_none_when_source_fails():
    fake = FakeDriver({})
    with _mock() as router:
        fake.install(router)
        _refuse_rest(router)
        client = await WebDriverClient.connect(DRIVER)
        page = await web.scrape(client, "http://example.com/missing", 0)
        await client.close()
    assert page is None
    assert fake.visits == ["http://example.com/missing"]


@pytest.mark.asyncio
async def test_start_crawls_site_once_per_page():
    fake = FakeDriver(SITE)
    config = WebCrawlerConfig(ROOT, max_concurrency=2, webdriver_url=DRIVER)
    with _mock() as router:
        fake.install(router)
        _refuse_rest(router)
        stream = await web.start(config)
        pages = await _collect(stream)
    assert sorted(p.url for p in pages) == sorted(SITE)
    assert all(count == 1 for count in Counter(fake.visits).values())
    assert not any("other.example.org" in v for v in fake.visits)
    assert fake.closed == fake.sessions
    assert await stream.recv() is None


@pytest.mark.asyncio
async def test_start_honours_configured_exclusions():
    fake = FakeDriver(SITE)
    config = WebCrawlerConfig(
        ROOT, max_concurrency=1, webdriver_url=DRIVER, exclude_patterns=[r"/b$"]
    )
    with _mock() as router:
        fake.install(router)
        _refuse_rest(router)
        pages = await _collect(await web.start(config))
    assert sorted(p.url for p in pages) == [ROOT, "http://example.com/a"]


@pytest.mark.asyncio
async def test_start_without_webdriver_yields_nothing():
    config = WebCrawlerConfig(ROOT, max_concurrency=2, webdriver_url=DRIVER)
    with _mock() as router:
        _refuse_rest(router)
        pages = await _collect(await web.start(config))
    assert pages == []


@pytest.mark.asyncio
async def test_start_with_zero_workers_ends_immediately():
    config = WebCrawlerConfig(ROOT, max_concurrency=0, webdriver_url=DRIVER)
    pages = await _collect(await web.start(config))
    assert pages == []


@pytest.mark.asyncio
async def test_start_rejects_relative_url():
    with pytest.raises(ValueError):
        await web.start(WebCrawlerConfig("not a url"))


@pytest.mark.asyncio
async def test_start_web_crawler_uses_default_webdriver():
    fake = FakeDriver({ROOT: "<html><body>only page</body></html>"})
    with _mock() as router:
        fake.install(router, base="http://localhost:4444")
        _refuse_rest(router)
        pages = await _collect(await web.start_web_crawler(ROOT, 1))
    assert [p.url for p in pages] == [ROOT]
    assert pages[0].content == "only page"


@pytest.mark.asyncio
async def test_aclose_ends_stream():
    fake = FakeDriver(SITE)
    config = WebCrawlerConfig(ROOT, max_concurrency=2, webdriver_url=DRIVER)
    with _mock() as router:
        fake.install(router)
        _refuse_rest(router)
        stream = await web.start(config)
        await stream.aclose()
        page = await stream.recv()
    assert page is None