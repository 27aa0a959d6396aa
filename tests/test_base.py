import pytest

from yieldpage.crawlers.base import Crawler
from yieldpage.filter import UrlFilter, UrlFilterConfig
from yieldpage.parsers.types import ParseResult


class RecordingCrawler(Crawler):
    def __init__(self):
        self.started = False
        self.pages = []

    def start(self):
        self.started = True

    def process_page(self, url, parse_result):
        self.pages.append((url, parse_result))


def test_base_class_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Crawler()


def test_subclass_missing_methods_cannot_be_instantiated():
    class Partial(Crawler):
        def start(self):
            pass

    with pytest.raises(TypeError):
        Partial()

    complete = RecordingCrawler()
    Crawler.init(complete, "https://example.com/")
    assert complete.root_url == "https://example.com/"


def test_init_sets_root_url():
    crawler = RecordingCrawler()
    assert crawler.root_url is None
    Crawler.init(crawler, "https://example.com/docs/")
    assert crawler.root_url == "https://example.com/docs/"


def test_set_url_filter_stores_filter():
    crawler = RecordingCrawler()
    assert crawler.url_filter is None
    url_filter = UrlFilter(
        UrlFilterConfig(allow_external=False, required_domain="example.com")
    )
    crawler.set_url_filter(url_filter)
    assert crawler.url_filter is url_filter
    assert crawler.url_filter.should_crawl("https://example.com/page")
    assert not crawler.url_filter.should_crawl("https://other.com/page")


def test_abstract_methods_dispatch_to_subclass():
    crawler = RecordingCrawler()
    crawler.start()
    result = ParseResult.content_only("text")
    crawler.process_page("https://example.com/", result)
    assert crawler.started
    assert crawler.pages == [("https://example.com/", result)]