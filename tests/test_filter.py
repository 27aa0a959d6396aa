import re

import pytest

from yieldpage.filter import UrlFilter, UrlFilterConfig


def test_default_filter():
    url_filter = UrlFilter()

    assert not url_filter.should_crawl("https://example.com/image.jpg", None)

    html_url = "https://example.com/page.html"
    assert not url_filter.should_crawl(html_url, None)

    config = UrlFilterConfig(
        allow_external=True,
        required_domain=None,
        required_path_prefix=None,
        include_patterns=[],
        exclude_patterns=[
            r"\.(jpg|jpeg|png|gif|css|js|ico|svg|woff|woff2|ttf|eot|pdf)$",
            r"/_sources/",
        ],
    )
    assert UrlFilter(config).should_crawl(html_url, None)


def test_default_config_excludes_assets():
    config = UrlFilterConfig(allow_external=True)
    url_filter = UrlFilter(config)
    assert not url_filter.should_crawl("https://example.com/style.css")
    assert not url_filter.should_crawl("https://example.com/_sources/index.rst.txt")
    assert url_filter.should_crawl("https://example.com/index.html")


def test_domain_restriction():
    config = UrlFilterConfig(
        allow_external=False,
        required_domain="example.com",
        required_path_prefix=None,
        include_patterns=[],
        exclude_patterns=[],
    )
    url_filter = UrlFilter(config)
    assert url_filter.should_crawl("https://example.com/page", None)
    assert not url_filter.should_crawl("https://other.com/page", None)


def test_domain_required_but_url_has_ip_host():
    config = UrlFilterConfig(required_domain="example.com", exclude_patterns=[])
    assert not UrlFilter(config).should_crawl("http://127.0.0.1/page")


def test_path_restriction():
    config = UrlFilterConfig(
        allow_external=True,
        required_domain=None,
        required_path_prefix="/docs",
        include_patterns=[],
        exclude_patterns=[],
    )
    url_filter = UrlFilter(config)
    assert url_filter.should_crawl("https://example.com/docs/page", None)
    assert not url_filter.should_crawl("https://example.com/blog/post", None)


def test_root_path_prefix_matches_bare_host():
    config = UrlFilterConfig(
        required_domain="example.com", required_path_prefix="/", exclude_patterns=[]
    )
    assert UrlFilter(config).should_crawl("https://example.com")


def test_regex_patterns():
    config = UrlFilterConfig(
        allow_external=True,
        required_domain=None,
        required_path_prefix=None,
        include_patterns=[r"/docs/.*\.html$"],
        exclude_patterns=[r"/docs/draft/"],
    )
    url_filter = UrlFilter(config)
    assert url_filter.should_crawl("https://example.com/docs/page.html", None)
    assert not url_filter.should_crawl("https://example.com/docs/page.txt", None)
    assert not url_filter.should_crawl("https://example.com/docs/draft/page.html", None)


def test_should_parse_links():
    url_filter = UrlFilter()
    assert not url_filter.should_parse_links("https://example.com/document.txt")
    assert not url_filter.should_parse_links("https://example.com/config.yaml")
    assert not url_filter.should_parse_links("https://example.com/config.yml")
    assert not url_filter.should_parse_links("https://example.com/_sources/a.html")
    assert url_filter.should_parse_links("https://example.com/page.html")


def test_normalize_url_removes_fragment():
    url_filter = UrlFilter()
    assert (
        url_filter.normalize_url("https://example.com/page#section")
        == "https://example.com/page"
    )
    assert (
        url_filter.normalize_url("https://example.com/page?q=1#top")
        == "https://example.com/page?q=1"
    )


@pytest.mark.parametrize(
    "url",
    ["https://example.com/a#b", "https://example.com/x/y", "https://example.com/?k=v"],
)
def test_normalize_is_idempotent(url):
    url_filter = UrlFilter()
    once = url_filter.normalize_url(url)
    assert url_filter.normalize_url(once) == once
    assert "#" not in once


def test_invalid_pattern_raises():
    with pytest.raises(re.error):
        UrlFilter(UrlFilterConfig(include_patterns=["("]))


def test_default_configs_are_independent():
    first = UrlFilterConfig()
    first.exclude_patterns.append("extra")
    assert "extra" not in UrlFilterConfig().exclude_patterns