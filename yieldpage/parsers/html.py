"""HTML parsing: body text and anchor links."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup
from bs4.element import PreformattedString

from yieldpage.parsers.types import ParseResult

logger = logging.getLogger(__name__)

_HEAD_TAGS = frozenset({"head", "title"})


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _body_text(soup: BeautifulSoup) -> str:
    body = soup.body
    if body is not None:
        strings = body.find_all(string=True)
    else:
        strings = [
            s
            for s in soup.find_all(string=True)
            if not any(parent.name in _HEAD_TAGS for parent in s.parents)
        ]
    pieces = [str(s) for s in strings if not isinstance(s, PreformattedString)]
    return " ".join(" ".join(pieces).split())


def _links(soup: BeautifulSoup) -> list[str]:
    return [str(a["href"]) for a in soup.find_all("a", href=True)]


def parse(html: str) -> ParseResult:
    """Extract the whitespace-normalised body text and every anchor's href."""
    soup = _soup(html)
    content = _body_text(soup)
    links = _links(soup)
    logger.debug("HTML parser found %d links", len(links))
    if links:
        logger.debug("First few links: %s", links[:5])
    return ParseResult(content, links)


def parse_text_only(html: str) -> ParseResult:
    """Extract only the whitespace-normalised body text."""
    return ParseResult.content_only(_body_text(_soup(html)))


def parse_links_only(html: str) -> list[str]:
    """Extract only the href of every anchor, in document order."""
    return _links(_soup(html))