"""Parser kinds and the result a parser produces."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

_TEXT_SUFFIXES = (".txt",)
_YAML_SUFFIXES = (".yaml", ".yml")
_OTHER_SUFFIXES = (".jpg", ".jpeg", ".png", ".gif", ".css", ".js")


class ParserType(Enum):
    """The kind of content a URL is expected to hold."""

    HTML = "html"
    TEXT = "text"
    PDF = "pdf"
    OTHER = "other"

    @classmethod
    def from_url(cls, url: str) -> ParserType:
        """Classify a URL or file path by its suffix and path."""
        if url.endswith(_TEXT_SUFFIXES):
            logger.debug("Classifying as Text: %s", url)
            return cls.TEXT
        if url.endswith(_YAML_SUFFIXES):
            logger.debug("Classifying as Text (YAML): %s", url)
            return cls.TEXT
        if url.endswith(".pdf"):
            logger.debug("Classifying as PDF: %s", url)
            return cls.PDF
        if "/_sources/" in url:
            logger.debug("Classifying as Text (_sources): %s", url)
            return cls.TEXT
        if url.endswith(_OTHER_SUFFIXES):
            logger.debug("Classifying as Other: %s", url)
            return cls.OTHER
        logger.debug("Classifying as HTML: %s", url)
        return cls.HTML

    def should_extract_links(self) -> bool:
        """Return True if content of this kind is searched for links."""
        return self is ParserType.HTML


@dataclass
class ParseResult:
    """Text content extracted by a parser, with any links it found."""

    content: str
    links: list[str] = field(default_factory=list)

    @classmethod
    def content_only(cls, content: str) -> ParseResult:
        """Return a result holding content and no links."""
        return cls(content=content, links=[])