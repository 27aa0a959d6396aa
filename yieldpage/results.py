"""Data describing a page discovered by a crawler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class PageData:
    """A discovered page with its URL, title, text content and links."""

    url: str
    title: str | None
    content: str
    links: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable mapping of the page."""
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "links": list(self.links),
        }