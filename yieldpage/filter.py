"""Rules deciding which URLs a crawler should visit."""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass, field
from urllib.parse import SplitResult, urlsplit, urlunsplit

DEFAULT_EXCLUDE_PATTERNS = (
    r"\.(jpg|jpeg|png|gif|css|js|ico|svg|woff|woff2|ttf|eot|pdf)$",
    r"/_sources/",
)

_NO_PARSE_PATTERNS = tuple(
    re.compile(p) for p in (r"\.txt$", r"\.ya?ml$", r"/_sources/")
)


@dataclass
class UrlFilterConfig:
    """Settings for URL filtering; exclusions take precedence over inclusions."""

    allow_external: bool = False
    required_domain: str | None = None
    required_path_prefix: str | None = None
    include_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS)
    )


def _path_of(parts: SplitResult) -> str:
    return parts.path or ("/" if parts.netloc else "")


def _domain_of(parts: SplitResult) -> str | None:
    host = parts.hostname
    if not host:
        return None
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return host
    return None


class UrlFilter:
    """Decides whether URLs are in scope, using domain, path and regex rules.

    Raises re.error if a pattern in the configuration is invalid.
    """

    def __init__(self, config: UrlFilterConfig | None = None) -> None:
        self.config = config if config is not None else UrlFilterConfig()
        self._include = [re.compile(p) for p in self.config.include_patterns]
        self._exclude = [re.compile(p) for p in self.config.exclude_patterns]

    def should_crawl(self, url: str, base_url: str | None = None) -> bool:
        """Return True if the URL passes every filtering rule."""
        parts = urlsplit(url)
        if not self._in_domain_scope(parts) or not self._in_path_scope(parts):
            return False
        if any(rx.search(url) for rx in self._exclude):
            return False
        if self._include and not any(rx.search(url) for rx in self._include):
            return False
        return True

    def should_parse_links(self, url: str) -> bool:
        """Return False for text-like resources that should not be searched for links."""
        return not any(rx.search(url) for rx in _NO_PARSE_PATTERNS)

    def normalize_url(self, url: str) -> str:
        """Return the URL without its fragment."""
        parts = urlsplit(url)
        return urlunsplit(parts._replace(path=_path_of(parts), fragment=""))

    def _in_domain_scope(self, parts: SplitResult) -> bool:
        required = self.config.required_domain
        if required is None:
            return self.config.allow_external
        return _domain_of(parts) == required

    def _in_path_scope(self, parts: SplitResult) -> bool:
        prefix = self.config.required_path_prefix
        return prefix is None or _path_of(parts).startswith(prefix)