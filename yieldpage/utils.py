"""Small helpers for timeouts and file names."""

from __future__ import annotations

import re
from datetime import timedelta

_MAX_FILENAME_LENGTH = 100
_INVALID_FILENAME_CHARS = re.compile(r"[/:?&=#%]")


def calculate_timeout(base_ms: int, url_length: int) -> timedelta:
    """Return a request timeout that grows by 100 ms for every 20 URL characters."""
    additional_ms = (url_length // 20) * 100
    return timedelta(milliseconds=base_ms + additional_ms)


def sanitize_filename(url: str) -> str:
    """Turn a URL into a file name of at most 100 characters."""
    name = url.replace("http://", "").replace("https://", "")
    name = _INVALID_FILENAME_CHARS.sub("_", name)
    return name[:_MAX_FILENAME_LENGTH]