"""Crawler configuration types and their JSON form."""

from __future__ import annotations

import json
from dataclasses import MISSING, asdict, dataclass, field, fields
from os import PathLike
from pathlib import Path
from typing import Any, Union

DEFAULT_MAX_CONCURRENCY = 5
DEFAULT_WEBDRIVER_URL = "http://localhost:4444"
DEFAULT_GIT_BRANCH = "main"
DEFAULT_MAX_DEPTH = 10


class ConfigError(ValueError):
    """Raised when a configuration document is malformed."""


@dataclass
class WebCrawlerConfig:
    """Configuration for the web crawler."""

    start_url: str
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    allow_external: bool = False
    include_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)
    webdriver_url: str = DEFAULT_WEBDRIVER_URL


@dataclass
class GitCrawlerConfig:
    """Configuration for a Git repository crawler."""

    repo_url: str
    branch: str = DEFAULT_GIT_BRANCH
    include_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)


@dataclass
class FilesystemCrawlerConfig:
    """Configuration for a filesystem crawler."""

    root_dir: str
    max_depth: int = DEFAULT_MAX_DEPTH
    include_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)


@dataclass
class S3CrawlerConfig:
    """Configuration for an S3 crawler."""

    bucket: str
    region: str
    prefix: str = ""
    include_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)


CrawlerConfig = Union[
    WebCrawlerConfig, GitCrawlerConfig, FilesystemCrawlerConfig, S3CrawlerConfig
]

_CLASS_BY_TAG: dict[str, type] = {
    "Web": WebCrawlerConfig,
    "Git": GitCrawlerConfig,
    "Filesystem": FilesystemCrawlerConfig,
    "S3": S3CrawlerConfig,
}
_TAG_BY_CLASS = {cls: tag for tag, cls in _CLASS_BY_TAG.items()}


def _checked(name: str, kind: str, value: Any) -> Any:
    if kind == "str":
        if not isinstance(value, str):
            raise ConfigError(f"field `{name}` must be a string")
        return value
    if kind == "bool":
        if not isinstance(value, bool):
            raise ConfigError(f"field `{name}` must be a boolean")
        return value
    if kind == "int":
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"field `{name}` must be a non-negative integer")
        return value
    if kind == "list[str]":
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"field `{name}` must be a list of strings")
        return list(value)
    raise ConfigError(f"field `{name}` has an unsupported type")


def config_from_dict(data: Any) -> CrawlerConfig:
    """Build a crawler configuration from a mapping tagged by its `type` key."""
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a JSON object")
    if "type" not in data:
        raise ConfigError("missing field `type`")
    tag = data["type"]
    cls = _CLASS_BY_TAG.get(tag) if isinstance(tag, str) else None
    if cls is None:
        expected = ", ".join(f"`{t}`" for t in _CLASS_BY_TAG)
        raise ConfigError(f"unknown variant `{tag}`, expected one of {expected}")

    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if f.name in data:
            kwargs[f.name] = _checked(f.name, str(f.type), data[f.name])
        elif f.default is MISSING and f.default_factory is MISSING:
            raise ConfigError(f"missing field `{f.name}`")
    return cls(**kwargs)


def config_from_json(text: str) -> CrawlerConfig:
    """Parse a crawler configuration from a JSON string."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON: {exc}") from exc
    return config_from_dict(data)


def config_from_file(path: str | PathLike[str]) -> CrawlerConfig:
    """Load a crawler configuration from a JSON file; OSError if it cannot be read."""
    return config_from_json(Path(path).read_text(encoding="utf-8"))


def config_to_dict(config: CrawlerConfig) -> dict[str, Any]:
    """Return the tagged mapping form of a crawler configuration."""
    tag = _TAG_BY_CLASS.get(type(config))
    if tag is None:
        raise TypeError(f"not a crawler configuration: {type(config).__name__}")
    return {"type": tag, **asdict(config)}