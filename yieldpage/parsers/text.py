"""Plain-text parsing with paragraph and whitespace handling."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from yieldpage.parsers.types import ParseResult


@dataclass(frozen=True)
class TextParserOptions:
    """Options controlling how plain text is normalised."""

    preserve_paragraphs: bool = False
    preserve_line_breaks: bool = False
    normalize_whitespace: bool = True
    detect_urls: bool = True


def _lines(text: str) -> list[str]:
    """Split on newlines, dropping a trailing empty line and any carriage return."""
    parts = text.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [p[:-1] if p.endswith("\r") else p for p in parts]


def parse(text: str, options: TextParserOptions | None = None) -> ParseResult:
    """Parse plain text into normalised content; never yields links."""
    if options is None:
        options = TextParserOptions()
    if not text.strip():
        return ParseResult.content_only("")
    paragraphs = split_into_paragraphs(text)
    processed = process_paragraphs(paragraphs, options)
    return ParseResult.content_only(join_paragraphs(processed, options))


def split_into_paragraphs(text: str) -> list[list[str]]:
    """Split text into paragraphs of trimmed lines, separated by blank lines."""
    paragraphs: list[list[str]] = []
    current: list[str] = []
    for line in _lines(text):
        trimmed = line.strip()
        if trimmed:
            current.append(trimmed)
        elif current:
            paragraphs.append(current)
            current = []
    if current:
        paragraphs.append(current)
    return paragraphs


def process_paragraphs(
    paragraphs: Sequence[Sequence[str]], options: TextParserOptions
) -> list[str]:
    """Turn each paragraph's lines into a single string."""
    return [process_paragraph(para, options) for para in paragraphs]


def process_paragraph(paragraph: Sequence[str], options: TextParserOptions) -> str:
    """Join a paragraph's lines with newlines or spaces, as the options say."""
    separator = "\n" if options.preserve_line_breaks else " "
    return separator.join(paragraph)


def join_paragraphs(paragraphs: Sequence[str], options: TextParserOptions) -> str:
    """Join processed paragraphs and normalise the whitespace of the result."""
    if not paragraphs:
        return ""
    separator = "\n\n" if options.preserve_paragraphs else " "
    return normalize_whitespace(separator.join(paragraphs), options)


def normalize_whitespace(text: str, options: TextParserOptions) -> str:
    """Collapse whitespace while keeping the structure the options ask for."""
    if not options.normalize_whitespace:
        return text
    if not options.preserve_paragraphs and not options.preserve_line_breaks:
        return normalize_whitespace_in_segment(text)
    if options.preserve_paragraphs and not options.preserve_line_breaks:
        return "\n\n".join(
            normalize_whitespace_in_segment(para) for para in text.split("\n\n")
        )
    return "\n".join(
        line if not line.strip() else normalize_whitespace_in_segment(line)
        for line in _lines(text)
    )


def normalize_whitespace_in_segment(segment: str) -> str:
    """Collapse all runs of whitespace to single spaces and trim the ends."""
    return " ".join(segment.split())