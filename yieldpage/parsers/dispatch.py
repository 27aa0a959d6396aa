"""Choose a parser for content and run it."""

from __future__ import annotations

from yieldpage.parsers import html as html_parser
from yieldpage.parsers import text as text_parser
from yieldpage.parsers.text import TextParserOptions
from yieldpage.parsers.types import ParseResult, ParserType

PDF_PLACEHOLDER = "PDF parsing not implemented yet"


def parse(
    content: str,
    parser_type: ParserType,
    text_options: TextParserOptions | None = None,
) -> ParseResult:
    """Parse content with the parser for its type; text options apply to text-like content."""
    if parser_type is ParserType.HTML:
        return html_parser.parse(content)
    if parser_type is ParserType.PDF:
        return ParseResult.content_only(PDF_PLACEHOLDER)
    return text_parser.parse(content, text_options)


def parse_from_url(
    content: str,
    url: str,
    text_options: TextParserOptions | None = None,
) -> ParseResult:
    """Classify content by its URL, then parse it."""
    return parse(content, ParserType.from_url(url), text_options)