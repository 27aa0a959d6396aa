"""Parsers that extract text and links from HTML and plain-text content."""