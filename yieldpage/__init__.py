"""Crawl a starting web URL and yield the pages found, with their text and links."""

__version__ = "0.1.0"