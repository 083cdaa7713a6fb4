"""
RSS feed serialization.

This package converts between RSS 2.0 documents and Channel objects and
reads/writes the output feed file.
"""

from .rss import RssParseError, parse_channel, read_channel, render_channel, write_channel

__all__ = [
    "RssParseError",
    "parse_channel",
    "render_channel",
    "read_channel",
    "write_channel",
]
