"""
Core data types for the embargo feed republisher.

This module defines the structures passed between the fetch, reconcile and
store stages:
- FeedItem: One RSS <item> as read from the upstream or output feed
- Channel: An RSS <channel> with its metadata and ordered items
- Free / Paid: The two variants of ArticleType
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Union


@dataclass
class FeedItem:
    """Represents a single RSS item.

    Only ``guid`` takes part in identity; everything else is payload that is
    copied into the output feed unchanged.

    Attributes:
        guid: Stable unique identifier (falls back to the link upstream)
        title: The item headline
        link: URL of the linked article page
        pub_date: Publication date as an RFC 2822 string, as found in the feed
        description: Item description (usually HTML)
        author: Optional author field
        categories: Category labels, in feed order
        comments: Optional comments URL
        content: Optional ``content:encoded`` body
        guid_is_permalink: Value of the guid ``isPermaLink`` attribute, if any
        extra: Any other child elements, as raw XML strings
    """
    guid: str
    title: str | None = None
    link: str | None = None
    pub_date: str | None = None
    description: str | None = None
    author: str | None = None
    categories: list[str] = field(default_factory=list)
    comments: str | None = None
    content: str | None = None
    guid_is_permalink: bool | None = None
    extra: list[str] = field(default_factory=list)

    @property
    def published(self) -> datetime | None:
        """Parsed ``pub_date``, or None when absent or unparseable."""
        if not self.pub_date:
            return None
        try:
            return parsedate_to_datetime(self.pub_date)
        except (TypeError, ValueError):
            return None


@dataclass
class Channel:
    """Represents an RSS channel.

    Attributes:
        title: Channel title
        link: Channel homepage URL
        description: Channel description
        pub_date: Channel publication date (RFC 2822 string)
        last_build_date: Last time the channel was regenerated (RFC 2822 string)
        items: Items in document order
        extra: Other channel-level elements, as raw XML strings
    """
    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str | None = None
    last_build_date: str | None = None
    items: list[FeedItem] = field(default_factory=list)
    extra: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Free:
    """Article readable by everyone right away."""


@dataclass(frozen=True)
class Paid:
    """Article behind the paywall until ``release_date`` (UTC)."""
    release_date: datetime


ArticleType = Union[Free, Paid]
