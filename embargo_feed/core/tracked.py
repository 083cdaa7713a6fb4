"""Tracked item entity and its publication lifecycle.

A tracked item moves through three persisted states:

    TrackedUnpublished -> TrackedPublished -> (forgotten)

Classification happens once, before the item is created, and its
``article_type`` never changes afterwards. ``published_at`` is set once by
``publish`` and never cleared.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from embargo_feed.config import RetentionConfig
from embargo_feed.types import ArticleType, FeedItem, Free, Paid


@dataclass
class TrackedItem:
    """Persisted state for one upstream item.

    Attributes:
        guid: Identifier of the upstream item, unique within the tracked set
        article_type: Free or Paid(release_date), fixed at creation
        item: Payload captured at first sighting, rendered into the output feed
        published_at: When the item entered the output feed, None until then
        tracked_at: When the item was first seen, None for legacy records
    """
    guid: str
    article_type: ArticleType
    item: FeedItem
    published_at: datetime | None = None
    tracked_at: datetime | None = None

    @classmethod
    def create(cls, item: FeedItem, article_type: ArticleType, now: datetime) -> "TrackedItem":
        return cls(guid=item.guid, article_type=article_type, item=item, tracked_at=now)

    @property
    def is_published(self) -> bool:
        return self.published_at is not None

    def is_available(self, now: datetime) -> bool:
        """True once the article can be read without a subscription."""
        if isinstance(self.article_type, Free):
            return True
        if isinstance(self.article_type, Paid):
            return now >= self.article_type.release_date
        raise TypeError(f"Unknown article type: {self.article_type!r}")

    def should_publish(self, now: datetime) -> bool:
        return not self.is_published and self.is_available(now)

    def publish(self, now: datetime) -> None:
        if self.is_published:
            raise ValueError(f"Item {self.guid} was already published at {self.published_at}")
        self.published_at = now

    def should_still_track(self, now: datetime, retention: RetentionConfig) -> bool:
        """Decide whether the item survives the retention cutoff at ``now``.

        Published items are kept for ``retention.published_days`` after
        publication (inclusive). Unpublished items are kept forever unless
        ``retention.unpublished_days`` is set.
        """
        if self.published_at is not None:
            return now - self.published_at <= timedelta(days=retention.published_days)

        if retention.unpublished_days is None or self.tracked_at is None:
            return True
        return now - self.tracked_at <= timedelta(days=retention.unpublished_days)

    def copy(self) -> "TrackedItem":
        return replace(self)
