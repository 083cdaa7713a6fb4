"""
JSON persistence for the tracked item set.

The file holds a JSON array, one object per tracked item:

    {
      "guid": "...",
      "articleType": {"kind": "Paid", "releaseDate": "2024-03-03T00:00:00Z"},
      "publishedAt": "2024-03-03T06:00:00Z" | null,
      "trackedAt": "2024-02-22T06:00:00Z" | null,
      "item": {"guid": "...", "title": "...", ...}
    }
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any

from embargo_feed.core.tracked import TrackedItem
from embargo_feed.errors import StoreError
from embargo_feed.types import ArticleType, FeedItem, Free, Paid
from embargo_feed.utils import atomic_write_text


def read_tracked_items(path: str | Path) -> list[TrackedItem]:
    """Read the tracked set from disk.

    Raises:
        StoreError: If the file is missing, unreadable or malformed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise StoreError(str(path), f"cannot read tracked items: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise StoreError(str(path), f"invalid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise StoreError(str(path), "expected a JSON array of tracked items")
    try:
        return [tracked_item_from_dict(entry) for entry in data]
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise StoreError(str(path), f"invalid tracked item: {exc!r}") from exc


def write_tracked_items(path: str | Path, items: list[TrackedItem]) -> None:
    """Write the tracked set to disk atomically.

    Raises:
        StoreError: If the file cannot be written
    """
    payload = [tracked_item_to_dict(item) for item in items]
    try:
        atomic_write_text(path, json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
    except OSError as exc:
        raise StoreError(str(path), f"cannot write tracked items: {exc}") from exc


def tracked_item_to_dict(tracked: TrackedItem) -> dict[str, Any]:
    return {
        "guid": tracked.guid,
        "articleType": article_type_to_dict(tracked.article_type),
        "publishedAt": format_timestamp(tracked.published_at),
        "trackedAt": format_timestamp(tracked.tracked_at),
        "item": feed_item_to_dict(tracked.item),
    }


def tracked_item_from_dict(data: dict[str, Any]) -> TrackedItem:
    return TrackedItem(
        guid=data["guid"],
        article_type=article_type_from_dict(data["articleType"]),
        item=feed_item_from_dict(data["item"]),
        published_at=parse_timestamp(data.get("publishedAt")),
        tracked_at=parse_timestamp(data.get("trackedAt")),
    )


def article_type_to_dict(article_type: ArticleType) -> dict[str, Any]:
    if isinstance(article_type, Paid):
        return {"kind": "Paid", "releaseDate": format_timestamp(article_type.release_date)}
    return {"kind": "Free"}


def article_type_from_dict(data: dict[str, Any]) -> ArticleType:
    kind = data["kind"]
    if kind == "Free":
        return Free()
    if kind == "Paid":
        release_date = parse_timestamp(data["releaseDate"])
        if release_date is None:
            raise ValueError("Paid article without releaseDate")
        return Paid(release_date)
    raise ValueError(f"Unknown article kind: {kind!r}")


def feed_item_to_dict(item: FeedItem) -> dict[str, Any]:
    return {
        "guid": item.guid,
        "guidIsPermaLink": item.guid_is_permalink,
        "title": item.title,
        "link": item.link,
        "pubDate": item.pub_date,
        "description": item.description,
        "author": item.author,
        "categories": list(item.categories),
        "comments": item.comments,
        "content": item.content,
        "extra": list(item.extra),
    }


def feed_item_from_dict(data: dict[str, Any]) -> FeedItem:
    return FeedItem(
        guid=data["guid"],
        guid_is_permalink=data.get("guidIsPermaLink"),
        title=data.get("title"),
        link=data.get("link"),
        pub_date=data.get("pubDate"),
        description=data.get("description"),
        author=data.get("author"),
        categories=list(data.get("categories") or []),
        comments=data.get("comments"),
        content=data.get("content"),
        extra=list(data.get("extra") or []),
    )


def format_timestamp(value: datetime | None) -> str | None:
    """Format as ISO 8601 in UTC with a trailing Z."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse ISO 8601; naive values are taken to be UTC."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO 8601 timestamp, got {value!r}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
