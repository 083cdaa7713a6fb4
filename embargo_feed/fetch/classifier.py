"""
Classification of newly seen feed items.

An item is paid when its title starts with the ``[$]`` marker. Paid items
need their article page fetched to learn when the embargo ends; free items
are classified without any network access.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from bs4 import BeautifulSoup
import httpx

from embargo_feed.config import FetchConfig
from embargo_feed.core.release_date import extract_release_date
from embargo_feed.core.tracked import TrackedItem
from embargo_feed.errors import ClassificationError
from embargo_feed.logging_utils import log_event
from embargo_feed.types import ArticleType, FeedItem, Free, Paid

from .fetcher import fetch_text


PAID_MARKER = "[$]"


def is_paid(item: FeedItem) -> bool:
    return (item.title or "").lstrip().startswith(PAID_MARKER)


def page_text(html: str) -> str:
    """Reduce an HTML page to whitespace-separated text."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return soup.get_text(separator=" ")


class ItemClassifier:
    """Decides whether feed items are free or paid.

    Args:
        client: Shared async HTTP client used for article pages
        cfg: Fetch settings (retries)
        logger: Optional logger for classification events
    """

    def __init__(self, client: httpx.AsyncClient, cfg: FetchConfig, logger: logging.Logger | None = None):
        self._client = client
        self._cfg = cfg
        self._logger = logger

    async def classify(self, item: FeedItem) -> ArticleType:
        """Classify one item.

        Raises:
            ClassificationError: If title or link is missing, or a paid
                item's page cannot be fetched or names no release date
        """
        if not item.title:
            raise ClassificationError(item.guid, "item has no title")
        if not item.link:
            raise ClassificationError(item.guid, "item has no link")

        if not is_paid(item):
            return Free()

        result = await fetch_text(self._client, item.link, self._cfg)
        if result.error or result.text is None:
            raise ClassificationError(item.guid, f"cannot fetch {item.link}: {result.error}")

        # The phrase may be split by markup; fall back to the raw body
        release_date = extract_release_date(page_text(result.text)) or extract_release_date(result.text)
        if release_date is None:
            raise ClassificationError(item.guid, f"no release date found at {item.link}")
        return Paid(release_date)


async def track_new_items(
    items: list[FeedItem],
    classifier: ItemClassifier,
    now: datetime,
    concurrency: int = 4,
    logger: logging.Logger | None = None,
) -> list[TrackedItem]:
    """Classify newly seen items concurrently and wrap them as TrackedItems.

    Returns items in input order. The first failure cancels every pending
    classification and is re-raised, so no partial result escapes.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _track_single(item: FeedItem) -> TrackedItem:
        async with semaphore:
            try:
                article_type = await classifier.classify(item)
            except ClassificationError as exc:
                log_event(
                    logger,
                    "Classification failed",
                    level=logging.ERROR,
                    event="classification_failed",
                    guid=item.guid,
                    link=item.link,
                    error=str(exc),
                )
                raise
        log_event(
            logger,
            f"Classified {item.title!r}",
            event="classified",
            guid=item.guid,
            kind=type(article_type).__name__,
            release_date=getattr(article_type, "release_date", None),
        )
        return TrackedItem.create(item, article_type, now)

    tasks = [asyncio.create_task(_track_single(item)) for item in items]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
