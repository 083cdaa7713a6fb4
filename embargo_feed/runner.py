"""
Orchestration of a single republishing run.

This module coordinates one invocation:
1. Fetch the upstream feed
2. Read the output feed and the tracked set
3. Classify upstream items that are not tracked yet
4. Reconcile the three into a new tracked set and output feed
5. Write both back to disk

Any failure in steps 1-3 aborts the run before anything is written. The two
writes in step 5 are independent: a failure in one is reported and does not
prevent or undo the other.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from .config import AppConfig
from .core.reconcile import ReconcileResult, reconcile, untracked_items
from .errors import StoreError
from .feed.rss import read_channel, write_channel
from .fetch.classifier import ItemClassifier, track_new_items
from .fetch.fetcher import build_client, fetch_channel
from .logging_utils import get_logger, log_event
from .store import read_tracked_items, write_tracked_items


@dataclass
class RunSummary:
    """Counters describing what a run did.

    Attributes:
        upstream: Number of items in the upstream feed
        created: Number of items tracked for the first time
        published: Number of items added to the output feed
        dropped: Number of items forgotten
        tracked: Size of the tracked set after the run
        output_items: Number of items in the output feed after the run
        write_errors: Messages of failed final writes
    """
    upstream: int = 0
    created: int = 0
    published: int = 0
    dropped: int = 0
    tracked: int = 0
    output_items: int = 0
    write_errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.write_errors


def run(
    cfg: AppConfig,
    now: datetime | None = None,
    logger: logging.Logger | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunSummary:
    """Run once synchronously. See ``run_once``."""
    return asyncio.run(run_once(cfg, now=now, logger=logger, transport=transport))


async def run_once(
    cfg: AppConfig,
    now: datetime | None = None,
    logger: logging.Logger | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunSummary:
    """Perform one complete republishing run.

    Args:
        cfg: Application configuration
        now: Time of the run, defaults to the current UTC time
        logger: Logger for events, defaults to the package logger
        transport: Optional httpx transport, used by tests

    Returns:
        RunSummary of the run

    Raises:
        FeedError: If the upstream feed cannot be fetched or parsed
        StoreError: If the output feed or tracked set cannot be read
        ClassificationError: If a new item cannot be classified
    """
    now = now or datetime.now(timezone.utc)
    logger = logger or get_logger()

    log_event(
        logger,
        "Run start",
        event="run_start",
        input_url=cfg.feed.input_url,
        output_path=cfg.feed.output_path,
        tracked_path=cfg.feed.tracked_path,
        now=now.isoformat(),
    )

    async with build_client(cfg.fetch, transport) as client:
        upstream = await fetch_channel(client, cfg.feed.input_url, cfg.fetch)
        log_event(logger, "Upstream fetched", event="upstream_fetched", items=len(upstream.items))

        output = read_channel(cfg.feed.output_path)
        tracked = read_tracked_items(cfg.feed.tracked_path)

        fresh = untracked_items(upstream.items, tracked)
        classifier = ItemClassifier(client, cfg.fetch, logger)
        created = await track_new_items(fresh, classifier, now, cfg.fetch.concurrency, logger)

    result = reconcile(upstream, tracked, output, created, now, cfg.retention)
    _log_changes(logger, result)

    summary = RunSummary(
        upstream=len(upstream.items),
        created=len(result.created),
        published=len(result.published),
        dropped=len(result.dropped),
        tracked=len(result.tracked),
        output_items=len(result.channel.items),
    )
    summary.write_errors = _persist(cfg, result, logger)

    log_event(
        logger,
        "Run complete",
        event="run_complete",
        new_items=summary.created,
        published=summary.published,
        dropped=summary.dropped,
        tracked=summary.tracked,
        output_items=summary.output_items,
        write_errors=len(summary.write_errors),
    )
    return summary


def _log_changes(logger: logging.Logger, result: ReconcileResult) -> None:
    titles = {t.guid: t.item.title for t in result.tracked}
    for guid in result.published:
        log_event(logger, f"Published {titles.get(guid)!r}", event="published", guid=guid)
    for guid in result.dropped:
        log_event(logger, f"Dropped {guid}", event="dropped", guid=guid)


def _persist(cfg: AppConfig, result: ReconcileResult, logger: logging.Logger) -> list[str]:
    """Write the tracked set and the output feed, each independently.

    Returns:
        Error messages of the writes that failed
    """
    errors: list[str] = []

    try:
        write_tracked_items(cfg.feed.tracked_path, result.tracked)
    except StoreError as exc:
        errors.append(str(exc))
        log_event(logger, "Failed to save tracked items", level=logging.ERROR, event="write_failed", path=exc.path, error=str(exc))

    try:
        write_channel(cfg.feed.output_path, result.channel)
    except StoreError as exc:
        errors.append(str(exc))
        log_event(logger, "Failed to save output feed", level=logging.ERROR, event="write_failed", path=exc.path, error=str(exc))

    return errors
