"""
Reconciliation of the upstream feed, tracked set and output feed.

``reconcile`` is a pure function of the old tracked set, the old output
channel, the freshly fetched upstream channel, the newly classified items
and ``now``. It returns new collections and never mutates its inputs, so a
failed run leaves nothing half-updated.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from email.utils import format_datetime
from typing import Iterable

from embargo_feed.config import RetentionConfig
from embargo_feed.core.tracked import TrackedItem
from embargo_feed.types import Channel, FeedItem


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation.

    Attributes:
        tracked: The new tracked set, in tracking order
        channel: The new output channel
        created: Guids that started being tracked this run
        published: Guids published this run, in publication order
        dropped: Guids forgotten this run
    """
    tracked: list[TrackedItem]
    channel: Channel
    created: list[str] = field(default_factory=list)
    published: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)


def untracked_items(upstream_items: Iterable[FeedItem], tracked: Iterable[TrackedItem]) -> list[FeedItem]:
    """Return upstream items not yet tracked, in upstream order.

    Repeated guids within the upstream list collapse to their first occurrence.
    """
    seen = {t.guid for t in tracked}
    fresh: list[FeedItem] = []
    for item in upstream_items:
        if item.guid in seen:
            continue
        seen.add(item.guid)
        fresh.append(item)
    return fresh


def reconcile(
    upstream: Channel,
    tracked: list[TrackedItem],
    output: Channel,
    created: list[TrackedItem],
    now: datetime,
    retention: RetentionConfig,
) -> ReconcileResult:
    """Compute the next tracked set and output channel.

    Steps:
    1. Publish already tracked items that became available
    2. Forget items past the retention cutoff
    3. Add newly created items, publishing those available right away
    4. Refresh the output channel metadata
    5. Rebuild the output items from the published tracked items

    Args:
        upstream: Freshly fetched upstream channel
        tracked: Tracked set as read from disk
        output: Output channel as read from disk
        created: Newly classified items, in upstream order
        now: Current time of this run (timezone-aware)
        retention: Retention cutoffs

    Returns:
        ReconcileResult with the new state and what changed
    """
    result_tracked: list[TrackedItem] = []
    published: list[str] = []
    dropped: list[str] = []
    known: set[str] = set()

    for original in tracked:
        if original.guid in known:
            continue
        known.add(original.guid)
        current = original.copy()
        if current.should_publish(now):
            current.publish(now)
            published.append(current.guid)
        if not current.should_still_track(now, retention):
            dropped.append(current.guid)
            continue
        result_tracked.append(current)

    created_guids: list[str] = []
    for original in created:
        if original.guid in known:
            continue
        known.add(original.guid)
        current = original.copy()
        if current.should_publish(now):
            current.publish(now)
            published.append(current.guid)
        result_tracked.append(current)
        created_guids.append(current.guid)

    # An item published and dropped in the same run never reaches the output
    dropped_set = set(dropped)
    published = [guid for guid in published if guid not in dropped_set]

    channel = replace(
        output,
        pub_date=upstream.pub_date,
        last_build_date=format_datetime(now),
        items=_output_items(output.items, result_tracked, published),
        extra=list(output.extra),
    )

    return ReconcileResult(
        tracked=result_tracked,
        channel=channel,
        created=created_guids,
        published=published,
        dropped=dropped,
    )


def _output_items(
    previous: list[FeedItem],
    tracked: list[TrackedItem],
    newly_published: list[str],
) -> list[FeedItem]:
    """Rebuild output items so they match the published tracked items exactly.

    Newly published items go to the front, the last one published first.
    Previously output items keep their relative order. Published items that
    are missing from the previous output (e.g. after a failed write) go last.
    """
    by_guid = {t.guid: t for t in tracked if t.is_published}

    order: list[str] = list(reversed(newly_published))
    placed = set(order)
    for item in previous:
        if item.guid in by_guid and item.guid not in placed:
            order.append(item.guid)
            placed.add(item.guid)
    for t in tracked:
        if t.guid in by_guid and t.guid not in placed:
            order.append(t.guid)
            placed.add(t.guid)

    return [by_guid[guid].item for guid in order]
