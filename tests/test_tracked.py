"""Tests for the TrackedItem lifecycle."""

from datetime import datetime, timedelta, timezone

import pytest

from embargo_feed.config import RetentionConfig
from embargo_feed.core.tracked import TrackedItem
from embargo_feed.types import FeedItem, Free, Paid


NOW = datetime(2024, 3, 3, 12, 0, tzinfo=timezone.utc)


def _tracked(article_type, **kwargs) -> TrackedItem:
    item = FeedItem(guid="g1", title="Title", link="https://example.com/g1")
    return TrackedItem(guid=item.guid, article_type=article_type, item=item, **kwargs)


def test_create_records_first_sighting():
    item = FeedItem(guid="g1", title="Title", link="https://example.com/g1")
    tracked = TrackedItem.create(item, Free(), NOW)

    assert tracked.guid == "g1"
    assert tracked.tracked_at == NOW
    assert tracked.published_at is None


def test_free_item_publishes_immediately():
    tracked = _tracked(Free())
    assert tracked.should_publish(NOW)

    tracked.publish(NOW)

    assert tracked.published_at == NOW
    assert not tracked.should_publish(NOW)


def test_publish_is_one_way():
    tracked = _tracked(Free())
    tracked.publish(NOW)

    with pytest.raises(ValueError):
        tracked.publish(NOW + timedelta(days=1))
    assert tracked.published_at == NOW


def test_paid_item_waits_for_release_date():
    release = datetime(2024, 3, 10, tzinfo=timezone.utc)
    tracked = _tracked(Paid(release))

    assert not tracked.should_publish(release - timedelta(seconds=1))
    assert tracked.should_publish(release)
    assert tracked.should_publish(release + timedelta(days=3))


def test_published_item_retained_for_one_week():
    retention = RetentionConfig()
    tracked = _tracked(Free(), published_at=NOW)

    assert tracked.should_still_track(NOW + timedelta(days=7), retention)
    assert not tracked.should_still_track(NOW + timedelta(days=7, seconds=1), retention)


def test_unpublished_item_kept_forever_by_default():
    tracked = _tracked(Paid(NOW + timedelta(days=3650)), tracked_at=NOW)

    assert tracked.should_still_track(NOW + timedelta(days=1000), RetentionConfig())


def test_unpublished_cutoff_when_configured():
    retention = RetentionConfig(unpublished_days=30)
    tracked = _tracked(Paid(NOW + timedelta(days=3650)), tracked_at=NOW)

    assert tracked.should_still_track(NOW + timedelta(days=30), retention)
    assert not tracked.should_still_track(NOW + timedelta(days=31), retention)


def test_unpublished_cutoff_ignores_records_without_first_sighting():
    retention = RetentionConfig(unpublished_days=30)
    tracked = _tracked(Paid(NOW + timedelta(days=3650)))

    assert tracked.should_still_track(NOW + timedelta(days=365), retention)


def test_copy_is_independent():
    tracked = _tracked(Free())
    clone = tracked.copy()
    clone.publish(NOW)

    assert tracked.published_at is None
    assert clone.published_at == NOW
