"""End-to-end tests for a republishing run against mocked HTTP."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from embargo_feed import runner
from embargo_feed.config import AppConfig
from embargo_feed.errors import ClassificationError, FeedError, StoreError
from embargo_feed.feed.rss import read_channel, write_channel
from embargo_feed.store import read_tracked_items, write_tracked_items
from embargo_feed.types import Channel


FEED_URL = "https://lwn.net/headlines/rss"
FREE_URL = "https://lwn.net/Articles/1001/"
PAID_URL = "https://lwn.net/Articles/1002/"

FREE_ITEM = f"""
<item>
  <title>Security updates for Sunday</title>
  <link>{FREE_URL}</link>
  <guid>lwn-1001</guid>
  <description>Security updates</description>
</item>"""

PAID_ITEM = f"""
<item>
  <title>[$] The kernel's new scheduler</title>
  <link>{PAID_URL}</link>
  <guid>lwn-1002</guid>
  <description>A look at EEVDF</description>
</item>"""

DAY_ONE = datetime(2024, 3, 10, 6, 0, tzinfo=timezone.utc)
RELEASE = datetime(2024, 3, 14, tzinfo=timezone.utc)


def _feed(*items: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<rss version="2.0"><channel><title>LWN.net</title><link>https://lwn.net</link>'
        "<description>LWN</description><pubDate>Sun, 03 Mar 2024 05:00:00 +0000</pubDate>"
        + "".join(items)
        + "</channel></rss>"
    )


class _Upstream:
    """Mock transport handler for the feed and article pages."""

    def __init__(self):
        self.feed = _feed(FREE_ITEM, PAID_ITEM)
        self.paid_page = (200, "<p>This article will be freely available on March 14, 2024.</p>")
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url == FEED_URL:
            return httpx.Response(200, text=self.feed)
        if url == PAID_URL:
            status, body = self.paid_page
            return httpx.Response(status, text=body)
        return httpx.Response(404, text="not found")


@pytest.fixture
def cfg(tmp_path) -> AppConfig:
    cfg = AppConfig()
    cfg.feed.input_url = FEED_URL
    cfg.feed.output_path = str(tmp_path / "feed.xml")
    cfg.feed.tracked_path = str(tmp_path / "tracked.json")
    cfg.fetch.retries = 0
    write_channel(cfg.feed.output_path, Channel(title="LWN (free)", link="https://lwn.net", description="Free"))
    write_tracked_items(cfg.feed.tracked_path, [])
    return cfg


def _run(cfg: AppConfig, upstream: _Upstream, now: datetime) -> runner.RunSummary:
    logger = logging.getLogger("test_runner")
    logger.setLevel(logging.DEBUG)
    return runner.run(
        cfg,
        now=now,
        logger=logger,
        transport=httpx.MockTransport(upstream),
    )


def _output_guids(cfg: AppConfig) -> list[str]:
    return [item.guid for item in read_channel(cfg.feed.output_path).items]


def test_first_run_publishes_free_and_tracks_paid(cfg):
    upstream = _Upstream()

    summary = _run(cfg, upstream, DAY_ONE)

    assert summary.ok
    assert (summary.upstream, summary.created, summary.published) == (2, 2, 1)
    assert _output_guids(cfg) == ["lwn-1001"]

    tracked = {t.guid: t for t in read_tracked_items(cfg.feed.tracked_path)}
    assert tracked["lwn-1001"].published_at == DAY_ONE
    assert tracked["lwn-1002"].published_at is None
    assert tracked["lwn-1002"].article_type.release_date == RELEASE

    channel = read_channel(cfg.feed.output_path)
    assert channel.title == "LWN (free)"
    assert channel.pub_date == "Sun, 03 Mar 2024 05:00:00 +0000"
    assert channel.last_build_date is not None


def test_lifecycle_over_several_runs(cfg):
    upstream = _Upstream()
    _run(cfg, upstream, DAY_ONE)

    # Same upstream, same time: nothing changes and nothing is re-classified
    tracked_before = read_tracked_items(cfg.feed.tracked_path)
    again = _run(cfg, upstream, DAY_ONE)
    assert (again.created, again.published, again.dropped) == (0, 0, 0)
    assert read_tracked_items(cfg.feed.tracked_path) == tracked_before
    assert upstream.requests.count(PAID_URL) == 1

    # Still embargoed the day before release
    _run(cfg, upstream, RELEASE - timedelta(days=1))
    assert _output_guids(cfg) == ["lwn-1001"]

    # Released: the paid item goes to the front even though upstream dropped it
    upstream.feed = _feed(PAID_ITEM)
    released = _run(cfg, upstream, RELEASE)
    assert (released.published, released.dropped) == (1, 0)
    assert _output_guids(cfg) == ["lwn-1002", "lwn-1001"]

    # The free item is forgotten just over a week after its publication
    upstream.feed = _feed()
    aged = _run(cfg, upstream, DAY_ONE + timedelta(days=7, seconds=1))
    assert aged.dropped == 1
    assert _output_guids(cfg) == ["lwn-1002"]

    # The paid item is kept for exactly one week after release, then forgotten
    kept = _run(cfg, upstream, RELEASE + timedelta(days=7))
    assert kept.dropped == 0
    assert _output_guids(cfg) == ["lwn-1002"]

    gone = _run(cfg, upstream, RELEASE + timedelta(days=7, seconds=1))
    assert gone.dropped == 1
    assert _output_guids(cfg) == []
    assert read_tracked_items(cfg.feed.tracked_path) == []


def test_classification_failure_aborts_without_writing(cfg):
    upstream = _Upstream()
    upstream.paid_page = (503, "unavailable")
    feed_before = open(cfg.feed.output_path, "rb").read()
    tracked_before = open(cfg.feed.tracked_path, "rb").read()

    with pytest.raises(ClassificationError):
        _run(cfg, upstream, DAY_ONE)

    assert open(cfg.feed.output_path, "rb").read() == feed_before
    assert open(cfg.feed.tracked_path, "rb").read() == tracked_before


def test_upstream_failure_is_fatal(cfg):
    upstream = _Upstream()
    upstream.feed = "<html>maintenance</html>"

    with pytest.raises(FeedError):
        _run(cfg, upstream, DAY_ONE)
    assert read_tracked_items(cfg.feed.tracked_path) == []


def test_missing_tracked_file_is_fatal(cfg, tmp_path):
    cfg.feed.tracked_path = str(tmp_path / "nope.json")

    with pytest.raises(StoreError):
        _run(cfg, _Upstream(), DAY_ONE)


def test_failed_feed_write_does_not_block_tracked_write(cfg, monkeypatch):
    def broken_write(path, channel):
        raise StoreError(str(path), "disk full")

    monkeypatch.setattr(runner, "write_channel", broken_write)

    summary = _run(cfg, _Upstream(), DAY_ONE)

    assert not summary.ok
    assert "disk full" in summary.write_errors[0]
    assert len(read_tracked_items(cfg.feed.tracked_path)) == 2
    assert _output_guids(cfg) == []


def test_run_events_are_logged(cfg, caplog):
    """Every event of a run reaches an INFO-enabled logger with its fields."""
    with caplog.at_level(logging.DEBUG, logger="test_runner"):
        _run(cfg, _Upstream(), DAY_ONE)

    events = {getattr(r, "event", None): r for r in caplog.records}
    assert {"run_start", "upstream_fetched", "classified", "published", "run_complete"} <= set(events)

    complete = events["run_complete"]
    assert (complete.new_items, complete.published, complete.write_errors) == (2, 1, 0)
    assert events["published"].guid == "lwn-1001"
