"""
HTTP fetching for the upstream feed and article pages.

All requests go through a shared ``httpx.AsyncClient`` with retry and
linear backoff. ``fetch_url`` never raises; it reports failures through
``FetchResult.error`` so callers decide which error type to raise.
"""

from __future__ import annotations

from dataclasses import dataclass
import asyncio

import httpx

from embargo_feed.config import FetchConfig
from embargo_feed.errors import FeedError
from embargo_feed.feed.rss import RssParseError, parse_channel
from embargo_feed.types import Channel


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either text will be populated (success) or error will be populated (failure),
    but never both. status_code may be None for network-level failures.

    Attributes:
        url: The URL that was fetched
        status_code: HTTP status code, or None if request failed before getting response
        text: The response body text, or None on error
        error: Error message if fetch failed, None on success
    """
    url: str
    status_code: int | None
    text: str | None
    error: str | None


def build_client(cfg: FetchConfig, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create the HTTP client shared by every request of a run."""
    return httpx.AsyncClient(
        timeout=cfg.timeout_seconds,
        headers={"User-Agent": cfg.user_agent},
        follow_redirects=True,
        trust_env=cfg.trust_env,
        transport=transport,
    )


async def fetch_url(client: httpx.AsyncClient, url: str, retries: int) -> FetchResult:
    """Fetch a URL with retry logic.

    Non-2xx responses count as failures and are retried like network errors.

    Args:
        client: Shared async HTTP client
        url: The URL to fetch
        retries: Number of retry attempts after initial failure

    Returns:
        FetchResult with text on success or error message on failure
    """
    last_error: str | None = None
    status_code: int | None = None

    for attempt in range(retries + 1):
        try:
            resp = await client.get(url)
            status_code = resp.status_code
            resp.raise_for_status()
            return FetchResult(url=url, status_code=status_code, text=resp.text, error=None)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            last_error = f"{type(exc).__name__}: {exc}"
            if attempt < retries:
                # Linear backoff: 0.5s, 1.0s, 1.5s...
                await asyncio.sleep(0.5 * (attempt + 1))

    return FetchResult(url=url, status_code=status_code, text=None, error=last_error)


async def fetch_text(client: httpx.AsyncClient, url: str, cfg: FetchConfig) -> FetchResult:
    """Fetch the body of an article page."""
    return await fetch_url(client, url, cfg.retries)


async def fetch_channel(client: httpx.AsyncClient, url: str, cfg: FetchConfig) -> Channel:
    """Fetch and parse the upstream RSS feed.

    Raises:
        FeedError: If the feed cannot be downloaded or is not valid RSS
    """
    result = await fetch_url(client, url, cfg.retries)
    if result.error or result.text is None:
        raise FeedError(f"Failed to fetch {url}: {result.error}")

    try:
        return parse_channel(result.text)
    except RssParseError as exc:
        raise FeedError(f"Failed to parse {url}: {exc}") from exc
