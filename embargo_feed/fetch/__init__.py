"""
Network access and classification.

This package handles HTTP fetching of the upstream feed and article pages,
and classification of newly seen items as free or paid.
"""

from .classifier import ItemClassifier, is_paid, track_new_items
from .fetcher import FetchResult, build_client, fetch_channel, fetch_text, fetch_url

__all__ = [
    "FetchResult",
    "ItemClassifier",
    "build_client",
    "fetch_channel",
    "fetch_text",
    "fetch_url",
    "is_paid",
    "track_new_items",
]
