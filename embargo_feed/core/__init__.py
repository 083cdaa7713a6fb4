"""
Core domain logic.

This package contains the release date extraction, the tracked item
lifecycle and the reconciliation engine. Nothing here performs I/O.
"""

from .reconcile import ReconcileResult, reconcile, untracked_items
from .release_date import extract_release_date
from .tracked import TrackedItem

__all__ = [
    "ReconcileResult",
    "TrackedItem",
    "extract_release_date",
    "reconcile",
    "untracked_items",
]
