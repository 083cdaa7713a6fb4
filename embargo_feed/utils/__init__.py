"""
Shared utility functions.

This package contains utility code used by both persisted stores.
"""

from .files import atomic_write_text

__all__ = ["atomic_write_text"]
