"""
Embargo Feed - republishes paywalled RSS items once they become free.

This package polls an upstream RSS feed (LWN.net by default), tracks which
items are still behind the subscriber paywall, and maintains an output feed
that only contains items that are freely readable.

Main entry point is the CLI via `embargo-feed run` command.

Example:
    $ embargo-feed init
    $ embargo-feed run
"""

__all__ = ["__version__", "AppConfig", "load_config", "reconcile", "run", "TrackedItem"]
__version__ = "0.1.0"

from .config import AppConfig, load_config
from .core.reconcile import reconcile
from .core.tracked import TrackedItem
from .runner import run
