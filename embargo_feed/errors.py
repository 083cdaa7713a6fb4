"""Exception hierarchy for the embargo feed republisher."""

from __future__ import annotations


class EmbargoFeedError(Exception):
    """Base class for all errors raised by this package."""


class FeedError(EmbargoFeedError):
    """The upstream feed could not be fetched or parsed."""


class StoreError(EmbargoFeedError):
    """A persisted artifact (output feed or tracked set) could not be read or written."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class ClassificationError(EmbargoFeedError):
    """A newly seen item could not be classified as free or paid."""

    def __init__(self, guid: str, message: str):
        super().__init__(f"{guid}: {message}")
        self.guid = guid


class ConfigError(EmbargoFeedError):
    """The configuration file could not be read or holds invalid values."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
