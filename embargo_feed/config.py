"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults, followed by environment overrides.
Configuration sections:
- FeedConfig: Upstream URL and persisted artifact paths
- FetchConfig: HTTP fetching settings
- RetentionConfig: When tracked items are forgotten
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any, Mapping

import yaml

from .errors import ConfigError


@dataclass
class FeedConfig:
    """Configuration for the feeds being read and written.

    Attributes:
        input_url: URL of the upstream RSS feed
        output_path: File the republished RSS feed is written to
        tracked_path: File the tracked item state (JSON array) is written to
    """

    input_url: str = "https://lwn.net/headlines/rss"
    output_path: str = "./data/feed.xml"
    tracked_path: str = "./data/tracked.json"


@dataclass
class FetchConfig:
    """Configuration for HTTP fetching.

    Attributes:
        timeout_seconds: HTTP request timeout
        retries: Number of retry attempts for failed requests
        concurrency: Maximum number of article pages fetched at once
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float = 20.0
    retries: int = 2
    concurrency: int = 4
    trust_env: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )


@dataclass
class RetentionConfig:
    """Configuration for forgetting tracked items.

    Attributes:
        published_days: Days a published item stays tracked and in the output feed
        unpublished_days: Days an item that never became publishable stays
            tracked, counted from first sighting; None keeps it forever
    """

    published_days: float = 7
    unpublished_days: float | None = None


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Path of the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "./data/run.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    feed: FeedConfig = field(default_factory=FeedConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "INPUT_FEED_URL": ("feed", "input_url"),
    "OUTPUT_FEED_PATH": ("feed", "output_path"),
    "TRACKED_ARTICLES_PATH": ("feed", "tracked_path"),
    "LOG_LEVEL": ("logging", "level"),
}


def load_config(path: str | None, environ: Mapping[str, str] | None = None) -> AppConfig:
    """Load configuration from a YAML file with defaults and env overrides.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML or holds
            a section that is not a mapping of known keys
    """
    cfg = AppConfig()
    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except OSError as exc:
            raise ConfigError(path, f"cannot read config: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(path, f"invalid YAML: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(path, "expected a mapping of config sections")
        try:
            cfg = _merge_config(cfg, raw)
        except TypeError as exc:
            raise ConfigError(path, f"invalid config: {exc}") from exc

    return apply_env_overrides(cfg, os.environ if environ is None else environ)


def apply_env_overrides(cfg: AppConfig, environ: Mapping[str, str]) -> AppConfig:
    """Override config values from environment variables that are set and non-empty."""
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            setattr(getattr(cfg, section), key, value)
    return cfg


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update({k: v for k, v in value.items() if k in data[key]})
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        feed=FeedConfig(**data["feed"]),
        fetch=FetchConfig(**data["fetch"]),
        retention=RetentionConfig(**data["retention"]),
        logging=LoggingConfig(**data["logging"]),
    )
