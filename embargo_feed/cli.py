"""
Command-line interface for the embargo feed republisher.

Uses Typer to provide a CLI with options for the main configuration
settings. Supports loading .env files for the environment overrides.
"""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
import typer
from rich.console import Console

from .config import AppConfig, load_config
from .errors import ConfigError, EmbargoFeedError
from .feed.rss import write_channel
from .logging_utils import log_event, setup_logging
from .runner import RunSummary, run as run_republisher
from .store import write_tracked_items
from .types import Channel

app = typer.Typer(add_completion=False)
console = Console()


def _load(
    config: Path | None,
    output: Path | None,
    tracked: Path | None,
) -> AppConfig:
    load_dotenv()
    try:
        cfg = load_config(str(config) if config else None)
    except ConfigError as exc:
        console.print(f"[bold red]Invalid configuration[/bold red]: {exc}")
        raise typer.Exit(code=1)
    if output is not None:
        cfg.feed.output_path = str(output)
    if tracked is not None:
        cfg.feed.tracked_path = str(tracked)
    return cfg


@app.command()
def run(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, help="YAML config file."),
    input_url: str | None = typer.Option(None, "--input-url", "-i", help="Upstream RSS feed URL."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output feed file."),
    tracked: Path | None = typer.Option(None, "--tracked", "-t", help="Tracked items file."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
):
    """Fetch the upstream feed once and update the output feed.

    Exits with status 1 when the run aborts before writing anything, and
    with status 2 when the run completed but a final write failed.
    """
    cfg = _load(config, output, tracked)

    # Override with CLI options
    if input_url:
        cfg.feed.input_url = input_url
    if log_level:
        cfg.logging.level = log_level
    if log_file is not None:
        cfg.logging.file = log_file

    logger = setup_logging(cfg.logging)

    try:
        summary = run_republisher(cfg, logger=logger)
    except EmbargoFeedError as exc:
        log_event(logger, f"Run aborted: {exc}", level=logging.ERROR, event="run_aborted", error_type=type(exc).__name__)
        console.print(f"[bold red]Run aborted[/bold red]: {exc}")
        raise typer.Exit(code=1)

    _render_summary(summary, console)
    if not summary.ok:
        raise typer.Exit(code=2)


@app.command()
def init(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, help="YAML config file."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output feed file."),
    tracked: Path | None = typer.Option(None, "--tracked", "-t", help="Tracked items file."),
    title: str = typer.Option("LWN.net (free articles)", "--title", help="Output feed title."),
    link: str = typer.Option("https://lwn.net", "--link", help="Output feed link."),
    description: str = typer.Option(
        "LWN.net articles once they are freely available", "--description", help="Output feed description."
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite existing files."),
):
    """Create an empty output feed and an empty tracked set."""
    cfg = _load(config, output, tracked)
    output_path = Path(cfg.feed.output_path)
    tracked_path = Path(cfg.feed.tracked_path)

    existing = [str(p) for p in (output_path, tracked_path) if p.exists()]
    if existing and not force:
        console.print(f"[bold red]Refusing to overwrite[/bold red]: {', '.join(existing)} (use --force)")
        raise typer.Exit(code=1)

    try:
        write_channel(output_path, Channel(title=title, link=link, description=description))
        write_tracked_items(tracked_path, [])
    except EmbargoFeedError as exc:
        console.print(f"[bold red]Init failed[/bold red]: {exc}")
        raise typer.Exit(code=1)

    console.print(f"Initialized {output_path} and {tracked_path}")


def _render_summary(summary: RunSummary, console: Console) -> None:
    console.print(
        "[bold]Run summary[/bold]: "
        f"upstream={summary.upstream}, new={summary.created}, published={summary.published}, "
        f"dropped={summary.dropped}, tracked={summary.tracked}, feed_items={summary.output_items}"
    )
    for error in summary.write_errors:
        console.print(f"[bold red]Write failed[/bold red]: {error}")


if __name__ == "__main__":
    app()
