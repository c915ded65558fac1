"""Command-line interface for the timesheet synchronizer."""

import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from timesheet_sync import __version__
from timesheet_sync.client.progress import new_progress
from timesheet_sync.client.registry import SOURCES, TARGETS, get_fetcher, get_uploader, validate_route
from timesheet_sync.config import Config
from timesheet_sync.errors import ConfigurationError, FetchError
from timesheet_sync.printer import (
    COLUMNS,
    DEFAULT_SORT_BY,
    HIDEABLE_COLUMNS,
    parse_sort_by,
    print_entries,
    validate_hidden_columns,
)
from timesheet_sync.sync import SyncEngine
from timesheet_sync.utils import StorageManager, get_logger, setup_logging

app = typer.Typer(help="Reconcile worklogs from a time tracker and upload them to an invoicing target")
console = Console()
logger = get_logger(__name__)

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_window(
    start: str | None,
    end: str | None,
    date_format: str,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Parse the sync window.

    A missing start means today at midnight; a missing end means one day
    after the start.

    Raises:
        ConfigurationError: If a date does not match ``date_format``.
    """
    now = now or datetime.now()
    try:
        start_dt = datetime.strptime(start, date_format) if start else now.replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        end_dt = datetime.strptime(end, date_format) if end else start_dt + timedelta(days=1)
    except ValueError as e:
        raise ConfigurationError(f"invalid date, expected format {date_format!r}: {e}") from e

    if end_dt <= start_dt:
        raise ConfigurationError("end date must be after the start date")
    return start_dt, end_dt


def split_columns(values: str | List[str] | None) -> list[str] | None:
    """Flatten repeated and comma separated column options; None when none given."""
    if isinstance(values, str):
        values = [values]
    columns = [part.strip() for value in values or [] for part in value.split(",") if part.strip()]
    return columns or None


@app.command()
def sync(
    source: Optional[str] = typer.Option(None, "--source", "-s", help=f"Source of the sync {sorted(SOURCES)}."),
    target: Optional[str] = typer.Option(None, "--target", "-t", help=f"Target of the sync {sorted(TARGETS)}."),
    start: Optional[str] = typer.Option(None, "--start", help="Start of the window. Defaults to today 00:00:00."),
    end: Optional[str] = typer.Option(None, "--end", help="End of the window. Defaults to one day after the start."),
    date_format: str = typer.Option(DEFAULT_DATE_FORMAT, "--date-format", help="strptime format of --start and --end."),
    source_user: Optional[str] = typer.Option(None, "--source-user", help="User ID at the source."),
    target_user: Optional[str] = typer.Option(None, "--target-user", help="User ID at the target."),
    tags_as_tasks_regex: Optional[str] = typer.Option(
        None, "--tags-as-tasks-regex", help="Treat tags matching this pattern as tasks."
    ),
    filter_client: Optional[str] = typer.Option(None, "--filter-client", help="Keep clients matching this pattern."),
    filter_project: Optional[str] = typer.Option(None, "--filter-project", help="Keep projects matching this pattern."),
    round_to_closest_minute: bool = typer.Option(
        False, "--round-to-closest-minute", help="Round durations to the closest minute."
    ),
    force_billed_duration: bool = typer.Option(
        False, "--force-billed-duration", help="Treat every second spent as billable."
    ),
    table_sort_by: Optional[List[str]] = typer.Option(
        None,
        "--table-sort-by",
        help=f"Sort the table by these columns {COLUMNS}, a '-' prefix sorts descending. Defaults to {DEFAULT_SORT_BY}.",
    ),
    table_hide_column: Optional[List[str]] = typer.Option(
        None, "--table-hide-column", help=f"Hide these table columns {HIDEABLE_COLUMNS}."
    ),
    max_workers: Optional[int] = typer.Option(
        None, "--max-workers", min=1, help="Limit concurrently uploading tasks. Defaults to one per task."
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Deadline of each request in seconds."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Fetch and show entries without uploading them."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Upload without asking for confirmation."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging."),
    config_dir: Optional[Path] = typer.Option(
        None, "--config-dir", help="Configuration directory. Defaults to ~/.timesheet-sync/"
    ),
) -> None:
    """Fetch, reconcile and upload worklog entries."""
    setup_logging(log_level=logging.DEBUG if verbose else logging.INFO, config_dir=config_dir)
    logger.info(f"Timesheet Sync v{__version__}")

    config = Config(
        config_dir,
        overrides={
            "source": source,
            "target": target,
            "source_user": source_user,
            "target_user": target_user,
            "tags_as_tasks_regex": tags_as_tasks_regex,
            "filter_client": filter_client,
            "filter_project": filter_project,
            "round_to_closest_minute": round_to_closest_minute or None,
            "force_billed_duration": force_billed_duration or None,
            "max_workers": max_workers,
            "timeout": timeout,
            "table_sort_by": split_columns(table_sort_by),
            "table_hide_column": split_columns(table_hide_column),
        },
    )

    try:
        source_name, target_name = config.get("source"), config.get("target")
        validate_route(source_name, target_name)
        start_dt, end_dt = parse_window(start, end, date_format)
        # Fail on bad filters before talking to any API
        config.pattern("filter_client")
        config.pattern("filter_project")
        sort_by = split_columns(config.get("table_sort_by")) or DEFAULT_SORT_BY
        hidden_columns = split_columns(config.get("table_hide_column")) or []
        parse_sort_by(sort_by)
        validate_hidden_columns(hidden_columns)
        fetcher = get_fetcher(source_name, config)
        uploader = get_uploader(target_name, config)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(code=1)

    with fetcher, uploader:
        engine = SyncEngine(config=config, fetcher=fetcher, uploader=uploader)

        try:
            worklog = engine.reconcile(engine.fetch(start_dt, end_dt))
        except FetchError as e:
            logger.error(f"Fetch failed: {e}", exc_info=True)
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

        entries = worklog.complete_entries
        print_entries(
            entries,
            worklog.incomplete_entries,
            start_dt,
            end_dt,
            console=console,
            sort_by=sort_by,
            hidden_columns=hidden_columns,
        )

        if dry_run:
            console.print("[bold cyan]DRY RUN[/bold cyan]: nothing uploaded.")
            raise typer.Exit(code=0)

        if not entries:
            console.print("[yellow]No complete entries to upload.[/yellow]")
            raise typer.Exit(code=0)

        if not yes and not Confirm.ask("Continue?", console=console):
            console.print("User interruption. Aborting.")
            raise typer.Exit(code=0)

        console.print("\nUploading worklog entries:\n")
        with new_progress(console) as progress:
            result = engine.upload(entries, progress=progress)

    if result.errors:
        console.print(f"\n[red]Failed to upload {result.entries_failed} worklog entries![/red]\n")
        for error in result.errors:
            console.print(f"  - {error}")
        raise typer.Exit(code=1)

    console.print(f"\n[green]Successfully uploaded {result.entries_uploaded} worklog entries![/green]")


@app.command()
def configure(
    service: str = typer.Argument(..., help="Service whose secret to store, e.g. clockify or tempo."),
    config_dir: Optional[Path] = typer.Option(
        None, "--config-dir", help="Configuration directory. Defaults to ~/.timesheet-sync/"
    ),
) -> None:
    """Store the API key or password of a service."""
    setup_logging(config_dir=config_dir)

    if service not in SOURCES and service not in TARGETS:
        console.print(f"[red]Unknown service '{service}'. Known: {sorted(set(SOURCES) | set(TARGETS))}[/red]")
        raise typer.Exit(code=1)

    storage = StorageManager(config_dir)
    secret = Prompt.ask(f"Enter your {service} API key or password", password=True, console=console)
    if not secret.strip():
        console.print("[red]Nothing stored: the secret is empty[/red]")
        raise typer.Exit(code=1)

    storage.set_token(service, secret.strip())
    console.print(f"[green]✓ {service} secret saved to {storage.tokens_file}[/green]")


@app.command()
def sources(
    config_dir: Optional[Path] = typer.Option(
        None, "--config-dir", help="Configuration directory. Defaults to ~/.timesheet-sync/"
    ),
) -> None:
    """List the supported sources and targets and whether they have a secret."""
    storage = StorageManager(config_dir)
    tokens = storage.load_tokens()

    table = Table(title="Adapters")
    table.add_column("Name", style="cyan")
    table.add_column("Source")
    table.add_column("Target")
    table.add_column("Secret", style="magenta")

    for name in sorted(set(SOURCES) | set(TARGETS)):
        table.add_row(
            name,
            "✓" if name in SOURCES else "",
            "✓" if name in TARGETS else "",
            "stored" if name in tokens else "-",
        )

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"Timesheet Sync v{__version__}")


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        console.print(f"[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
