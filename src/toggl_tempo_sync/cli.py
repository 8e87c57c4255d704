"""Command-line interface for the Toggl to Tempo synchronizer."""

import asyncio
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx
import typer
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from toggl_tempo_sync import __version__
from toggl_tempo_sync.config import Config
from toggl_tempo_sync.models import Worklog
from toggl_tempo_sync.sync import (
    SyncReport,
    SyncRunner,
    WorklogConverter,
    WorklogsLoadResult,
    WorklogSynchronizationService,
)
from toggl_tempo_sync.sync.runner import describe
from toggl_tempo_sync.tempo import TempoClient
from toggl_tempo_sync.toggl import TogglClient
from toggl_tempo_sync.utils import get_logger, setup_logging

app = typer.Typer(help="Synchronize worklogs between Toggl Track and Tempo")
console = Console()
logger = get_logger(__name__)

CONFIG_DIR_OPTION = typer.Option(
    None,
    "--config-dir",
    help="Configuration directory. Defaults to ~/.toggl-tempo-sync/",
)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        console.print("[red]Invalid date format. Use YYYY-MM-DD[/red]")
        raise typer.Exit(code=1)


def _create_clients(config: Config, confirm: bool = False) -> tuple[TogglClient, TempoClient]:
    """Create both API clients or exit if the tool is not configured."""
    storage = config.storage

    if not storage.has_tokens() or not config.tempo_account_id:
        console.print("[yellow]Toggl or Tempo not configured. Please configure it first.[/yellow]")
        console.print("Run: toggl-tempo-sync configure")
        raise typer.Exit(code=1)

    if config.toggl_workspace_id is None:
        console.print("[yellow]Toggl workspace not configured.[/yellow]")
        console.print("Run: toggl-tempo-sync configure")
        raise typer.Exit(code=1)

    toggl_client = TogglClient(storage=storage, confirm=confirm)
    tempo_client = TempoClient(
        account_id=config.tempo_account_id,
        storage=storage,
        confirm=confirm,
    )
    return toggl_client, tempo_client


async def _run_sync(
    config: Config,
    from_date: Optional[date],
    to_date: Optional[date],
    dry_run: bool,
    interactive: bool,
    confirm: bool,
) -> SyncReport:
    toggl_client, tempo_client = _create_clients(config, confirm=confirm)
    async with toggl_client, tempo_client:
        service = WorklogSynchronizationService(
            converter=WorklogConverter(config),
            toggl_repository=toggl_client,
            tempo_repository=tempo_client,
        )
        runner = SyncRunner(config, service)
        return await runner.run(
            from_date=from_date,
            to_date=to_date,
            dry_run=dry_run,
            interactive=interactive,
        )


async def _load(config: Config, from_date: date, to_date: date) -> WorklogsLoadResult:
    toggl_client, tempo_client = _create_clients(config)
    async with toggl_client, tempo_client:
        service = WorklogSynchronizationService(
            converter=WorklogConverter(config),
            toggl_repository=toggl_client,
            tempo_repository=tempo_client,
        )
        return await service.load(from_date, to_date)


async def _delete(config: Config, day: date, toggl_id: int, confirm: bool) -> Optional[Worklog]:
    toggl_client, tempo_client = _create_clients(config, confirm=confirm)
    async with toggl_client, tempo_client:
        service = WorklogSynchronizationService(
            converter=WorklogConverter(config),
            toggl_repository=toggl_client,
            tempo_repository=tempo_client,
        )
        loaded = await service.load(day, day)
        worklog = next(
            (w for w in loaded.worklogs if w.toggl_worklog and w.toggl_worklog.id == toggl_id),
            None,
        )
        if worklog is None:
            return None

        if not Confirm.ask(f"Delete {describe(worklog)} from Toggl and Tempo?"):
            raise typer.Exit(code=0)

        await service.delete(worklog)
        return worklog


def _print_report(report: SyncReport) -> None:
    table = Table(title="Sync Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="magenta")
    table.add_row("Synced", str(report.entries_synced))
    table.add_row("Skipped", str(report.entries_skipped))
    table.add_row("Failed", str(report.entries_failed))
    table.add_row("Rollback failures", str(report.rollback_failures))
    table.add_row("Unmatched Tempo worklogs", str(report.not_matched))
    table.add_row("Unmapped issues", str(len(report.unmapped_entries)))
    console.print(table)

    if report.unmapped_entries:
        console.print("\n[yellow]Unmapped issues:[/yellow]")
        for entry in report.unmapped_entries:
            console.print(f"  - {entry}")

    if report.errors:
        console.print("\n[red]Errors:[/red]")
        for error in report.errors:
            console.print(f"  - {error}")

    if report.rollback_failures:
        console.print(
            "\n[bold red]Some rollbacks failed. Toggl and Tempo may now disagree; "
            "check the affected worklogs manually.[/bold red]"
        )


@app.command()
def sync(
    from_date: Optional[str] = typer.Option(
        None,
        "--from-date",
        help="Start date for sync (YYYY-MM-DD). Defaults to last sync date or 30 days ago.",
    ),
    to_date: Optional[str] = typer.Option(
        None,
        "--to-date",
        help="End date for sync (YYYY-MM-DD). Defaults to today.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be synced without writing anything.",
    ),
    interactive: bool = typer.Option(
        True,
        "--interactive/--no-interactive",
        help="Prompt for unmapped Jira issues.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging."),
    confirm: bool = typer.Option(
        False,
        "--confirm",
        help="Print each API call and prompt for confirmation before sending.",
    ),
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Push Toggl worklogs of a date range to Tempo."""
    setup_logging(
        log_level=logging.DEBUG if verbose else logging.INFO,
        config_dir=config_dir,
    )
    logger.info(f"Toggl Tempo Sync v{__version__}")

    from_dt = _parse_date(from_date)
    to_dt = _parse_date(to_date)
    config = Config(config_dir)

    mode_str = "[bold cyan]DRY RUN[/bold cyan]" if dry_run else "[bold green]SYNC[/bold green]"
    console.print(f"Starting {mode_str} mode...")

    try:
        report = asyncio.run(_run_sync(config, from_dt, to_dt, dry_run, interactive, confirm))
    except typer.Exit:
        raise
    except httpx.RequestError as e:
        if "cancelled by user" in str(e).lower():
            console.print("[yellow]Sync cancelled by user[/yellow]")
            raise typer.Exit(code=0)
        logger.error(f"API request failed: {e}", exc_info=True)
        console.print(f"[red]Error: API request failed: {e}[/red]")
        raise typer.Exit(code=1)
    except Exception as e:
        logger.error(f"Sync failed: {e}", exc_info=True)
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    _print_report(report)
    raise typer.Exit(code=1 if report.has_failures else 0)


@app.command(name="list")
def list_worklogs(
    from_date: Optional[str] = typer.Option(None, "--from-date", help="Start date (YYYY-MM-DD). Defaults to today."),
    to_date: Optional[str] = typer.Option(None, "--to-date", help="End date (YYYY-MM-DD). Defaults to today."),
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Show worklogs of a date range and their state in both backends."""
    setup_logging(config_dir=config_dir)

    start = _parse_date(from_date) or date.today()
    end = _parse_date(to_date) or date.today()
    config = Config(config_dir)

    try:
        loaded = asyncio.run(_load(config, start, end))
    except typer.Exit:
        raise
    except Exception as e:
        logger.error(f"Loading worklogs failed: {e}", exc_info=True)
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"Worklogs {start} - {end}")
    table.add_column("Start", style="cyan")
    table.add_column("Hours", style="magenta")
    table.add_column("Issue", style="green")
    table.add_column("Comment")
    table.add_column("Toggl id")
    table.add_column("Tempo id")

    for worklog in loaded.worklogs + loaded.not_matched_worklogs:
        table.add_row(
            f"{worklog.start_date:%Y-%m-%d %H:%M}" if worklog.start_date else "-",
            f"{worklog.duration_hours:.2f}",
            worklog.issue_key or "-",
            worklog.comment or "",
            str(worklog.toggl_worklog.id) if worklog.toggl_worklog else "-",
            str(worklog.tempo_worklog.id) if worklog.tempo_worklog else "[yellow]missing[/yellow]",
        )

    console.print(table)
    if loaded.not_matched_worklogs:
        console.print(
            f"[yellow]{len(loaded.not_matched_worklogs)} Tempo worklogs have no Toggl entry "
            f"with the same start time.[/yellow]"
        )


@app.command()
def delete(
    toggl_id: int = typer.Option(..., "--toggl-id", help="Toggl time entry id."),
    on_date: str = typer.Option(..., "--date", help="Day of the worklog (YYYY-MM-DD)."),
    confirm: bool = typer.Option(
        False,
        "--confirm",
        help="Print each API call and prompt for confirmation before sending.",
    ),
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Delete one worklog from Tempo and Toggl."""
    setup_logging(config_dir=config_dir)

    day = _parse_date(on_date)
    config = Config(config_dir)

    try:
        worklog = asyncio.run(_delete(config, day, toggl_id, confirm))
    except typer.Exit:
        raise
    except Exception as e:
        logger.error(f"Delete failed: {e}", exc_info=True)
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if worklog is None:
        console.print(f"[yellow]No Toggl entry {toggl_id} on {day}[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Deleted {describe(worklog)}[/green]")


def _prompt_token(config: Config, service: str, label: str) -> None:
    while True:
        try:
            config.storage.set_token(service, Prompt.ask(f"Enter your {label} API token", password=True))
            return
        except ValueError as e:
            console.print(f"[red]{e}[/red]")


def _prompt_timezone() -> Optional[str]:
    while True:
        name = Prompt.ask("Time zone (IANA name, empty for system time zone)", default="").strip()
        if not name:
            return None
        try:
            ZoneInfo(name)
            return name
        except (ZoneInfoNotFoundError, ValueError):
            console.print(f"[red]Unknown time zone {name}[/red]")


async def _test_connections(config: Config) -> None:
    toggl_client, tempo_client = _create_clients(config)
    async with toggl_client, tempo_client:
        try:
            user = await toggl_client.get_current_user()
            console.print(f"[green]✓ Connected to Toggl as {user.get('fullname', 'user')}[/green]")
        except httpx.HTTPError as e:
            console.print(f"[red]✗ Failed to connect to Toggl: {e}[/red]")

        try:
            today = date.today()
            worklogs = await tempo_client.get_worklogs(today, today)
            console.print(f"[green]✓ Connected to Tempo (found {len(worklogs)} worklogs today)[/green]")
        except httpx.HTTPError as e:
            console.print(f"[red]✗ Failed to connect to Tempo: {e}[/red]")


@app.command()
def configure(config_dir: Optional[Path] = CONFIG_DIR_OPTION) -> None:
    """Configure Toggl and Tempo credentials."""
    setup_logging(config_dir=config_dir)

    config = Config(config_dir)

    console.print("[bold cyan]Toggl Tempo Sync Configuration[/bold cyan]\n")

    console.print("[yellow]Toggl Configuration[/yellow]")
    _prompt_token(config, "toggl", "Toggl")
    workspace_id = Prompt.ask("Enter your Toggl workspace id")

    console.print("\n[yellow]Tempo Configuration[/yellow]")
    _prompt_token(config, "tempo", "Tempo")
    account_id = Prompt.ask("Enter your Atlassian account id")

    config.update_settings(
        toggl_workspace_id=int(workspace_id),
        tempo_account_id=account_id.strip(),
        timezone=_prompt_timezone(),
    )
    console.print("[green]✓ Settings saved[/green]\n")

    console.print("[cyan]Testing connections...[/cyan]")
    asyncio.run(_test_connections(config))

    console.print("\n[green]Configuration complete![/green]")
    console.print("Run 'toggl-tempo-sync sync' to start syncing worklogs.")


@app.command()
def mapping(config_dir: Optional[Path] = CONFIG_DIR_OPTION) -> None:
    """View Jira issue mappings."""
    setup_logging(config_dir=config_dir)

    config = Config(config_dir)
    issues = config.get_all_mappings()

    if not issues:
        console.print("[yellow]No mappings configured yet.[/yellow]")
        return

    table = Table(title="Jira Issue Mappings")
    table.add_column("Jira issue", style="cyan")
    table.add_column("Tempo issue id", style="magenta")
    table.add_column("Name")
    table.add_column("Action", style="yellow")

    for issue_key, mapping_data in issues.items():
        if mapping_data.get("skip"):
            table.add_row(issue_key, "-", "-", "SKIP")
        else:
            table.add_row(
                issue_key,
                str(mapping_data.get("tempo_issue_id", "-")),
                mapping_data.get("name", "-"),
                "SYNC",
            )

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"Toggl Tempo Sync v{__version__}")


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        console.print(f"[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
