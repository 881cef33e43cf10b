"""
CLI interface for Case Configs.

Browse the catalog, attach configs to a case and submit them.
"""

import logging
import sys
from typing import List, Optional, Sequence, Union

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from case_configs.config.loader import AppConfig, load_app_config
from case_configs.config.logging import configure_logging
from case_configs.core.catalog import SortDirection
from case_configs.core.session import CaseSession
from case_configs.demo.seed_demo_data import seed_demo_data
from case_configs.sdk.submission_client import SubmissionClient
from case_configs.storage.models import AttachedEntry, CaseStatus, CatalogEntry
from case_configs.storage.repository import CaseConfigRepository, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


def _notify_error(error: Exception) -> None:
    """Print the most specific message available and exit with failure."""
    message = getattr(error, "message", None) or str(error) or "An error occurred"
    console.print(f"[red]Error:[/] {escape(message)}")
    sys.exit(EXIT_CODE_FAIL)


def _app_config(ctx: typer.Context) -> AppConfig:
    return ctx.obj if isinstance(ctx.obj, AppConfig) else AppConfig()


def _repository(ctx: typer.Context) -> CaseConfigRepository:
    return CaseConfigRepository(_app_config(ctx).database.path)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    )
):
    """Case Configs CLI."""
    try:
        app_config = load_app_config(config) if config else AppConfig()
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        _notify_error(e)
    configure_logging(logging.DEBUG if verbose else app_config.logging.level_number)
    ctx.obj = app_config

    if ctx.invoked_subcommand is None:
        console.print("Case Configs - Use --help to see available commands")


@app.command()
def init(ctx: typer.Context):
    """Initialize the Case Configs database."""
    try:
        initialize_schema(_app_config(ctx).database.path)
    except Exception as e:
        _notify_error(e)
    console.print("[green]✓[/] Database initialized successfully")


@app.command()
def seed(ctx: typer.Context):
    """Insert a demo catalog and an open case."""
    try:
        case = seed_demo_data(_app_config(ctx).database.path)
    except Exception as e:
        _notify_error(e)
    console.print(f"[green]✓[/] Demo data inserted, open case id: {case.id}")


@app.command("new-case")
def new_case(
    ctx: typer.Context,
    subject: Optional[str] = typer.Option(None, "--subject", "-s", help="Case subject")
):
    """Open a new case."""
    try:
        case = _repository(ctx).create_case(subject=subject)
    except Exception as e:
        _notify_error(e)
    console.print(f"[green]✓[/] Case {case.id} opened")


@app.command()
def status(ctx: typer.Context, case_id: int = typer.Argument(..., help="Case id")):
    """Show the status of a case."""
    try:
        case = _repository(ctx).get_case(case_id)
    except Exception as e:
        _notify_error(e)
    if case is None:
        console.print(f"[red]Error:[/] Case {case_id} not found")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"Case {case.id}: {case.status.value}")


@app.command()
def catalog(
    ctx: typer.Context,
    case_id: int = typer.Argument(..., help="Case the catalog is browsed for"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    sort: Optional[SortDirection] = typer.Option(
        None,
        "--sort",
        help="Sort the page by creation date"
    )
):
    """List one page of the config catalog."""
    app_config = _app_config(ctx)
    try:
        with CaseSession(
            case_id, _repository(ctx), page_size=app_config.catalog.page_size
        ) as session:
            browser = session.browser
            browser.load()
            browser.sort_direction = sort
            browser.go_to_page(page)
            _display_entries("Available Configs", browser.entries)
            console.print(
                f"Page {browser.current_page} of {browser.total_pages} "
                f"({browser.total_records} records)"
            )
            if browser.case_status is CaseStatus.CLOSED:
                console.print("[yellow]Case is closed: configs cannot be added[/]")
    except Exception as e:
        _notify_error(e)


@app.command()
def attach(
    ctx: typer.Context,
    case_id: int = typer.Argument(..., help="Case receiving the configs"),
    entry_ids: List[int] = typer.Argument(..., help="Catalog entry ids to attach")
):
    """Attach catalog entries to a case, skipping duplicate labels."""
    try:
        with CaseSession(
            case_id, _repository(ctx), page_size=_app_config(ctx).catalog.page_size
        ) as session:
            session.load()
            session.browser.select(entry_ids)
            result = session.browser.add_selected()
            console.print(f"[cyan]Info:[/] {escape(result.message)}")
            console.print(
                f"Case {case_id} now has {len(session.attachments.entries)} attached config(s)"
            )
    except Exception as e:
        _notify_error(e)


@app.command()
def attachments(
    ctx: typer.Context,
    case_id: int = typer.Argument(..., help="Case id")
):
    """List the configs attached to a case."""
    try:
        with CaseSession(
            case_id, _repository(ctx), page_size=_app_config(ctx).catalog.page_size
        ) as session:
            session.attachments.load()
            _display_entries(f"Case {case_id} Configs", session.attachments.entries)
            if session.attachments.is_submit_disabled:
                console.print("[yellow]Case is closed: configs cannot be sent[/]")
    except Exception as e:
        _notify_error(e)


@app.command()
def submit(
    ctx: typer.Context,
    case_id: int = typer.Argument(..., help="Case whose configs are sent"),
    attached_ids: Optional[List[int]] = typer.Argument(None, help="Attached config ids to send"),
    send_all: bool = typer.Option(False, "--all", "-a", help="Send every attached config")
):
    """Send attached configs to the external system and close the case."""
    app_config = _app_config(ctx)
    if app_config.submission is None:
        console.print("[red]Error:[/] No submission endpoint configured")
        sys.exit(EXIT_CODE_FAIL)
    if send_all and attached_ids:
        console.print("[red]Error:[/] Pass either config ids or --all, not both")
        sys.exit(EXIT_CODE_FAIL)

    try:
        client = SubmissionClient(
            app_config.submission.endpoint,
            timeout=app_config.submission.timeout
        )
        with CaseSession(
            case_id,
            _repository(ctx),
            client=client,
            page_size=app_config.catalog.page_size
        ) as session:
            session.load()
            known_ids = [entry.id for entry in session.attachments.entries]
            selected = known_ids if send_all else list(attached_ids or [])
            foreign = [entry_id for entry_id in selected if entry_id not in known_ids]
            if foreign:
                raise ValueError(
                    f"Config(s) {', '.join(str(i) for i in foreign)} "
                    f"are not attached to case {case_id}"
                )
            session.attachments.select(selected)
            session.attachments.submit()
            console.print("[green]Success:[/] Case Configs sent.")
            console.print(f"Case {case_id} is now {session.attachments.case_status.value}")
    except Exception as e:
        _notify_error(e)


def _format_currency(amount: float) -> str:
    """Format currency with proper symbols and formatting."""
    return f"${abs(amount):,.2f}"


def _display_entries(title: str, entries: Sequence[Union[CatalogEntry, AttachedEntry]]) -> None:
    """Render catalog or attached entries as a table."""
    if not entries:
        console.print(f"\n[dim]{title}: no records found.[/]")
        return

    table = Table(title=title)
    table.add_column("ID", justify="right")
    table.add_column("Label")
    table.add_column("Type")
    table.add_column("Amount", justify="left")
    table.add_column("Created")
    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.label,
            entry.category,
            _format_currency(entry.amount),
            entry.created_at.strftime("%Y-%m-%d %H:%M")
        )
    console.print(table)


if __name__ == "__main__":
    app()
