"""
CLI commands for convey.

Provides command-line access to running checks against MongoDB,
inspecting stored versions and checking the connection.
"""

import asyncio
import sys
from contextlib import asynccontextmanager
from functools import wraps
from typing import AsyncIterator, Callable

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from convey import __version__
from convey.config.loader import load_configuration
from convey.config.settings import get_settings
from convey.db.connection import DatabaseConnection
from convey.db.store import DocumentStore
from convey.exceptions import ConveyError, DatabaseMissingError
from convey.log import configure_logging
from convey.models.events import CheckReport, EventName
from convey.services.listeners import LoggingListener
from convey.services.markers import VersionMarkerStore
from convey.services.modules import FileModuleLoader
from convey.services.orchestrator import Convey

console = Console()


def async_command(f: Callable) -> Callable:
    """Decorator to run async functions in Click commands."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        exit_code = asyncio.run(f(*args, **kwargs))
        if exit_code:
            sys.exit(exit_code)

    return wrapper


def handle_errors(f: Callable) -> Callable:
    """Decorator to report convey errors and turn them into exit code 1."""

    @wraps(f)
    async def wrapper(*args, **kwargs):
        try:
            return await f(*args, **kwargs)
        except ConveyError as e:
            console.print(f"[red]Error:[/red] {e}")
            return 1
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {e}")
            raise

    return wrapper


@asynccontextmanager
async def open_store(uri: str | None = None) -> AsyncIterator[DocumentStore]:
    """Connect to MongoDB for the duration of a command."""
    async with DatabaseConnection(uri=uri) as store:
        yield store


def parse_extensions(ctx, param, values: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated KEY=VALUE options into a dict."""
    extensions: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{item}'")
        extensions[key] = value
    return extensions


def render_report(report: CheckReport) -> Table:
    """Build a table of the lifecycle events of a run."""
    table = Table(title=f"Convey check {report.version}", box=box.ROUNDED)
    table.add_column("Event", style="cyan")
    table.add_column("Database", style="green")
    table.add_column("Resource")
    table.add_column("Details", style="dim")

    for event in report.events:
        if event.name in (EventName.START, EventName.DONE, EventName.ERROR):
            continue
        details = ""
        if event.name is EventName.TARGET_DONE:
            details = f"updated={event['updated']} created={event['created']}"
        elif event.name is EventName.RESOURCE_STALE and event["forced"]:
            details = "forced"
        table.add_row(
            event.name.value,
            event.get("database", ""),
            event.get("resource", ""),
            details,
        )

    return table


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="convey")
@click.option("--log-level", default=None, help="Override CONVEY_LOG_LEVEL")
def cli(log_level: str | None):
    """Convey - version-gated design and document migrations.

    Publishes design documents and runs document editors once per
    release version, per database.
    """
    configure_logging(log_level or get_settings().convey.log_level)


# =============================================================================
# Check Commands
# =============================================================================


@cli.command("check")
@click.argument("version")
@click.option("--config", "-c", "config_path", default=None, help="Configuration file")
@click.option("--modules-dir", "-m", default=None, help="Base directory for design modules")
@click.option("--force", "-f", is_flag=True, help="Process resources even when fresh")
@click.option(
    "--extend",
    "-e",
    multiple=True,
    callback=parse_extensions,
    help="KEY=VALUE field stored on each version marker (repeatable)",
)
@click.option("--uri", default=None, help="MongoDB URI (defaults to MONGO_* settings)")
@async_command
@handle_errors
async def check_command(
    version: str,
    config_path: str | None,
    modules_dir: str | None,
    force: bool,
    extend: dict[str, str],
    uri: str | None,
):
    """Bring every configured resource up to VERSION."""
    settings = get_settings()
    configuration = load_configuration(config_path or settings.convey.config_path)
    loader = FileModuleLoader(modules_dir or settings.convey.modules_dir)
    convey = Convey(loader, extend_document=extend, listeners=[LoggingListener()])

    async with open_store(uri) as store:
        report = await convey.check(store, version, configuration, force=force)

    console.print(render_report(report))

    totals = report.totals()
    console.print(
        Panel(
            f"[green]Done[/green] in {report.duration_seconds:.2f}s\n"
            f"Targets: {len(totals)}\n"
            f"Updated: {sum(t.updated for t in totals.values())}\n"
            f"Created: {sum(t.created for t in totals.values())}",
            title="Convey",
            border_style="green",
        )
    )


@cli.command("status")
@click.option("--config", "-c", "config_path", default=None, help="Configuration file")
@click.option("--uri", default=None, help="MongoDB URI (defaults to MONGO_* settings)")
@async_command
@handle_errors
async def status_command(config_path: str | None, uri: str | None):
    """Show the stored version of every configured resource."""
    settings = get_settings()
    configuration = load_configuration(config_path or settings.convey.config_path)
    markers = VersionMarkerStore()

    table = Table(title="Stored versions", box=box.ROUNDED)
    table.add_column("Database", style="cyan")
    table.add_column("Resource")
    table.add_column("Version", style="green")

    async with open_store(uri) as store:
        for database_name, resources in configuration.items():
            try:
                marker, _ = await markers.load(store.database(database_name))
            except DatabaseMissingError:
                table.add_row(database_name, "", "[red]database missing[/red]")
                continue
            for resource in resources:
                table.add_row(database_name, resource, marker.version_of(resource) or "-")

    console.print(table)


# =============================================================================
# Database Commands
# =============================================================================


@cli.group()
def db():
    """Database management commands."""
    pass


@db.command("ping")
@click.option("--uri", default=None, help="MongoDB URI (defaults to MONGO_* settings)")
@async_command
async def db_ping(uri: str | None):
    """Check database connection status."""
    conn = DatabaseConnection(uri=uri)
    try:
        await conn.connect()
    except Exception as e:
        console.print(
            Panel(f"[red]Disconnected[/red]\nError: {e}", title="Database Status", border_style="red")
        )
        return 1

    try:
        health = await conn.health_check()
    finally:
        await conn.disconnect()

    if health["healthy"]:
        console.print(
            Panel(
                f"[green]Connected[/green]\n"
                f"Server: MongoDB {health.get('server_version', 'unknown')}\n"
                f"Latency: {health.get('latency_ms', 'N/A')} ms",
                title="Database Status",
                border_style="green",
            )
        )
        return 0

    console.print(
        Panel(
            f"[red]Disconnected[/red]\nError: {health.get('error', 'Unknown')}",
            title="Database Status",
            border_style="red",
        )
    )
    return 1
