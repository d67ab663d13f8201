"""CLI entry point for orm-session-store.

Invoked as::

    orm-session-store [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m orm_session_store.cli.main

Commands
--------
- version  — Show version information
- count    — Count stored sessions
- list     — List stored sessions with their expiration
- show     — Print one session's data as JSON
- destroy  — Delete sessions by id
- prune    — Delete expired sessions
- clear    — Delete every session
- watch    — Run the pruning interval in the foreground
"""
from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Awaitable, Callable, TypeVar

import click
from rich.console import Console
from rich.table import Table

from orm_session_store.session.options import DEFAULT_CHECK_PERIOD_MS, StoreOptions
from orm_session_store.session.store import ConnectionUnavailableError, SessionStore
from orm_session_store.storage.async_base import AsyncSessionClient
from orm_session_store.storage.async_sqlite import AsyncSQLiteClient
from orm_session_store.utils.expiration import current_time_ms

console = Console()

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Store factory
# ---------------------------------------------------------------------------


def _make_client(db_path: str | None, table: str) -> AsyncSessionClient:
    """Instantiate the SQLite client used by every command.

    The schema is never created from the CLI: pointing it at a database
    without a sessions table disables the store, as it would in an app.
    """
    return AsyncSQLiteClient(db_path=db_path, table=table, create_schema=False)


def _run(ctx: click.Context, action: Callable[[SessionStore], Awaitable[T]]) -> T:
    """Connect a store, run ``action`` against it and shut it down."""
    options: StoreOptions = ctx.obj["options"]
    client = _make_client(ctx.obj["db_path"], options.session_model_name)

    async def _main() -> T:
        store = SessionStore(client, options)
        try:
            await store.connect(raise_on_failure=True)
            return await action(store)
        finally:
            await store.shutdown()

    try:
        return asyncio.run(_main())
    except ConnectionUnavailableError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="orm-session-store")
@click.option("--db", "db_path", default=None, help="Path to the SQLite database.")
@click.option("--table", default=None, help="Sessions table name.  [default: session]")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with store options.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    db_path: str | None,
    table: str | None,
    config_path: str | None,
) -> None:
    """Inspect and maintain a server-side session store"""
    options = StoreOptions.from_yaml(config_path) if config_path else StoreOptions()
    if table is not None:
        if not table.isidentifier():
            raise click.BadParameter(
                f"{table!r} is not a valid table name", param_hint="--table"
            )
        options = options.model_copy(update={"session_model_name": table})
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path
    ctx.obj["options"] = options


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from orm_session_store import __version__

    console.print(f"[bold]orm-session-store[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# Read-only commands
# ---------------------------------------------------------------------------


@cli.command(name="count")
@click.pass_context
def count_command(ctx: click.Context) -> None:
    """Print the number of stored sessions, expired ones included."""
    total = _run(ctx, lambda store: store.length())
    console.print(str(total))


@cli.command(name="list")
@click.option("--limit", default=50, show_default=True, help="Maximum sessions to show.")
@click.pass_context
def list_command(ctx: click.Context, limit: int) -> None:
    """List stored sessions with their expiration."""

    async def _rows(store: SessionStore) -> list[Any]:
        return list(await store.client.find_many())

    records = _run(ctx, _rows)
    if not records:
        console.print("[yellow]No sessions found.[/yellow]")
        return

    now_ms = current_time_ms()
    table = Table(title=f"Sessions ({len(records)} total)", show_lines=False)
    table.add_column("SID", style="cyan", no_wrap=True)
    table.add_column("Record ID", style="dim")
    table.add_column("Expires At")
    table.add_column("Expired", justify="center")

    for record in records[:limit]:
        expired = record.is_expired(now_ms)
        table.add_row(
            record.sid,
            record.id,
            record.expires_at.isoformat(),
            "[red]yes[/red]" if expired else "[green]no[/green]",
        )

    console.print(table)
    if len(records) > limit:
        console.print(f"[dim]Showing {limit} of {len(records)} sessions.[/dim]")


@cli.command(name="show")
@click.argument("sid")
@click.pass_context
def show_command(ctx: click.Context, sid: str) -> None:
    """Print the data stored for SID as JSON."""
    data = _run(ctx, lambda store: store.get(sid))
    if data is None:
        console.print(f"[red]Session not found:[/red] {sid}")
        sys.exit(1)
    console.print_json(json.dumps(data))


# ---------------------------------------------------------------------------
# Mutating commands
# ---------------------------------------------------------------------------


@cli.command(name="destroy")
@click.argument("sids", nargs=-1, required=True)
@click.pass_context
def destroy_command(ctx: click.Context, sids: tuple[str, ...]) -> None:
    """Delete the sessions with the given SIDS."""
    _run(ctx, lambda store: store.destroy(list(sids)))
    console.print(f"[green]Destroyed:[/green] {', '.join(sids)}")


@cli.command(name="prune")
@click.pass_context
def prune_command(ctx: click.Context) -> None:
    """Delete expired sessions."""
    removed = _run(ctx, lambda store: store.prune())
    console.print(f"[green]Pruned {removed} expired session(s).[/green]")


@cli.command(name="clear")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def clear_command(ctx: click.Context, yes: bool) -> None:
    """Delete every session."""
    if not yes:
        click.confirm("Delete ALL sessions?", abort=True)
    _run(ctx, lambda store: store.clear())
    console.print("[green]All sessions deleted.[/green]")


@cli.command(name="watch")
@click.option(
    "--period",
    default=DEFAULT_CHECK_PERIOD_MS,
    show_default=True,
    type=click.IntRange(min=1),
    help="Milliseconds between prunes.",
)
@click.option(
    "--iterations",
    default=None,
    type=click.IntRange(min=1),
    help="Stop after this many prunes (default: run until interrupted).",
)
@click.pass_context
def watch_command(ctx: click.Context, period: int, iterations: int | None) -> None:
    """Prune expired sessions every PERIOD milliseconds."""
    options: StoreOptions = ctx.obj["options"]
    ctx.obj["options"] = options.model_copy(update={"check_period": period})

    def _report(error: Exception) -> None:
        console.print(f"[red]{error}[/red]")

    async def _watch(store: SessionStore) -> int:
        # Replace the automatically started interval with one that reports.
        store.stop_interval()
        store.start_interval(on_error=_report)
        scheduler = store.scheduler
        while iterations is None or scheduler.runs < iterations:
            await asyncio.sleep(period / 1000)
        return scheduler.runs

    console.print(f"Pruning every {period} ms. Press Ctrl+C to stop.")
    try:
        runs = _run(ctx, _watch)
    except KeyboardInterrupt:
        console.print("[yellow]Stopped.[/yellow]")
        return
    console.print(f"[green]Completed {runs} prune run(s).[/green]")


if __name__ == "__main__":
    cli()
