"""Chrio CLI — Typer + Rich terminal interface.

Commands: clients, sessions, todos, config.
Every command goes through the reactive state objects of a ChrioApp and
renders from their caches, exactly as a graphical view would.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from chrio import __version__
from chrio.app import ChrioApp
from chrio.persistence.database import list_tables
from chrio.persistence.export import export_diff_json, export_diff_markdown
from chrio.schemas.client import Sex
from chrio.schemas.config import AppConfig
from chrio.schemas.diff import ABSENT
from chrio.schemas.session import MEASUREMENT_FIELDS, PHOTO_POSITIONS, Session
from chrio.settings import DEFAULTS_FILE, USER_CONFIG_FILE, load_app_config
from chrio.state.base import StateBase

console = Console()

# ── App and sub-apps ─────────────────────────────────────────────

app = typer.Typer(
    name="chrio",
    help="Client and session records backed by a local SQLite store.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

clients_app = typer.Typer(name="clients", help="Manage clients.", no_args_is_help=True)
app.add_typer(clients_app, name="clients")

sessions_app = typer.Typer(
    name="sessions", help="Record and compare sessions.", no_args_is_help=True,
)
app.add_typer(sessions_app, name="sessions")

todos_app = typer.Typer(name="todos", help="Manage todos.", no_args_is_help=True)
app.add_typer(todos_app, name="todos")

config_app = typer.Typer(name="config", help="Show storage configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")

# Set by the --db option of the app callback
_db_override: str | None = None


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"chrio {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    chrio_logger = logging.getLogger("chrio")
    if not any(isinstance(h, RichHandler) for h in chrio_logger.handlers):
        chrio_logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False),
        )
    chrio_logger.setLevel(logging.DEBUG if verbose else logging.ERROR)


# ── App Callback ────────────────────────────────────────────────


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    db: str = typer.Option(None, "--db", help="Database file (overrides config)"),
) -> None:
    """Chrio — client and session records backed by a local SQLite store."""
    global _db_override
    _db_override = db
    _configure_logging(verbose)


# ── Helpers ──────────────────────────────────────────────────────


def _load_config() -> AppConfig:
    """Load storage config, exit on error."""
    try:
        config = load_app_config()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None
    if _db_override:
        config = config.model_copy(update={"db_path": _db_override})
    return config


def _with_app(action: Callable[[ChrioApp], Awaitable[Any]]) -> tuple[ChrioApp, Any]:
    """Open the app, run ``action`` against it, close it, return both."""
    config = _load_config()

    async def _go() -> tuple[ChrioApp, Any]:
        async with await ChrioApp.open(config) as chrio:
            return chrio, await action(chrio)

    return asyncio.run(_go())


def _exit_on_error(state: StateBase) -> None:
    if state.error:
        console.print(f"[red]Error ({state.error_kind}):[/red] {state.error}")
        raise typer.Exit(1) from None


def _parse_measures(measures: list[str] | None) -> dict[str, float | str]:
    """Parse repeated ``name=value`` options; numeric values become floats."""
    parsed: dict[str, float | str] = {}
    for item in measures or []:
        name, sep, raw = item.partition("=")
        if not sep or not name.strip():
            console.print(f"[red]Invalid measurement:[/red] '{item}'. Use name=value.")
            raise typer.Exit(1) from None
        try:
            parsed[name.strip()] = float(raw)
        except ValueError:
            parsed[name.strip()] = raw.strip()
    return parsed


def _format_value(value: Any) -> str:
    if value is ABSENT or value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def _photo_count(session: Session) -> int:
    return sum(1 for position in PHOTO_POSITIONS if getattr(session, position))


# ── chrio clients ────────────────────────────────────────────────

@clients_app.command("list")
def clients_list() -> None:
    """List clients, most recently registered first."""
    chrio, _ = _with_app(lambda c: c.clients.refresh_clients())
    _exit_on_error(chrio.clients)

    clients = chrio.clients.clients
    if not clients:
        console.print("[dim]No clients registered.[/dim]")
        return

    table = Table(title=f"Clients ({len(clients)})")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("DOB")
    table.add_column("Sex")
    table.add_column("Registered", style="dim")
    for client in clients:
        table.add_row(
            str(client.id),
            client.full_name,
            client.dob,
            client.sex.value,
            client.registration_date[:19],
        )
    console.print(table)


@clients_app.command("add")
def clients_add(
    firstname: str = typer.Option(..., "--firstname", "-f", help="First name"),
    lastname: str = typer.Option(..., "--lastname", "-l", help="Last name"),
    dob: str = typer.Option(..., "--dob", help="Date of birth (YYYY-MM-DD)"),
    sex: Sex = typer.Option(..., "--sex", help="Sex (M, F or O)", case_sensitive=False),
) -> None:
    """Register a new client."""
    fields = {"firstname": firstname, "lastname": lastname, "dob": dob, "sex": sex.value}
    chrio, client_id = _with_app(lambda c: c.clients.create_client(fields))
    if client_id is None:
        _exit_on_error(chrio.clients)
    console.print(f"[green]Client registered:[/green] {client_id}")


@clients_app.command("update")
def clients_update(
    client_id: int = typer.Argument(..., help="Client ID"),
    firstname: str = typer.Option(None, "--firstname", "-f", help="First name"),
    lastname: str = typer.Option(None, "--lastname", "-l", help="Last name"),
    dob: str = typer.Option(None, "--dob", help="Date of birth (YYYY-MM-DD)"),
    sex: Sex = typer.Option(None, "--sex", help="Sex (M, F or O)", case_sensitive=False),
) -> None:
    """Update fields of an existing client."""
    fields: dict[str, Any] = {"id": client_id}
    if firstname is not None:
        fields["firstname"] = firstname
    if lastname is not None:
        fields["lastname"] = lastname
    if dob is not None:
        fields["dob"] = dob
    if sex is not None:
        fields["sex"] = sex.value

    chrio, updated = _with_app(lambda c: c.clients.update_client_entry(fields))
    if not updated:
        _exit_on_error(chrio.clients)
    console.print(f"[green]Client updated:[/green] {client_id}")


# ── chrio sessions ───────────────────────────────────────────────

@sessions_app.command("list")
def sessions_list(
    client_id: int = typer.Argument(..., help="Client ID"),
) -> None:
    """Show a client's sessions, most recent first."""
    chrio, _ = _with_app(lambda c: c.sessions.refresh_sessions(client_id))
    _exit_on_error(chrio.sessions)

    sessions = chrio.sessions.sessions_for(client_id)
    if not sessions:
        console.print(f"[dim]No sessions for client {client_id}.[/dim]")
        return

    table = Table(title=f"Sessions for client {client_id} ({len(sessions)})")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("#", justify="right")
    table.add_column("Date", style="dim")
    table.add_column("Height", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Photos", justify="right")
    table.add_column("Notes", max_width=40)
    for s in sessions:
        table.add_row(
            str(s.id),
            str(s.session_number),
            s.datetime[:19],
            _format_value(s.height),
            _format_value(s.weight),
            f"{_photo_count(s)}/{len(PHOTO_POSITIONS)}",
            (s.notes or "")[:40],
        )
    console.print(table)


@sessions_app.command("show")
def sessions_show(
    session_id: int = typer.Argument(..., help="Session ID"),
) -> None:
    """Show full session details."""
    chrio, session = _with_app(lambda c: c.sessions.load_session(session_id))
    if session is None:
        _exit_on_error(chrio.sessions)
        return

    meta = Table(title=f"Session {session.id}", show_header=False, show_lines=True)
    meta.add_column("Field", style="bold")
    meta.add_column("Value")
    meta.add_row("Client", str(session.client_id))
    meta.add_row("Number", str(session.session_number))
    meta.add_row("Date", session.datetime)
    for name in MEASUREMENT_FIELDS:
        value = getattr(session, name)
        if value is not None:
            meta.add_row(name, _format_value(value))
    for name, value in sorted(session.extra_measurements.items()):
        meta.add_row(name, _format_value(value))
    if session.notes:
        meta.add_row("Notes", session.notes)
    console.print(meta)


@sessions_app.command("add")
def sessions_add(
    client_id: int = typer.Argument(..., help="Client ID"),
    height: float = typer.Option(None, "--height", help="Height in cm"),
    weight: float = typer.Option(None, "--weight", help="Weight in kg"),
    notes: str = typer.Option(None, "--notes", help="Session notes"),
    measure: list[str] = typer.Option(
        None, "--measure", "-m", help="Extra measurement as name=value (repeatable)",
    ),
) -> None:
    """Record a new session for a client."""
    fields: dict[str, Any] = {
        "height": height,
        "weight": weight,
        "notes": notes,
        "extra_measurements": _parse_measures(measure),
    }
    chrio, session_id = _with_app(lambda c: c.sessions.create_session(client_id, fields))
    if session_id is None:
        _exit_on_error(chrio.sessions)

    number = next(
        (s.session_number for s in chrio.sessions.sessions_for(client_id) if s.id == session_id),
        None,
    )
    label = f" (#{number})" if number else ""
    console.print(f"[green]Session recorded:[/green] {session_id}{label}")


@sessions_app.command("update")
def sessions_update(
    session_id: int = typer.Argument(..., help="Session ID"),
    height: float = typer.Option(None, "--height", help="Height in cm"),
    weight: float = typer.Option(None, "--weight", help="Weight in kg"),
    notes: str = typer.Option(None, "--notes", help="Session notes"),
    measure: list[str] = typer.Option(
        None, "--measure", "-m", help="Replace extra measurements (name=value, repeatable)",
    ),
) -> None:
    """Update fields of an existing session."""
    fields: dict[str, Any] = {"id": session_id}
    if height is not None:
        fields["height"] = height
    if weight is not None:
        fields["weight"] = weight
    if notes is not None:
        fields["notes"] = notes
    if measure:
        fields["extra_measurements"] = _parse_measures(measure)

    async def _update(chrio: ChrioApp) -> bool:
        session = await chrio.sessions.load_session(session_id)
        if session is None:
            return False
        return await chrio.sessions.update_session_entry(session.client_id, fields)

    chrio, updated = _with_app(_update)
    if not updated:
        _exit_on_error(chrio.sessions)
    console.print(f"[green]Session updated:[/green] {session_id}")


@sessions_app.command("photo")
def sessions_photo(
    session_id: int = typer.Argument(..., help="Session ID"),
    position: str = typer.Argument(..., help="anterior, posterior, right_lateral or left_lateral"),
    image: Path = typer.Argument(..., help="JPEG file to store", exists=True, dir_okay=False),
) -> None:
    """Store a posture photo for a session."""
    encoded = base64.b64encode(image.read_bytes()).decode("ascii")

    async def _attach(chrio: ChrioApp) -> str | None:
        session = await chrio.sessions.load_session(session_id)
        if session is None:
            return None
        await chrio.clients.refresh_clients()
        client = chrio.clients.find(session.client_id)
        firstname = client.firstname if client else "client"
        result = await chrio.commands.save_image(
            session.client_id, firstname, session.session_number, position, encoded,
        )
        if not result.ok:
            console.print(f"[red]Error ({result.kind}):[/red] {result.error}")
            return None
        updated = await chrio.sessions.update_session_entry(
            session.client_id, {"id": session_id, position: result.data},
        )
        return result.data if updated else None

    chrio, path = _with_app(_attach)
    if path is None:
        _exit_on_error(chrio.sessions)
        raise typer.Exit(1)
    console.print(f"[green]Photo saved:[/green] {path}")


@sessions_app.command("delete")
def sessions_delete(
    session_id: int = typer.Argument(..., help="Session ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
) -> None:
    """Delete a session."""
    if not yes:
        confirm = typer.confirm(f"Delete session {session_id}? This cannot be undone.")
        if not confirm:
            console.print("[dim]Cancelled.[/dim]")
            return

    async def _delete(chrio: ChrioApp) -> bool:
        session = await chrio.sessions.load_session(session_id)
        if session is None:
            return False
        return await chrio.sessions.delete_session_entry(session.client_id, session_id)

    chrio, deleted = _with_app(_delete)
    if not deleted:
        _exit_on_error(chrio.sessions)
    console.print(f"[green]Session deleted:[/green] {session_id}")


@sessions_app.command("compare")
def sessions_compare(
    client_id: int = typer.Argument(..., help="Client ID"),
    session_a: int = typer.Argument(..., help="First session ID"),
    session_b: int = typer.Argument(..., help="Second session ID"),
    fmt: str = typer.Option(
        "table", "--format", "-f", help="Output format: table, json or markdown",
    ),
    changed_only: bool = typer.Option(
        False, "--changed-only", help="Hide fields equal in both sessions (table only)",
    ),
) -> None:
    """Compare two sessions of the same client."""
    if fmt not in ("table", "json", "markdown"):
        console.print(f"[red]Invalid format:[/red] '{fmt}'. Choose table, json or markdown.")
        raise typer.Exit(1) from None

    async def _compare(chrio: ChrioApp):
        diff = await chrio.sessions.compare(client_id, session_a, session_b)
        if diff is not None:
            await chrio.clients.refresh_clients()
        return diff

    chrio, diff = _with_app(_compare)
    if diff is None:
        _exit_on_error(chrio.sessions)
        return

    client = chrio.clients.find(client_id)
    client_name = client.full_name if client else ""

    if fmt == "json":
        console.print_json(export_diff_json(diff))
        return
    if fmt == "markdown":
        console.print(export_diff_markdown(diff, client_name=client_name), markup=False)
        return

    table = Table(
        title=f"{client_name or f'Client {client_id}'}: "
        f"#{diff.session_number_a} vs #{diff.session_number_b}",
    )
    table.add_column("Field", style="bold")
    table.add_column(f"#{diff.session_number_a}", justify="right")
    table.add_column(f"#{diff.session_number_b}", justify="right")
    for entry in diff.fields:
        if changed_only and not entry.changed:
            continue
        style = "yellow" if entry.changed else "dim"
        table.add_row(
            Text(entry.field, style=style),
            _format_value(entry.value_a),
            _format_value(entry.value_b),
        )
    console.print(table)


# ── chrio todos ──────────────────────────────────────────────────

@todos_app.command("list")
def todos_list() -> None:
    """List todos."""
    chrio, _ = _with_app(lambda c: c.todos.refresh_todos())
    _exit_on_error(chrio.todos)

    todos = chrio.todos.todos
    if not todos:
        console.print("[dim]No todos.[/dim]")
        return
    for todo in todos:
        mark = "[green]✓[/green]" if todo.completed else "[dim]·[/dim]"
        console.print(f"{mark} [cyan]{todo.id}[/cyan] {todo.title}")


@todos_app.command("add")
def todos_add(title: str = typer.Argument(..., help="Todo title")) -> None:
    """Add a todo."""
    chrio, todo_id = _with_app(lambda c: c.todos.add_todo(title))
    if todo_id is None:
        _exit_on_error(chrio.todos)
    console.print(f"[green]Todo added:[/green] {todo_id}")


@todos_app.command("done")
def todos_done(todo_id: int = typer.Argument(..., help="Todo ID")) -> None:
    """Toggle a todo's completion."""

    async def _toggle(chrio: ChrioApp) -> bool:
        await chrio.todos.refresh_todos()
        return await chrio.todos.toggle_todo(todo_id)

    chrio, toggled = _with_app(_toggle)
    if not toggled:
        _exit_on_error(chrio.todos)
    console.print(f"[green]Todo updated:[/green] {todo_id}")


# ── chrio config ─────────────────────────────────────────────────

@config_app.command("show")
def config_show() -> None:
    """Show current storage configuration and database status."""
    config = _load_config()

    async def _tables(chrio: ChrioApp) -> list[str]:
        return await list_tables(chrio.gateway.db) if chrio.storage_available else []

    chrio, tables = _with_app(_tables)

    table = Table(title="Storage Configuration", show_header=False, show_lines=True)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Database", config.db_path)
    table.add_row("Photos Directory", config.photos_dir)
    if chrio.storage_error is not None:
        table.add_row("Status", Text(f"unavailable: {chrio.storage_error}", style="red"))
    else:
        table.add_row("Status", Text("ok", style="green"))
        table.add_row("Tables", ", ".join(tables))
    console.print(table)


@config_app.command("path")
def config_path() -> None:
    """Show configuration file locations."""
    files = [
        ("Defaults", DEFAULTS_FILE),
        ("User", USER_CONFIG_FILE),
    ]

    table = Table(title="Configuration Paths", show_header=False)
    table.add_column("Config", style="bold")
    table.add_column("Path")
    table.add_column("Status")

    for name, path in files:
        exists = path.exists()
        status = "[green]found[/green]" if exists else "[red]missing[/red]"
        table.add_row(name, str(path), status)

    console.print(table)
