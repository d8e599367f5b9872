from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

import typer
import uvicorn

from cli.render import render_error, render_latest, render_readings
from datastore.connection import ConnectionProvider
from logging_config import configure_logging
from services.errors import TemperatureError
from services.readings import ReadingStore
from settings import Settings, get_settings


class ExportFormat(str, Enum):
    json = "json"
    text = "text"


@dataclass
class CLIState:
    settings: Settings
    store: ReadingStore


app = typer.Typer(
    name="get-home",
    help="Utility for managing home data.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def build_store(settings: Settings) -> ReadingStore:
    return ReadingStore(provider=ConnectionProvider(settings))


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@contextmanager
def _reporting_errors() -> Iterator[None]:
    try:
        yield
    except TemperatureError as exc:
        render_error(f"Error: {exc}")
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    ctx: typer.Context,
    database_url: Optional[str] = typer.Option(
        None,
        "--database-url",
        help="Database connection string (defaults to HOME_CONN or a local 'home' database).",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Utility for managing home data."""
    settings = get_settings()
    if database_url:
        settings = replace(settings, database_url=database_url)
    if log_level:
        settings = replace(settings, log_level=log_level.upper())
    configure_logging(settings.log_level)
    store = build_store(settings)
    ctx.obj = CLIState(settings=settings, store=store)
    ctx.call_on_close(store.provider.dispose)


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Get the latest data available."""
    state = _get_state(ctx)
    with _reporting_errors():
        reading = state.store.latest_reading()
    render_latest(reading)


@app.command("clean")
def clean_command(ctx: typer.Context) -> None:
    """Remove all data from the system."""
    state = _get_state(ctx)
    with _reporting_errors():
        state.store.clear_all()
    typer.secho("All readings removed.", fg=typer.colors.GREEN)


@app.command("export")
def export_command(
    ctx: typer.Context,
    format: ExportFormat = typer.Option(
        ExportFormat.json,
        "--format",
        "-f",
        help="Output as a JSON array or as one text line per reading.",
    ),
) -> None:
    """Export all data from the system."""
    state = _get_state(ctx)
    with _reporting_errors():
        readings = state.store.all_readings()
    render_readings(readings, as_text=format is ExportFormat.text)


@app.command("import")
def import_command(
    ctx: typer.Context,
    path: Path = typer.Argument(..., dir_okay=False, help="JSON file to import from."),
) -> None:
    """Import data into the system."""
    state = _get_state(ctx)
    with _reporting_errors():
        count = state.store.import_file(path)
    typer.secho(f"Imported {count} readings from {path}.", fg=typer.colors.GREEN)


@app.command("init-db")
def init_db_command(ctx: typer.Context) -> None:
    """Create the temperatures table if it does not exist."""
    state = _get_state(ctx)
    with _reporting_errors():
        state.store.ensure_schema()
    typer.secho("Temperatures table is ready.", fg=typer.colors.GREEN)


@app.command("serve")
def serve_command(
    ctx: typer.Context,
    address: Optional[str] = typer.Option(
        None,
        "--address",
        "-a",
        help="HOST:PORT to bind (defaults to HOME_ADDRESS env or 127.0.0.1:8080).",
    ),
) -> None:
    """Serve readings over HTTP."""
    from app.api import get_store
    from app.main import create_app

    state = _get_state(ctx)
    bind = address or state.settings.server_address
    host, _, port = bind.rpartition(":")
    if not host or not port.isdigit():
        raise typer.BadParameter(f"Expected HOST:PORT, got {bind!r}.", param_hint="--address")
    application = create_app()
    application.dependency_overrides[get_store] = lambda: state.store
    typer.echo(f"Serving on : {host}:{port}")
    uvicorn.run(application, host=host, port=int(port), log_config=None)
