from __future__ import annotations

from typing import Iterable

import typer

from models.records import Reading
from services.conversion import as_utc, format_reading_line, readings_to_json


def render_latest(reading: Reading) -> None:
    typer.echo(
        f"Latest Temperature: {as_utc(reading.timestamp).isoformat()} :: {reading.centigrade}C"
    )


def render_readings(readings: Iterable[Reading], as_text: bool) -> None:
    if as_text:
        for reading in readings:
            typer.echo(format_reading_line(reading))
        return
    typer.echo(readings_to_json(readings))


def render_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
