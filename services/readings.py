"""Read and write operations over the temperatures table."""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from datastore.connection import ConnectionProvider, build_default_provider
from datastore.schema import ensure_schema, temperatures
from models.records import Reading
from services.conversion import (
    as_utc,
    centigrade_to_decimal,
    decimal_to_centigrade,
    readings_from_json,
    readings_to_json,
    readings_to_text,
)
from services.errors import ConversionError, DatabaseError, ImportSourceError, NotFoundError

logger = logging.getLogger(__name__)


def readings_from_rows(rows: Iterable[Sequence]) -> list[Reading]:
    """Convert ``(timestamp, decimal)`` rows, dropping unconvertible values."""
    readings: list[Reading] = []
    for row in rows:
        try:
            centigrade = decimal_to_centigrade(row[1])
        except ConversionError as exc:
            logger.warning(
                "Skipping unconvertible reading",
                extra={"timestamp": row[0], "reason": str(exc)},
            )
            continue
        readings.append(Reading(timestamp=as_utc(row[0]), centigrade=centigrade))
    return readings


class ReadingStore:
    """Operations over the stored readings; each call uses a fresh session."""

    def __init__(self, provider: ConnectionProvider) -> None:
        self.provider = provider

    def all_readings(self) -> list[Reading]:
        """Return every convertible reading, in no particular order."""
        query = select(temperatures.c.timestamp, temperatures.c.centigrade)
        with self.provider.open() as session:
            rows = session.execute(query)
        return readings_from_rows(rows)

    def latest_reading(self) -> Reading:
        query = (
            select(temperatures.c.timestamp, temperatures.c.centigrade)
            .order_by(temperatures.c.timestamp.desc())
            .limit(1)
        )
        with self.provider.open() as session:
            rows = session.execute(query)
        if not rows:
            raise NotFoundError("no temperatures found")
        timestamp, stored = rows[0][0], rows[0][1]
        return Reading(timestamp=as_utc(timestamp), centigrade=decimal_to_centigrade(stored))

    def import_many(self, readings: Sequence[Reading]) -> int:
        """Insert ``readings`` in one transaction; nothing is kept on failure."""
        start = time.perf_counter()
        with self.provider.open() as session:
            with session.transaction():
                for reading in readings:
                    session.execute(
                        insert(temperatures),
                        {
                            "timestamp": as_utc(reading.timestamp),
                            "centigrade": centigrade_to_decimal(reading.centigrade),
                        },
                    )
        logger.info(
            "Imported readings",
            extra={
                "reading_count": len(readings),
                "elapsed_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return len(readings)

    def import_json(self, source: bytes | str) -> int:
        return self.import_many(readings_from_json(source))

    def import_file(self, path: Path) -> int:
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise ImportSourceError(f"Could not read {path}: {exc}") from exc
        return self.import_json(data)

    def clear_all(self) -> None:
        with self.provider.open() as session:
            with session.transaction():
                session.execute(delete(temperatures))
        logger.info("Cleared all readings")

    def export_json(self) -> str:
        return readings_to_json(self.all_readings())

    def export_text(self) -> str:
        return readings_to_text(self.all_readings())

    def ensure_schema(self) -> None:
        try:
            ensure_schema(self.provider.engine)
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Could not create the temperatures table: {exc}") from exc


@lru_cache
def build_default_store() -> ReadingStore:
    """Factory that wires the store with the configured database."""
    return ReadingStore(provider=build_default_provider())
