"""Table definition for stored temperature readings."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, MetaData, Numeric, Table
from sqlalchemy.engine import Engine

metadata = MetaData()

# Column order is part of the contract: timestamp first, centigrade second.
temperatures = Table(
    "temperatures",
    metadata,
    Column("timestamp", DateTime(timezone=True), nullable=False, index=True),
    Column("centigrade", Numeric(asdecimal=True), nullable=False),
)


def ensure_schema(engine: Engine) -> None:
    """Create the temperatures table (and its timestamp index) if missing."""
    metadata.create_all(engine, checkfirst=True)
