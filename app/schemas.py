"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from models.records import Reading
from services.conversion import as_utc


class ReadingFormat(str, Enum):
    """Representations a client can request for readings."""

    json = "json"
    text = "text"


class ReadingResponse(BaseModel):
    """A single temperature reading as returned by the API."""

    timestamp: datetime = Field(..., description="Time of the reading (UTC).")
    centigrade: float

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingResponse":
        return cls(timestamp=as_utc(reading.timestamp), centigrade=reading.centigrade)
