"""Conversions between stored values, domain readings and export formats.

The database keeps temperatures as exact decimals while the application works
with floats. Both directions can fail and report it with
:class:`~services.errors.ConversionError` instead of falling back to a default.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List

from pydantic import AwareDatetime, BaseModel, TypeAdapter, ValidationError

from models.records import Reading
from services.errors import ConversionError, ImportSourceError

# Integer digits available in the exact-decimal representation.
MAX_DECIMAL_DIGITS = 28


class ReadingRecord(BaseModel):
    """Wire shape of a reading in the JSON import/export format."""

    timestamp: AwareDatetime
    centigrade: float

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingRecord":
        return cls(timestamp=as_utc(reading.timestamp), centigrade=reading.centigrade)

    def to_reading(self) -> Reading:
        return Reading(timestamp=as_utc(self.timestamp), centigrade=self.centigrade)


_RECORDS_ADAPTER = TypeAdapter(List[ReadingRecord])


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def decimal_to_centigrade(value: Decimal) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise ConversionError(f"Cannot convert stored value {value!r} to float.") from exc
    if not math.isfinite(result):
        raise ConversionError(f"Stored value {value} is not representable as a float.")
    return result


def centigrade_to_decimal(value: float) -> Decimal:
    try:
        finite = math.isfinite(value)
    except TypeError as exc:
        raise ConversionError(f"Temperature {value!r} is not numeric.") from exc
    if not finite:
        raise ConversionError(f"Temperature {value} is not a finite number.")
    result = Decimal(repr(float(value)))
    if result.adjusted() >= MAX_DECIMAL_DIGITS:
        raise ConversionError(
            f"Temperature {value} exceeds the {MAX_DECIMAL_DIGITS}-digit decimal range."
        )
    return result


def readings_to_json(readings: Iterable[Reading]) -> str:
    records = [ReadingRecord.from_reading(reading) for reading in readings]
    return _RECORDS_ADAPTER.dump_json(records).decode("utf-8")


def readings_from_json(source: bytes | str) -> list[Reading]:
    """Decode a JSON array of readings, rejecting anything malformed."""
    try:
        records = _RECORDS_ADAPTER.validate_json(source, strict=True)
    except ValidationError as exc:
        raise ImportSourceError(f"Invalid readings JSON: {exc}") from exc
    return [record.to_reading() for record in records]


def format_reading_line(reading: Reading) -> str:
    return f"{as_utc(reading.timestamp).isoformat()} {reading.centigrade} C"


def readings_to_text(readings: Iterable[Reading]) -> str:
    return "\n".join(format_reading_line(reading) for reading in readings)
