"""Error taxonomy for the temperature store."""

from __future__ import annotations


class TemperatureError(Exception):
    """Base class for every failure raised by the temperature store."""


class DatabaseError(TemperatureError):
    """Connection, query or deadline failure against the backing database."""


class NotFoundError(TemperatureError):
    """The requested reading does not exist."""


class ImportSourceError(TemperatureError, OSError):
    """An import source could not be read or decoded."""


class ConversionError(TemperatureError, ValueError):
    """A temperature could not be converted between decimal and float."""
