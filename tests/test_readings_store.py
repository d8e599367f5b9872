"""Reading store behaviour against a file-backed SQLite database."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import insert

from datastore.schema import temperatures
from models.records import Reading
from services.errors import ConversionError, ImportSourceError, NotFoundError
from services.readings import ReadingStore, readings_from_rows


def _utc(day: int) -> datetime:
    return datetime(2024, 1, day, tzinfo=timezone.utc)


def _as_set(readings: list[Reading]) -> set[tuple[datetime, float]]:
    return {(reading.timestamp, reading.centigrade) for reading in readings}


def _insert_raw(store: ReadingStore, timestamp: datetime, stored: Decimal) -> None:
    with store.provider.engine.begin() as conn:
        conn.execute(insert(temperatures), {"timestamp": timestamp, "centigrade": stored})


def test_empty_table_reads(store: ReadingStore) -> None:
    assert store.all_readings() == []

    with pytest.raises(NotFoundError, match="no temperatures found"):
        store.latest_reading()


def test_import_then_read_scenario(store: ReadingStore, scenario_json: str) -> None:
    imported = store.import_json(scenario_json.encode("utf-8"))

    assert imported == 2
    assert store.latest_reading() == Reading(timestamp=_utc(2), centigrade=19.0)
    assert _as_set(store.all_readings()) == {(_utc(1), 21.5), (_utc(2), 19.0)}


def test_latest_reading_ignores_input_order(store: ReadingStore) -> None:
    store.import_many(
        [
            Reading(timestamp=_utc(3), centigrade=18.0),
            Reading(timestamp=_utc(5), centigrade=22.25),
            Reading(timestamp=_utc(4), centigrade=20.0),
        ]
    )

    assert store.latest_reading() == Reading(timestamp=_utc(5), centigrade=22.25)


def test_duplicates_are_kept(store: ReadingStore) -> None:
    reading = Reading(timestamp=_utc(1), centigrade=21.5)

    store.import_many([reading, reading])

    assert store.all_readings() == [reading, reading]


def test_clear_all_is_idempotent(store: ReadingStore, scenario_json: str) -> None:
    store.import_json(scenario_json)

    store.clear_all()
    store.clear_all()

    assert store.all_readings() == []


def test_import_with_out_of_range_value_leaves_table_unchanged(store: ReadingStore) -> None:
    store.import_many([Reading(timestamp=_utc(1), centigrade=21.5)])
    before = _as_set(store.all_readings())

    with pytest.raises(ConversionError):
        store.import_many(
            [
                Reading(timestamp=_utc(2), centigrade=19.0),
                Reading(timestamp=_utc(3), centigrade=1e300),
                Reading(timestamp=_utc(4), centigrade=18.0),
            ]
        )

    assert _as_set(store.all_readings()) == before


def test_import_with_non_finite_value_leaves_table_unchanged(store: ReadingStore) -> None:
    with pytest.raises(ConversionError):
        store.import_many(
            [
                Reading(timestamp=_utc(1), centigrade=21.5),
                Reading(timestamp=_utc(2), centigrade=float("nan")),
            ]
        )

    assert store.all_readings() == []


def test_malformed_json_is_rejected_before_any_write(store: ReadingStore) -> None:
    with pytest.raises(ImportSourceError):
        store.import_json(b'[{"timestamp":"2024-01-01T00:00:00Z","centigrade":21.5}, {"oops": 1}]')

    assert store.all_readings() == []


def test_import_file(store: ReadingStore, scenario_json: str, tmp_path) -> None:
    source = tmp_path / "readings.json"
    source.write_text(scenario_json, encoding="utf-8")

    assert store.import_file(source) == 2
    assert len(store.all_readings()) == 2


def test_import_missing_file_raises_import_source_error(store: ReadingStore, tmp_path) -> None:
    with pytest.raises(ImportSourceError, match="Could not read"):
        store.import_file(tmp_path / "missing.json")


def test_export_import_round_trip(store: ReadingStore) -> None:
    original = [
        Reading(timestamp=_utc(2), centigrade=19.0),
        Reading(timestamp=_utc(1), centigrade=21.5),
        Reading(timestamp=datetime(2024, 1, 1, 6, 30, tzinfo=timezone.utc), centigrade=-4.75),
    ]
    store.import_many(original)
    exported = store.export_json()

    store.clear_all()
    store.import_json(exported)

    assert _as_set(store.all_readings()) == _as_set(original)


def test_export_text(store: ReadingStore) -> None:
    store.import_many([Reading(timestamp=_utc(1), centigrade=21.5)])

    assert store.export_text() == "2024-01-01T00:00:00+00:00 21.5 C"


def test_all_readings_drops_unconvertible_rows(store: ReadingStore, caplog) -> None:
    store.import_many([Reading(timestamp=_utc(1), centigrade=21.5)])
    _insert_raw(store, _utc(2), Decimal("Infinity"))

    with caplog.at_level(logging.WARNING, logger="services.readings"):
        readings = store.all_readings()

    assert readings == [Reading(timestamp=_utc(1), centigrade=21.5)]
    assert "Skipping unconvertible reading" in caplog.text


def test_latest_reading_raises_on_unconvertible_row(store: ReadingStore) -> None:
    store.import_many([Reading(timestamp=_utc(1), centigrade=21.5)])
    _insert_raw(store, _utc(2), Decimal("Infinity"))

    with pytest.raises(ConversionError):
        store.latest_reading()


def test_readings_from_rows_keeps_only_convertible_values() -> None:
    naive = datetime(2024, 1, 1)
    rows = [
        (naive, Decimal("NaN")),
        (naive, Decimal("21.5")),
        (naive, Decimal("1e400")),
    ]

    assert readings_from_rows(rows) == [Reading(timestamp=_utc(1), centigrade=21.5)]
