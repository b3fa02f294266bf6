from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest

from zpowergraph.exceptions import ReadingNotFoundError, StorageError
from zpowergraph.models.reading import Reading
from zpowergraph.storage import TABLE_NAME, ReadingStore


def _reading(name: str = "plug-a", timestamp: int = 0, **overrides: float) -> Reading:
    values = {"current": 1.2, "energy": 10.0, "power": 264, "voltage": 220}
    values.update(overrides)
    return Reading(friendly_name=name, timestamp=timestamp, **values)


@pytest.fixture
def store() -> Iterator[ReadingStore]:
    store = ReadingStore(":memory:")
    store.ensure_schema()
    yield store
    store.close()


def test_ensure_schema_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "zpowergraph.db"
    with ReadingStore(db_path) as store:
        store.ensure_schema()
        store.ensure_schema()

    conn = sqlite3.connect(db_path)
    try:
        tables = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (TABLE_NAME,)).fetchall()
        columns = [row[1] for row in conn.execute(f"PRAGMA table_info({TABLE_NAME})")]
    finally:
        conn.close()

    assert len(tables) == 1
    assert columns == ["id", "friendly_name", "timestamp", "current", "energy", "power", "voltage"]


def test_ensure_schema_keeps_existing_rows(tmp_path: Path) -> None:
    db_path = tmp_path / "zpowergraph.db"
    with ReadingStore(db_path) as store:
        store.ensure_schema()
        store.append(_reading())

    with ReadingStore(db_path) as store:
        store.ensure_schema()
        assert store.count() == 1


def test_append_returns_increasing_ids(store: ReadingStore) -> None:
    first = store.append(_reading(timestamp=1))
    second = store.append(_reading(timestamp=2))
    assert second > first
    assert store.count() == 2


def test_latest_for_returns_highest_id(store: ReadingStore) -> None:
    store.append(_reading(timestamp=1, energy=10.0))
    store.append(_reading(name="plug-b", timestamp=2, energy=99.0))
    # Same timestamp: ties are broken by insertion order.
    store.append(_reading(timestamp=5, energy=11.0))
    store.append(_reading(timestamp=5, energy=12.5, power=100))

    latest = store.latest_for("plug-a")
    assert latest == _reading(timestamp=5, energy=12.5, power=100)


def test_latest_for_unknown_device(store: ReadingStore) -> None:
    store.append(_reading(name="plug-a"))
    with pytest.raises(ReadingNotFoundError) as excinfo:
        store.latest_for("plug-b")
    assert excinfo.value.friendly_name == "plug-b"


def test_readings_for_in_insertion_order(store: ReadingStore) -> None:
    store.append(_reading(timestamp=3))
    store.append(_reading(name="plug-b", timestamp=1))
    store.append(_reading(timestamp=4, current=0.0, power=0))

    readings = store.readings_for("plug-a")
    assert [r.timestamp for r in readings] == [3, 4]
    assert readings[1].power == 0
    assert store.readings_for("plug-c") == []


def test_round_trips_values(store: ReadingStore) -> None:
    reading = _reading(timestamp=1_700_000_000, current=0.37, energy=1234.56, power=65535, voltage=0)
    store.append(reading)
    assert store.latest_for("plug-a") == reading


def test_append_without_schema_raises_storage_error() -> None:
    with ReadingStore(":memory:") as store:
        with pytest.raises(StorageError):
            store.append(_reading())


def test_latest_for_without_schema_raises_storage_error() -> None:
    with ReadingStore(":memory:") as store:
        with pytest.raises(StorageError):
            store.latest_for("plug-a")


def test_closed_store_raises_storage_error() -> None:
    store = ReadingStore(":memory:")
    store.ensure_schema()
    store.close()
    with pytest.raises(StorageError):
        store.append(_reading())
    # closing twice is harmless
    store.close()


def test_unopenable_path_raises_storage_error(tmp_path: Path) -> None:
    with pytest.raises(StorageError):
        ReadingStore(tmp_path / "missing-dir" / "zpowergraph.db")
