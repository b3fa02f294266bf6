"""SQLite persistence for power readings.

The store is append-only: rows are inserted and read back, never updated or
deleted.  Row ids increase monotonically, so ``ORDER BY id`` is insertion
order per device.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from types import TracebackType

from zpowergraph.config import DEFAULT_DB_PATH
from zpowergraph.exceptions import ReadingNotFoundError, StorageError
from zpowergraph.models.reading import Reading

_logger = logging.getLogger(__name__)

TABLE_NAME = "device_table"

_CREATE_TABLE = f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        friendly_name TEXT NOT NULL,
        timestamp INTEGER NOT NULL,
        current REAL NOT NULL,
        energy REAL NOT NULL,
        power INTEGER NOT NULL,
        voltage INTEGER NOT NULL
    )
"""

_CREATE_INDEX = f"""
    CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_friendly_name
    ON {TABLE_NAME}(friendly_name, id)
"""

_INSERT = f"""
    INSERT INTO {TABLE_NAME} (friendly_name, timestamp, current, energy, power, voltage)
    VALUES (?, ?, ?, ?, ?, ?)
"""

_SELECT_COLUMNS = "friendly_name, timestamp, current, energy, power, voltage"


def _row_to_reading(row: sqlite3.Row) -> Reading:
    return Reading(
        friendly_name=row["friendly_name"],
        timestamp=row["timestamp"],
        current=float(row["current"]),
        energy=float(row["energy"]),
        power=row["power"],
        voltage=row["voltage"],
    )


class ReadingStore:
    """Single-connection SQLite gateway for :class:`Reading` rows.

    Parameters
    ----------
    path : str or Path
        Database file, created if missing.  ``":memory:"`` gives a private
        in-memory database.
    """

    def __init__(self, path: str | Path = DEFAULT_DB_PATH) -> None:
        self._path = str(path)
        try:
            self._conn: sqlite3.Connection | None = sqlite3.connect(self._path)
        except sqlite3.Error as exc:
            raise StorageError(f"Could not open database {self._path!r}: {exc}") from exc
        self._conn.row_factory = sqlite3.Row
        _logger.debug("Opened database connection path=%s", self._path)

    @property
    def path(self) -> str:
        return self._path

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("ReadingStore is closed")
        return self._conn

    def ensure_schema(self) -> None:
        """Create the readings table and index if absent. Idempotent."""
        conn = self._connection()
        try:
            with conn:
                conn.execute(_CREATE_TABLE)
                conn.execute(_CREATE_INDEX)
        except sqlite3.Error as exc:
            raise StorageError(f"Schema creation failed: {exc}") from exc
        _logger.debug("Ensured table %s exists", TABLE_NAME)

    def append(self, reading: Reading) -> int:
        """Insert *reading* as one row and return its id.

        The insert runs in its own transaction: either every column is
        written or nothing is.
        """
        conn = self._connection()
        values = (
            reading.friendly_name,
            reading.timestamp,
            reading.current,
            reading.energy,
            reading.power,
            reading.voltage,
        )
        try:
            with conn:
                cursor = conn.execute(_INSERT, values)
        except sqlite3.Error as exc:
            raise StorageError(f"Insert failed for device {reading.friendly_name!r}: {exc}") from exc
        row_id = cursor.lastrowid
        _logger.debug("Appended row id=%s device=%s timestamp=%s", row_id, reading.friendly_name, reading.timestamp)
        return int(row_id) if row_id is not None else 0

    def latest_for(self, friendly_name: str) -> Reading:
        """Return the most recently appended reading for *friendly_name*.

        Raises
        ------
        ReadingNotFoundError
            When the device has never reported.
        StorageError
            On any database failure.
        """
        conn = self._connection()
        try:
            row = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM {TABLE_NAME} WHERE friendly_name = ? ORDER BY id DESC LIMIT 1",
                (friendly_name,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Lookup failed for device {friendly_name!r}: {exc}") from exc
        if row is None:
            raise ReadingNotFoundError(friendly_name)
        return _row_to_reading(row)

    def readings_for(self, friendly_name: str) -> list[Reading]:
        """Return every stored reading for *friendly_name* in insertion order."""
        conn = self._connection()
        try:
            rows = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM {TABLE_NAME} WHERE friendly_name = ? ORDER BY id ASC",
                (friendly_name,),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Lookup failed for device {friendly_name!r}: {exc}") from exc
        return [_row_to_reading(row) for row in rows]

    def count(self) -> int:
        conn = self._connection()
        try:
            (total,) = conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Count failed: {exc}") from exc
        return int(total)

    def close(self) -> None:
        conn = self._conn
        self._conn = None
        if conn is not None:
            conn.close()
            _logger.debug("Closed database connection path=%s", self._path)

    def __enter__(self) -> ReadingStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
