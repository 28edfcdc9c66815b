import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from trackheat.core.sample import LocationSample
from trackheat.errors import StoreError

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS locations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        latitude REAL NOT NULL,
        longitude REAL NOT NULL,
        timestamp TEXT NOT NULL,
        accuracy REAL
    )
"""


class LocationStore:
    """
    SQLite-backed, append-only store of location samples.

    Supports exactly three mutations of the aggregate: append one sample,
    read all of them, and remove all of them. Each operation runs under a
    single lock so concurrent readers never see a half-applied write.
    AUTOINCREMENT guarantees ids are never handed out twice, even after
    the table has been cleared.
    """

    def __init__(self, db_path: str | Path = MEMORY):
        """
        Args:
            db_path: Path to the database file, or ":memory:" for a
                     throwaway in-memory database.
        """
        self.db_path = str(db_path)
        if self.db_path != MEMORY:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            with self._conn:
                self._conn.execute(_SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open location database at {self.db_path}: {e}") from e

        logger.debug("Opened location store at %s", self.db_path)

    def __enter__(self) -> "LocationStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def append(self, sample: LocationSample) -> int:
        """
        Persists a sample and returns the id assigned to it.
        """
        with self._lock:
            try:
                with self._conn:
                    cursor = self._conn.execute(
                        "INSERT INTO locations (latitude, longitude, timestamp, accuracy) VALUES (?, ?, ?, ?)",
                        (sample.latitude, sample.longitude, sample.timestamp.isoformat(), sample.accuracy),
                    )
            except sqlite3.Error as e:
                raise StoreError(f"Failed to save location: {e}") from e

        sample_id = cursor.lastrowid
        logger.debug("Stored sample #%d (%.6f, %.6f)", sample_id, sample.latitude, sample.longitude)
        return sample_id

    def all(self) -> list[LocationSample]:
        """
        Returns every stored sample in insertion order.
        """
        with self._lock:
            try:
                rows = self._conn.execute(
                    "SELECT id, latitude, longitude, timestamp, accuracy FROM locations ORDER BY id"
                ).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to load locations: {e}") from e

        return [
            LocationSample(
                latitude=row["latitude"],
                longitude=row["longitude"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
                accuracy=row["accuracy"],
                id=row["id"],
            )
            for row in rows
        ]

    def clear(self) -> int:
        """
        Deletes every stored sample and returns how many were removed.
        """
        with self._lock:
            try:
                with self._conn:
                    cursor = self._conn.execute("DELETE FROM locations")
            except sqlite3.Error as e:
                raise StoreError(f"Failed to clear locations: {e}") from e

        logger.info("Cleared %d stored locations", cursor.rowcount)
        return cursor.rowcount

    def count(self) -> int:
        with self._lock:
            try:
                return self._conn.execute("SELECT COUNT(*) FROM locations").fetchone()[0]
            except sqlite3.Error as e:
                raise StoreError(f"Failed to count locations: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()
