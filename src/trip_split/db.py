"""SQLite-backed key-value store for TripSplit."""

import sqlite3
from datetime import datetime
from pathlib import Path

from .exceptions import StoreError
from .store import KeyValueTripStore


class Database(KeyValueTripStore):
    """SQLite database manager holding the store's JSON blobs."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    # ========================================================================
    # Key-value operations
    # ========================================================================

    def _read(self, key: str) -> str | None:
        """Get a raw value by key."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = cursor.fetchone()
        return str(row["value"]) if row else None

    def _write(self, key: str, value: str) -> None:
        """Set a raw value."""
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, datetime.now().isoformat()),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to write '{key}': {e}") from e

    def keys(self) -> list[str]:
        """All stored keys, oldest update first."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT key FROM kv_store ORDER BY updated_at, key")
        return [row["key"] for row in cursor.fetchall()]
