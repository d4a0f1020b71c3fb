"""SQLite persistence for the metadata cache."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping


class SQLiteRegistryStore:
    """Load and save cache snapshots as rows of a ``records`` table."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS records (
                    path TEXT PRIMARY KEY,
                    size INTEGER NOT NULL,
                    mtime INTEGER NOT NULL,
                    content_hash TEXT NOT NULL,
                    normalized_hash TEXT,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

    def load(self) -> Dict[str, Dict[str, Any]]:
        """Return the stored snapshot as path -> record mapping."""
        rows = self._conn.execute(
            "SELECT path, size, mtime, content_hash, normalized_hash FROM records"
        ).fetchall()
        snapshot: Dict[str, Dict[str, Any]] = {}
        for row in rows:
            entry: Dict[str, Any] = {
                "size": row["size"],
                "mtime": row["mtime"],
                "content_hash": row["content_hash"],
            }
            if row["normalized_hash"] is not None:
                entry["normalized_hash"] = row["normalized_hash"]
            snapshot[row["path"]] = entry
        return snapshot

    def save(self, snapshot: Mapping[str, Mapping[str, Any]]) -> int:
        """Replace all stored records with the snapshot; returns rows written."""
        with self.transaction() as conn:
            conn.execute("DELETE FROM records")
            conn.executemany(
                """
                INSERT INTO records(path, size, mtime, content_hash, normalized_hash)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (
                        path,
                        entry["size"],
                        entry["mtime"],
                        entry["content_hash"],
                        entry.get("normalized_hash"),
                    )
                    for path, entry in snapshot.items()
                ],
            )
        return len(snapshot)

    def clear(self) -> int:
        with self.transaction() as conn:
            removed = conn.execute("DELETE FROM records").rowcount
        return removed

    def count(self) -> int:
        return int(self._conn.execute("SELECT COUNT(*) FROM records").fetchone()[0])
