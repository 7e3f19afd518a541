"""
SQLite-backed document store for combos.

Each combo is kept as a single row whose ``frames`` column holds the
JSON-encoded list of board snapshots, so the table behaves like a
document collection: the store assigns the identifier and creation
timestamp, and callers read and write plain dictionaries.

A ``ComboStore`` is constructed explicitly and handed to the
repository; nothing here is process-global.  Every operation opens its
own connection and closes it afterwards, which keeps the store safe to
share between concurrent requests served from the thread pool.
"""

import json
import logging
import os
import re
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .exceptions import StoreError

logger = logging.getLogger(__name__)

SQLITE_URL_PREFIX = "sqlite:///"

IDENTIFIER_RE = re.compile(r"^[0-9a-f]{32}$")

SCHEMA = """
CREATE TABLE IF NOT EXISTS combos (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    author TEXT NOT NULL,
    frames TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_combos_created_at ON combos (created_at);
"""


def resolve_database_path(database_url: str) -> str:
    """Turn a connection string into a SQLite file path.

    Accepts ``sqlite:///relative.db``, ``sqlite:////abs/path.db`` or a
    bare path.  Relative paths are resolved against the package root.
    """
    path = database_url
    if path.startswith(SQLITE_URL_PREFIX):
        path = path[len(SQLITE_URL_PREFIX):]
    if os.path.isabs(path):
        return path
    base_dir = Path(__file__).resolve().parent.parent.parent  # tacboard_api/
    return str((base_dir / path).resolve())


class ComboStore:
    """Document collection holding combo records."""

    def __init__(self, database_url: Optional[str]) -> None:
        self.database_url = database_url
        self._database_path: Optional[str] = None

    @property
    def available(self) -> bool:
        return self._database_path is not None

    def connect(self) -> bool:
        """Open the database and make sure the ``combos`` table exists.

        Never raises: a missing connection string or an unreachable
        database is logged and leaves the store unavailable, so the API
        can still start and serve the front-end.  Subsequent operations
        then fail with :class:`StoreError`.
        """
        if self.available:
            return True
        if not self.database_url:
            logger.warning(
                "DATABASE_URL is not set. Starting without a database; saving combos will not work."
            )
            return False
        path = resolve_database_path(self.database_url)
        try:
            conn = sqlite3.connect(path)
            try:
                conn.executescript(SCHEMA)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.error("Database connection failed: %s", exc)
            return False
        self._database_path = path
        logger.info("Connected to combo store at %s", path)
        return True

    def get_connection(self) -> sqlite3.Connection:
        """Create and return a new SQLite connection.

        Rows come back as ``sqlite3.Row`` so columns can be read by name.
        """
        if self._database_path is None:
            raise StoreError("Combo store is not connected")
        try:
            conn = sqlite3.connect(self._database_path)
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor, commit on success and always close the connection."""
        conn = self.get_connection()
        try:
            yield conn.cursor()
            conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Persist a new document, assigning ``id`` and ``created_at``."""
        stored = {
            "id": uuid.uuid4().hex,
            "name": document["name"],
            "author": document["author"],
            "frames": document["frames"],
            "created_at": datetime.now(timezone.utc),
        }
        try:
            frames_json = json.dumps(stored["frames"])
        except (TypeError, ValueError) as exc:
            raise StoreError(f"Frames are not JSON serialisable: {exc}") from exc
        with self.cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO combos (id, name, author, frames, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    stored["id"],
                    stored["name"],
                    stored["author"],
                    frames_json,
                    stored["created_at"].isoformat(timespec="microseconds"),
                ),
            )
        return stored

    def find_all(self) -> List[Dict[str, Any]]:
        """Return every document, most recently created first."""
        with self.cursor() as cursor:
            rows = cursor.execute(
                "SELECT * FROM combos ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def delete_by_id(self, identifier: str) -> int:
        """Delete the document with ``identifier`` and return the number removed.

        A missing document is not an error.  Identifiers that could never
        have been issued by this store are rejected.
        """
        if not isinstance(identifier, str) or not IDENTIFIER_RE.match(identifier):
            raise StoreError(f"Malformed combo identifier: {identifier!r}")
        with self.cursor() as cursor:
            cursor.execute("DELETE FROM combos WHERE id = ?", (identifier,))
            return cursor.rowcount

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Dict[str, Any]:
        try:
            frames = json.loads(row["frames"])
        except (TypeError, json.JSONDecodeError) as exc:
            raise StoreError(f"Corrupted frames for combo {row['id']}") from exc
        return {
            "id": row["id"],
            "name": row["name"],
            "author": row["author"],
            "frames": frames,
            "created_at": datetime.fromisoformat(row["created_at"]),
        }
