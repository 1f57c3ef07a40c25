"""
Key-value store — SQLite-backed JSON values addressed by namespaced keys.

Every logical entity (one problem session, the active-timer pointer, one hint
bundle, one wake trigger) lives under its own key, so a read/modify/write only
ever touches the entity it is about.
"""

from __future__ import annotations

import copy
import json
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Tuple


class StorageError(RuntimeError):
    """Raised when the backing database cannot be read or written."""


class KeyValueStore:
    """Thread-safe SQLite-backed key-value store."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._init_db()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        with self._conn() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return json.loads(row[0]) if row else default

    def scan(self, prefix: str) -> Dict[str, Any]:
        """Return every entry whose key starts with *prefix*, ordered by key."""
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT key, value FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
        return {k: json.loads(v) for k, v in rows}

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def put(self, key: str, value: Any) -> None:
        with self._conn() as conn:
            self._write(conn, key, value)

    def delete(self, key: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            return cur.rowcount > 0

    def delete_prefix(self, prefix: str) -> int:
        with self._conn() as conn:
            cur = conn.execute(
                "DELETE FROM kv WHERE substr(key, 1, ?) = ?", (len(prefix), prefix)
            )
            return cur.rowcount

    def update(
        self, key: str, fn: Callable[[Any], Any], default: Any = None
    ) -> Tuple[Any, Any]:
        """
        Read *key*, apply *fn* to its value and write the result back inside a
        single immediate transaction. Returns ``(old, new)``.

        If *fn* returns None the key is deleted.
        """
        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            old = json.loads(row[0]) if row else default
            # fn may mutate its argument; hand it a separate copy of the value
            new = fn(json.loads(row[0]) if row else copy.deepcopy(default))
            if new is None:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            else:
                self._write(conn, key, new)
        return old, new

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _write(conn: sqlite3.Connection, key: str, value: Any) -> None:
        conn.execute(
            """
            INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, json.dumps(value), time.time()),
        )

    def _init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key        TEXT PRIMARY KEY,
                    value      TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(
                str(self.db_path), check_same_thread=False, isolation_level=None
            )
        except sqlite3.Error as e:
            raise StorageError(f"cannot open {self.db_path}: {e}") from e
        try:
            yield conn
            if conn.in_transaction:
                conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StorageError(str(e)) from e
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()
