"""SQLite-backed thesis store.

Each transaction owns its own connection to a WAL-mode database file:
- Read transactions use a deferred BEGIN and see a stable snapshot while
  writers proceed.
- Write transactions use BEGIN IMMEDIATE so that writers are serialized and
  each one observes a consistent snapshot for its whole duration.

Theses are stored as JSON documents keyed by their 16-byte id. Aliases,
tags and mentions live in side tables that serve as secondary indexes.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from thesisgraph.errors import StoreFailure
from thesisgraph.identity import ThesisId, encode
from thesisgraph.store.base import GraphStore
from thesisgraph.thesis import Thesis

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS theses (
    id BLOB PRIMARY KEY,
    document TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS aliases (
    alias TEXT PRIMARY KEY,
    thesis_id BLOB NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS tags (
    thesis_id BLOB NOT NULL,
    tag TEXT NOT NULL,
    PRIMARY KEY (thesis_id, tag)
);
CREATE INDEX IF NOT EXISTS tags_by_tag ON tags (tag);
CREATE TABLE IF NOT EXISTS mentions (
    thesis_id BLOB NOT NULL,
    mentioned_id BLOB NOT NULL,
    PRIMARY KEY (thesis_id, mentioned_id)
);
CREATE INDEX IF NOT EXISTS mentions_by_mentioned ON mentions (mentioned_id);
"""


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Re-raise sqlite3 errors as StoreFailure."""
    try:
        yield
    except sqlite3.Error as e:
        raise StoreFailure(f"Can not {action}: {e}") from e


class SQLiteReadTransaction:
    """Snapshot-isolated read transaction over one connection."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn
        self._closed = False

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if self._closed:
            raise StoreFailure("Transaction is already finished")
        return self._conn.execute(sql, params)

    def get(self, thesis_id: ThesisId) -> Thesis | None:
        with _store_errors(f"load thesis {encode(thesis_id)}"):
            row = self._execute(
                "SELECT document FROM theses WHERE id = ?", (thesis_id.value,)
            ).fetchone()
        if row is None:
            return None
        return Thesis.from_document(thesis_id, json.loads(row[0]))

    def contains(self, thesis_id: ThesisId) -> bool:
        with _store_errors(f"look up thesis {encode(thesis_id)}"):
            row = self._execute(
                "SELECT 1 FROM theses WHERE id = ?", (thesis_id.value,)
            ).fetchone()
        return row is not None

    def find_by_alias(self, alias: str) -> ThesisId | None:
        with _store_errors(f"look up alias {alias!r}"):
            row = self._execute(
                "SELECT thesis_id FROM aliases WHERE alias = ?", (alias,)
            ).fetchone()
        return ThesisId(bytes(row[0])) if row else None

    def find_by_tag(self, tag: str) -> set[ThesisId]:
        with _store_errors(f"look up tag {tag!r}"):
            rows = self._execute("SELECT thesis_id FROM tags WHERE tag = ?", (tag,)).fetchall()
        return {ThesisId(bytes(row[0])) for row in rows}

    def find_mentioning(self, thesis_id: ThesisId) -> set[ThesisId]:
        with _store_errors(f"look up mentions of {encode(thesis_id)}"):
            rows = self._execute(
                "SELECT thesis_id FROM mentions WHERE mentioned_id = ?", (thesis_id.value,)
            ).fetchall()
        return {ThesisId(bytes(row[0])) for row in rows}

    def all(self) -> Iterator[Thesis]:
        with _store_errors("list theses"):
            cursor = self._execute("SELECT id, document FROM theses ORDER BY id")
        while True:
            with _store_errors("list theses"):
                row = cursor.fetchone()
            if row is None:
                return
            yield Thesis.from_document(ThesisId(bytes(row[0])), json.loads(row[1]))

    def _finish(self, statement: str) -> None:
        if self._closed:
            return
        try:
            with _store_errors(f"{statement.lower()} transaction"):
                self._conn.execute(statement)
        finally:
            self._closed = True
            self._conn.close()

    def commit(self) -> None:
        if self._closed:
            raise StoreFailure("Can not commit a finished transaction")
        self._finish("COMMIT")
        logger.debug("Committed transaction")

    def abort(self) -> None:
        if not self._closed:
            self._finish("ROLLBACK")
            logger.debug("Aborted transaction")


class SQLiteWriteTransaction(SQLiteReadTransaction):
    """Write transaction holding the database's reserved lock."""

    def put(self, thesis: Thesis) -> None:
        thesis_id = thesis.id
        key = thesis_id.value
        document = json.dumps(thesis.to_document(), ensure_ascii=False, sort_keys=True)
        with _store_errors(f"store thesis {encode(thesis_id)}"):
            self._execute(
                "INSERT INTO theses (id, document) VALUES (?, ?) "
                "ON CONFLICT (id) DO UPDATE SET document = excluded.document",
                (key, document),
            )
            self._execute("DELETE FROM aliases WHERE thesis_id = ?", (key,))
            if thesis.alias is not None:
                self._execute(
                    "INSERT INTO aliases (alias, thesis_id) VALUES (?, ?)", (thesis.alias, key)
                )
            self._execute("DELETE FROM tags WHERE thesis_id = ?", (key,))
            for tag in sorted(thesis.tags):
                self._execute("INSERT INTO tags (thesis_id, tag) VALUES (?, ?)", (key, tag))
            for mentioned in thesis.mentions():
                self._execute(
                    "INSERT OR IGNORE INTO mentions (thesis_id, mentioned_id) VALUES (?, ?)",
                    (key, mentioned.value),
                )

    def delete(self, thesis_id: ThesisId) -> None:
        key = thesis_id.value
        with _store_errors(f"delete thesis {encode(thesis_id)}"):
            self._execute("DELETE FROM aliases WHERE thesis_id = ?", (key,))
            self._execute("DELETE FROM tags WHERE thesis_id = ?", (key,))
            self._execute("DELETE FROM mentions WHERE thesis_id = ?", (key,))
            self._execute("DELETE FROM theses WHERE id = ?", (key,))


class SQLiteGraphStore(GraphStore):
    """Thesis store in a single SQLite database file.

    Parameters:
        path: Database file path; parent directories are created.
        busy_timeout: Milliseconds a writer waits for the write lock.
    """

    def __init__(self, path: str | Path, busy_timeout: int = 5000):
        self.path = Path(path)
        self.busy_timeout = busy_timeout
        with _store_errors(f"initialize database {self.path}"):
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._connect()
            try:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.executescript(SCHEMA)
            finally:
                conn.close()
        logger.debug(f"SQLite store ready: {self.path}")

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly
        conn = sqlite3.connect(
            str(self.path), timeout=self.busy_timeout / 1000, isolation_level=None
        )
        conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout)}")
        return conn

    def begin_read(self) -> SQLiteReadTransaction:
        with _store_errors("begin read transaction"):
            conn = self._connect()
            try:
                conn.execute("BEGIN")
                # First read pins the snapshot
                conn.execute("SELECT count(*) FROM theses").fetchone()
            except sqlite3.Error:
                conn.close()
                raise
        logger.debug("Began read transaction")
        return SQLiteReadTransaction(conn)

    def begin_write(self) -> SQLiteWriteTransaction:
        with _store_errors("begin write transaction"):
            conn = self._connect()
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error:
                conn.close()
                raise
        logger.debug("Began write transaction")
        return SQLiteWriteTransaction(conn)


__all__ = ["SQLiteGraphStore", "SQLiteReadTransaction", "SQLiteWriteTransaction"]
