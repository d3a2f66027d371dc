"""
core/common/db_interface.py
===========================

Shared SQLite helpers for the signing core.

All repositories of one application share a single :class:`SQLiteDatabase`.
Writes go through :meth:`SQLiteDatabase.transaction`, which opens an
``IMMEDIATE`` transaction so that concurrent writers are serialized by SQLite
itself; nested ``transaction()`` blocks join the outer one.
"""
from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence


def create_sqlite_connection(
    db_path: Path | str,
    *,
    check_same_thread: bool = False,
    foreign_keys: bool = False,
) -> sqlite3.Connection:
    """Create a sqlite3 connection with common defaults (autocommit mode, Row factory)."""
    conn = sqlite3.connect(str(db_path), check_same_thread=check_same_thread, isolation_level=None)
    conn.row_factory = sqlite3.Row
    if foreign_keys:
        conn.execute("PRAGMA foreign_keys = ON")
    return conn


class SQLiteDatabase:
    """Shared connection with re-entrant, thread-safe transactions."""

    def __init__(self, db_path: Path | str, *, foreign_keys: bool = True) -> None:
        self._db_path = Path(db_path)
        self._foreign_keys = foreign_keys
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._depth = 0

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the shared connection; create it (and its directory) on first use."""
        if self._conn is None:
            with self._lock:
                if self._conn is None:
                    if str(self._db_path) != ":memory:":
                        self._db_path.parent.mkdir(parents=True, exist_ok=True)
                    self._conn = create_sqlite_connection(
                        self._db_path,
                        check_same_thread=False,
                        foreign_keys=self._foreign_keys,
                    )
        return self._conn

    # ------------------------------------------------------------------ #
    #  Transactions                                                      #
    # ------------------------------------------------------------------ #
    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run the block inside one write transaction.

        The outermost block issues ``BEGIN IMMEDIATE`` and commits on success or
        rolls back on any exception; inner blocks simply join it.
        """
        with self._lock:
            conn = self.conn
            outermost = self._depth == 0
            if outermost:
                conn.execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield conn
            except BaseException:
                self._depth -= 1
                if outermost:
                    conn.execute("ROLLBACK")
                raise
            else:
                self._depth -= 1
                if outermost:
                    conn.execute("COMMIT")

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    # ------------------------------------------------------------------ #
    #  Statement helpers                                                 #
    # ------------------------------------------------------------------ #
    def execute(self, query: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        with self._lock:
            return self.conn.execute(query, tuple(params))

    def executemany(self, query: str, rows: Sequence[Sequence[Any]]) -> None:
        with self._lock:
            self.conn.executemany(query, [tuple(r) for r in rows])

    def executescript(self, script: str) -> None:
        with self._lock:
            self.conn.executescript(script)

    def fetchone(self, query: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self.conn.execute(query, tuple(params)).fetchone()
        return dict(row) if row else None

    def fetchall(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self.conn.execute(query, tuple(params)).fetchall()
        return [dict(r) for r in rows]

    def close(self) -> None:
        """Close the connection if present; next access to ``conn`` recreates it."""
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                finally:
                    self._conn = None
