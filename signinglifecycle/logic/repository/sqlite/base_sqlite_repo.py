"""
===============================================================================
Base SQLite Repository – shared database handle
-------------------------------------------------------------------------------
Purpose:
    Give every repository of the signing lifecycle the same SQLiteDatabase so
    that several repositories can take part in one transaction opened by the
    lifecycle controller.

Notes:
    - Timestamps are stored as ISO-8601 strings in UTC.
    - Each child repository creates its own tables (CREATE TABLE IF NOT EXISTS).
===============================================================================
"""
from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Optional

from core.common.db_interface import SQLiteDatabase


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_dt(txt: Optional[str]) -> Optional[datetime]:
    if not txt:
        return None
    try:
        dt = datetime.fromisoformat(txt)
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def parse_date(txt: Optional[str]) -> Optional[date]:
    if not txt:
        return None
    try:
        return date.fromisoformat(txt[:10])
    except ValueError:
        return None


class BaseSQLiteRepo:
    """
    Thin base sharing the database handle across SQLite repositories.

    Properties
    ----------
    db : SQLiteDatabase
        Shared database; use ``db.transaction()`` for multi-statement writes.
    """

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db
        self._ensure_schema()

    @property
    def db(self) -> SQLiteDatabase:
        return self._db

    def _ensure_schema(self) -> None:
        """Create the tables owned by this repository."""
