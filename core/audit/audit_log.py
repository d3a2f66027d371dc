"""
core/audit/audit_log.py
=======================

SQLite-backed audit trail (table ``audit_logs``).

Entries are written through the shared :class:`SQLiteDatabase`, so an entry
recorded inside a lifecycle transaction is committed or rolled back together
with the change it describes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from core.common.db_interface import SQLiteDatabase
from core.contracts.audit import AuditAction, IAuditLog


@dataclass(frozen=True)
class AuditEntry:
    id: int
    created_at: datetime          # always UTC
    action: AuditAction
    user_id: Optional[int]
    document_id: Optional[int]
    details: Dict[str, Any]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AuditEntry":
        return cls(
            id=int(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            action=AuditAction(row["action"]),
            user_id=row["user_id"],
            document_id=row["document_id"],
            details=json.loads(row["details"]) if row["details"] else {},
        )


class AuditLog(IAuditLog):
    """Append-only audit trail with simple filtered queries."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db
        self._ensure_schema()

    def record(
        self,
        action: AuditAction,
        *,
        user_id: Optional[int],
        document_id: Optional[int] = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        self._db.execute(
            """
            INSERT INTO audit_logs (user_id, document_id, action, details, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                user_id,
                document_id,
                AuditAction(action).value,
                json.dumps(dict(details or {}), default=str, sort_keys=True),
                datetime.now(timezone.utc).isoformat(),
            ),
        )

    def query(
        self,
        *,
        document_id: Optional[int] = None,
        user_id: Optional[int] = None,
        action: Optional[AuditAction] = None,
        limit: int = 100,
    ) -> List[AuditEntry]:
        """Return matching entries, newest first."""
        query = "SELECT * FROM audit_logs WHERE 1=1"
        params: list[object] = []

        if document_id is not None:
            query += " AND document_id = ?"
            params.append(document_id)
        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)
        if action is not None:
            query += " AND action = ?"
            params.append(AuditAction(action).value)

        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)
        return [AuditEntry.from_row(r) for r in self._db.fetchall(query, params)]

    def _ensure_schema(self) -> None:
        self._db.executescript(
            """
            CREATE TABLE IF NOT EXISTS audit_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER,
                document_id INTEGER,
                action TEXT NOT NULL,
                details TEXT,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_audit_logs_document_id ON audit_logs(document_id);
            CREATE INDEX IF NOT EXISTS idx_audit_logs_user_id ON audit_logs(user_id);
            """
        )
