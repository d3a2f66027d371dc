"""
===============================================================================
AssignmentRepositorySQLite – document_recipients table
-------------------------------------------------------------------------------
Purpose:
    Persist (document, recipient) pairs. The UNIQUE(document_id, recipient_id)
    constraint together with ON CONFLICT ... DO UPDATE makes assignment an
    idempotent upsert, also under concurrent callers.
===============================================================================
"""
from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from .base_sqlite_repo import BaseSQLiteRepo, now_iso, parse_date, parse_dt
from signinglifecycle.models.ids import DocumentId, UserId
from signinglifecycle.models.recipient_assignment import RecipientAssignment
from signinglifecycle.models.recipient_status import RecipientStatus


class AssignmentRepositorySQLite(BaseSQLiteRepo):
    """SQLite implementation of the recipient assignment repository."""

    def _ensure_schema(self) -> None:
        self.db.executescript(
            """
            CREATE TABLE IF NOT EXISTS document_recipients (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                document_id INTEGER NOT NULL,
                recipient_id INTEGER NOT NULL,
                recipient_email TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                due_date TEXT,
                signed_at TEXT,
                revision_note TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE (document_id, recipient_id),
                FOREIGN KEY (document_id) REFERENCES documents(id) ON DELETE CASCADE
            );
            CREATE INDEX IF NOT EXISTS idx_document_recipients_recipient_id
                ON document_recipients(recipient_id);
            """
        )

    # --------------- mapping --------------- #
    @staticmethod
    def _row_to_model(r: Dict[str, Any]) -> RecipientAssignment:
        return RecipientAssignment(
            document_id=DocumentId(int(r["document_id"])),
            recipient_id=UserId(int(r["recipient_id"])),
            recipient_email=r["recipient_email"],
            status=RecipientStatus(r["status"]),
            due_date=parse_date(r["due_date"]),
            signed_at=parse_dt(r["signed_at"]),
            revision_note=r["revision_note"],
            created_at=parse_dt(r["created_at"]),
            updated_at=parse_dt(r["updated_at"]),
        )

    # --------------- READ --------------- #
    def get(self, document_id: int, recipient_id: int) -> Optional[RecipientAssignment]:
        r = self.db.fetchone(
            "SELECT * FROM document_recipients WHERE document_id = ? AND recipient_id = ?",
            (document_id, recipient_id),
        )
        return self._row_to_model(r) if r else None

    def list_for_document(self, document_id: int) -> List[RecipientAssignment]:
        rows = self.db.fetchall(
            "SELECT * FROM document_recipients WHERE document_id = ? ORDER BY id",
            (document_id,),
        )
        return [self._row_to_model(r) for r in rows]

    def list_for_recipient(
        self, recipient_id: int, *, statuses: Optional[Sequence[RecipientStatus]] = None
    ) -> List[RecipientAssignment]:
        q = "SELECT * FROM document_recipients WHERE recipient_id = ?"
        params: list = [recipient_id]
        if statuses:
            q += f" AND status IN ({', '.join('?' for _ in statuses)})"
            params += [RecipientStatus(s).value for s in statuses]
        q += " ORDER BY created_at DESC, id DESC"
        return [self._row_to_model(r) for r in self.db.fetchall(q, params)]

    def latest_signed(self, document_id: int) -> Optional[RecipientAssignment]:
        r = self.db.fetchone(
            """
            SELECT * FROM document_recipients
            WHERE document_id = ? AND status = ?
            ORDER BY signed_at DESC, id DESC LIMIT 1
            """,
            (document_id, RecipientStatus.SIGNED.value),
        )
        return self._row_to_model(r) if r else None

    def count_by_status(self, document_id: int, statuses: Sequence[RecipientStatus]) -> int:
        row = self.db.fetchone(
            f"""
            SELECT COUNT(*) AS n FROM document_recipients
            WHERE document_id = ? AND status IN ({', '.join('?' for _ in statuses)})
            """,
            [document_id, *(RecipientStatus(s).value for s in statuses)],
        )
        return int(row["n"]) if row else 0

    def count_for_recipient(self, recipient_id: int, status: RecipientStatus) -> int:
        row = self.db.fetchone(
            "SELECT COUNT(*) AS n FROM document_recipients WHERE recipient_id = ? AND status = ?",
            (recipient_id, RecipientStatus(status).value),
        )
        return int(row["n"]) if row else 0

    # --------------- WRITE --------------- #
    def upsert(
        self, document_id: int, recipient_id: int, recipient_email: str, due_date: Optional[date]
    ) -> None:
        """Insert a pending pair or reset an existing one to pending."""
        now = now_iso()
        self.db.execute(
            """
            INSERT INTO document_recipients
                (document_id, recipient_id, recipient_email, status, due_date,
                 signed_at, revision_note, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, NULL, NULL, ?, ?)
            ON CONFLICT (document_id, recipient_id) DO UPDATE SET
                recipient_email = excluded.recipient_email,
                status = excluded.status,
                due_date = excluded.due_date,
                signed_at = NULL,
                revision_note = NULL,
                updated_at = excluded.updated_at
            """,
            (document_id, recipient_id, recipient_email, RecipientStatus.PENDING.value,
             due_date.isoformat() if due_date else None, now, now),
        )

    def update_status(
        self,
        document_id: int,
        recipient_id: int,
        status: RecipientStatus,
        *,
        signed_at: Optional[datetime] = None,
        revision_note: Optional[str] = None,
    ) -> None:
        """Write status, signed_at and revision_note together."""
        self.db.execute(
            """
            UPDATE document_recipients
            SET status = ?, signed_at = ?, revision_note = ?, updated_at = ?
            WHERE document_id = ? AND recipient_id = ?
            """,
            (RecipientStatus(status).value,
             signed_at.isoformat() if signed_at else None,
             revision_note, now_iso(), document_id, recipient_id),
        )
