"""
===============================================================================
DocumentRepositorySQLite – documents table
-------------------------------------------------------------------------------
Purpose:
    CRUD for the document aggregate plus the list/count queries used by the
    query service. Status writes always carry the signed artifact key so the
    "signed key iff waiting_confirmation/completed" rule is checked in one
    place.
===============================================================================
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .base_sqlite_repo import BaseSQLiteRepo, now_iso, parse_dt
from signinglifecycle.models.document import Document
from signinglifecycle.models.document_status import DocumentStatus
from signinglifecycle.models.file_type import FileType
from signinglifecycle.models.ids import DocumentId, UserId
from signinglifecycle.models.recipient_status import RecipientStatus


class DocumentRepositorySQLite(BaseSQLiteRepo):
    """
    SQLite implementation of the document repository.

    Methods
    -------
    create(...) -> Document
    get(document_id) -> Optional[Document]
    update_status(document_id, status, signed_file_key) -> None
    list_owned(owner_id) / list_visible_to(user_id) -> list[Document]
    """

    def _ensure_schema(self) -> None:
        self.db.executescript(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                original_filename TEXT NOT NULL,
                file_path TEXT NOT NULL,
                signed_file_path TEXT,
                file_type TEXT NOT NULL,
                owner_id INTEGER NOT NULL,
                status TEXT NOT NULL DEFAULT 'draft',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_documents_owner_id ON documents(owner_id);
            CREATE INDEX IF NOT EXISTS idx_documents_status ON documents(status);
            """
        )

    # --------------- mapping --------------- #
    @staticmethod
    def _row_to_model(r: Dict[str, Any]) -> Document:
        return Document(
            id=DocumentId(int(r["id"])),
            title=r["title"],
            original_filename=r["original_filename"],
            original_file_key=r["file_path"],
            file_type=FileType(r["file_type"]),
            owner_id=UserId(int(r["owner_id"])),
            status=DocumentStatus(r["status"]),
            signed_file_key=r["signed_file_path"],
            created_at=parse_dt(r["created_at"]),
            updated_at=parse_dt(r["updated_at"]),
        )

    def _rows(self, query: str, params: Iterable[Any] = ()) -> List[Document]:
        return [self._row_to_model(r) for r in self.db.fetchall(query, list(params))]

    # --------------- READ --------------- #
    def get(self, document_id: int) -> Optional[Document]:
        r = self.db.fetchone("SELECT * FROM documents WHERE id = ?", (document_id,))
        return self._row_to_model(r) if r else None

    def list_owned(self, owner_id: int, *, status: Optional[DocumentStatus] = None) -> List[Document]:
        q = "SELECT * FROM documents WHERE owner_id = ?"
        params: list = [owner_id]
        if status is not None:
            q += " AND status = ?"
            params.append(status.value)
        q += " ORDER BY created_at DESC, id DESC"
        return self._rows(q, params)

    def list_visible_to(self, user_id: int) -> List[Document]:
        """Documents the user owns or is assigned to, newest first."""
        return self._rows(
            """
            SELECT DISTINCT d.* FROM documents d
            LEFT JOIN document_recipients dr ON dr.document_id = d.id
            WHERE d.owner_id = ? OR dr.recipient_id = ?
            ORDER BY d.created_at DESC, d.id DESC
            """,
            (user_id, user_id),
        )

    def list_owned_with_recipient_status(
        self, owner_id: int, document_status: DocumentStatus, recipient_status: RecipientStatus
    ) -> List[Document]:
        """Owner's documents in *document_status* having at least one pair in *recipient_status*."""
        return self._rows(
            """
            SELECT DISTINCT d.* FROM documents d
            JOIN document_recipients dr ON dr.document_id = d.id
            WHERE d.owner_id = ? AND d.status = ? AND dr.status = ?
            ORDER BY d.updated_at DESC, d.id DESC
            """,
            (owner_id, document_status.value, recipient_status.value),
        )

    def count_owned(self, owner_id: int, *, status: Optional[DocumentStatus] = None) -> int:
        q = "SELECT COUNT(*) AS n FROM documents WHERE owner_id = ?"
        params: list = [owner_id]
        if status is not None:
            q += " AND status = ?"
            params.append(status.value)
        row = self.db.fetchone(q, params)
        return int(row["n"]) if row else 0

    def count_owned_with_recipient_status(
        self,
        owner_id: int,
        recipient_statuses: Sequence[RecipientStatus],
        *,
        document_statuses: Sequence[DocumentStatus] = (),
    ) -> int:
        """Distinct owner documents having a pair in *recipient_statuses*."""
        q = f"""
            SELECT COUNT(DISTINCT d.id) AS n FROM documents d
            JOIN document_recipients dr ON dr.document_id = d.id
            WHERE d.owner_id = ? AND dr.status IN ({', '.join('?' for _ in recipient_statuses)})
        """
        params: list = [owner_id, *(RecipientStatus(s).value for s in recipient_statuses)]
        if document_statuses:
            q += f" AND d.status IN ({', '.join('?' for _ in document_statuses)})"
            params += [DocumentStatus(s).value for s in document_statuses]
        row = self.db.fetchone(q, params)
        return int(row["n"]) if row else 0

    # --------------- WRITE --------------- #
    def create(
        self,
        *,
        title: str,
        original_filename: str,
        original_file_key: str,
        file_type: FileType,
        owner_id: int,
    ) -> Document:
        now = now_iso()
        cur = self.db.execute(
            """
            INSERT INTO documents
            (title, original_filename, file_path, signed_file_path, file_type,
             owner_id, status, created_at, updated_at)
            VALUES (?, ?, ?, NULL, ?, ?, ?, ?, ?)
            """,
            (title, original_filename, original_file_key, FileType(file_type).value,
             owner_id, DocumentStatus.DRAFT.value, now, now),
        )
        created = self.get(int(cur.lastrowid))
        assert created is not None
        return created

    def update_status(
        self, document_id: int, status: DocumentStatus, signed_file_key: Optional[str]
    ) -> None:
        """Set status and signed artifact together."""
        status = DocumentStatus(status)
        if status.has_signed_artifact != (signed_file_key is not None):
            raise ValueError(
                f"signed_file_key must be set exactly in waiting_confirmation/completed "
                f"(status={status.value}, key={signed_file_key!r})"
            )
        self.db.execute(
            "UPDATE documents SET status = ?, signed_file_path = ?, updated_at = ? WHERE id = ?",
            (status.value, signed_file_key, now_iso(), document_id),
        )
