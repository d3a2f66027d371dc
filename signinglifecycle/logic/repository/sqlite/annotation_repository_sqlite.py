"""
===============================================================================
AnnotationRepositorySQLite – text_fields and signatures tables
-------------------------------------------------------------------------------
Purpose:
    Store the draft and final annotation sets per (document, recipient). A
    write always replaces the whole set of one kind; there is no partial
    update.
===============================================================================
"""
from __future__ import annotations
import dataclasses
from typing import Any, Dict, List, Optional, Sequence

from .base_sqlite_repo import BaseSQLiteRepo, now_iso
from stamping.models.annotation import AnnotationSet, SignatureField, TextField


class AnnotationRepositorySQLite(BaseSQLiteRepo):
    """SQLite implementation of the annotation repository."""

    def _ensure_schema(self) -> None:
        self.db.executescript(
            """
            CREATE TABLE IF NOT EXISTS text_fields (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                document_id INTEGER NOT NULL,
                recipient_id INTEGER NOT NULL,
                page_number INTEGER NOT NULL,
                x_coordinate REAL NOT NULL,
                y_coordinate REAL NOT NULL,
                width REAL NOT NULL,
                height REAL NOT NULL,
                text_content TEXT NOT NULL,
                font_size REAL NOT NULL DEFAULT 12,
                is_draft INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                FOREIGN KEY (document_id) REFERENCES documents(id) ON DELETE CASCADE
            );
            CREATE TABLE IF NOT EXISTS signatures (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                document_id INTEGER NOT NULL,
                recipient_id INTEGER NOT NULL,
                page_number INTEGER NOT NULL,
                x_coordinate REAL NOT NULL,
                y_coordinate REAL NOT NULL,
                width REAL NOT NULL,
                height REAL NOT NULL,
                signature_image_path TEXT NOT NULL,
                is_draft INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                FOREIGN KEY (document_id) REFERENCES documents(id) ON DELETE CASCADE
            );
            CREATE INDEX IF NOT EXISTS idx_text_fields_pair
                ON text_fields(document_id, recipient_id, is_draft);
            CREATE INDEX IF NOT EXISTS idx_signatures_pair
                ON signatures(document_id, recipient_id, is_draft);
            """
        )

    # --------------- mapping --------------- #
    @staticmethod
    def _text_from_row(r: Dict[str, Any]) -> TextField:
        return dataclasses.replace(TextField.from_payload(r, recipient_id=int(r["recipient_id"])), id=int(r["id"]))

    @staticmethod
    def _signature_from_row(r: Dict[str, Any]) -> SignatureField:
        return dataclasses.replace(SignatureField.from_payload(r, recipient_id=int(r["recipient_id"])), id=int(r["id"]))

    def _load(self, where: str, params: Sequence[Any]) -> AnnotationSet:
        texts = self.db.fetchall(
            f"SELECT * FROM text_fields WHERE {where} ORDER BY recipient_id, id", params
        )
        sigs = self.db.fetchall(
            f"SELECT * FROM signatures WHERE {where} ORDER BY recipient_id, id", params
        )
        return AnnotationSet(
            text_fields=tuple(self._text_from_row(r) for r in texts),
            signatures=tuple(self._signature_from_row(r) for r in sigs),
        )

    # --------------- READ --------------- #
    def load(self, document_id: int, recipient_id: int, *, is_draft: bool) -> AnnotationSet:
        return self._load(
            "document_id = ? AND recipient_id = ? AND is_draft = ?",
            (document_id, recipient_id, int(is_draft)),
        )

    def load_all_final(self, document_id: int, *, exclude_recipient: Optional[int] = None) -> AnnotationSet:
        """Every final annotation of the document, ordered by recipient then creation."""
        if exclude_recipient is None:
            return self._load("document_id = ? AND is_draft = 0", (document_id,))
        return self._load(
            "document_id = ? AND is_draft = 0 AND recipient_id <> ?",
            (document_id, exclude_recipient),
        )

    # --------------- WRITE --------------- #
    def replace(
        self,
        document_id: int,
        recipient_id: int,
        *,
        is_draft: bool,
        text_fields: Sequence[TextField],
        signatures: Sequence[SignatureField],
    ) -> None:
        """Replace the set of one kind for the pair; callers wrap this in a transaction."""
        flag = int(is_draft)
        now = now_iso()
        with self.db.transaction():
            self.db.execute(
                "DELETE FROM text_fields WHERE document_id = ? AND recipient_id = ? AND is_draft = ?",
                (document_id, recipient_id, flag),
            )
            self.db.execute(
                "DELETE FROM signatures WHERE document_id = ? AND recipient_id = ? AND is_draft = ?",
                (document_id, recipient_id, flag),
            )
            self.db.executemany(
                """
                INSERT INTO text_fields
                (document_id, recipient_id, page_number, x_coordinate, y_coordinate,
                 width, height, text_content, font_size, is_draft, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [(document_id, recipient_id, t.page_number, t.x, t.y, t.width, t.height,
                  t.text_content, t.font_size, flag, now) for t in text_fields],
            )
            self.db.executemany(
                """
                INSERT INTO signatures
                (document_id, recipient_id, page_number, x_coordinate, y_coordinate,
                 width, height, signature_image_path, is_draft, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [(document_id, recipient_id, s.page_number, s.x, s.y, s.width, s.height,
                  s.image_key, flag, now) for s in signatures],
            )
