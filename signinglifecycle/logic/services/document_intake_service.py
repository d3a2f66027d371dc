"""
===============================================================================
DocumentIntakeService – register documents and signature images
-------------------------------------------------------------------------------
Purpose:
    Validate uploads (extension + size), convert Word files to PDF, store the
    bytes in the blob store and create the document row in DRAFT.

Rules:
    - Documents: .pdf, .doc, .docx up to Storage.max_file_size; management only.
    - Signature images: .png, .jpg, .jpeg up to Storage.max_signature_size.
===============================================================================
"""
from __future__ import annotations
import logging
from io import BytesIO
from pathlib import PurePath

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from core.common.db_interface import SQLiteDatabase
from core.common.errors import UploadRejected
from core.config.config_service import StorageConfig
from core.contracts.audit import AuditAction, IAuditLog
from core.contracts.blob_store import IBlobStore
from core.contracts.identity import Identity
from signinglifecycle.logic.policy.access_policy import AccessPolicy
from signinglifecycle.logic.repository.sqlite.document_repository_sqlite import DocumentRepositorySQLite
from signinglifecycle.logic.services.word_to_pdf_service import WordToPdfService
from signinglifecycle.models.document import Document
from signinglifecycle.models.file_type import FileType

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = {"pdf": FileType.PDF, "doc": FileType.WORD, "docx": FileType.WORD}
SIGNATURE_EXTENSIONS = {"png", "jpg", "jpeg"}

ORIGINALS_AREA = "originals"
SIGNATURES_AREA = "signatures"


def file_extension(filename: str) -> str:
    return PurePath(filename or "").suffix.lower().lstrip(".")


class DocumentIntakeService:
    """Entry point for new documents and signature images."""

    def __init__(
        self,
        db: SQLiteDatabase,
        documents: DocumentRepositorySQLite,
        blobs: IBlobStore,
        audit: IAuditLog,
        storage: StorageConfig,
        *,
        converter: WordToPdfService | None = None,
        access: AccessPolicy | None = None,
    ) -> None:
        self._db = db
        self._documents = documents
        self._blobs = blobs
        self._audit = audit
        self._storage = storage
        self._converter = converter or WordToPdfService()
        self._access = access or AccessPolicy()

    # ------------------------------------------------------------------ #
    def register_document(self, identity: Identity, title: str, filename: str, content: bytes) -> Document:
        """Store an uploaded PDF/Word file and create the document in DRAFT."""
        self._access.require_management(identity, action="upload documents")

        ext = file_extension(filename)
        file_type = DOCUMENT_EXTENSIONS.get(ext)
        if file_type is None:
            raise UploadRejected(
                f"document extension {ext!r} not allowed ({filename!r})",
                public_message="Only PDF and Word documents are allowed.",
            )
        self._check_size(content, self._storage.max_file_size, filename)

        if file_type is FileType.WORD:
            pdf = self._converter.convert(content, filename=filename)
        else:
            pdf = content
            self._check_pdf(pdf, filename)

        stem = PurePath(filename).stem or "document"
        key = self._blobs.new_key(ORIGINALS_AREA, prefix=_safe(stem), suffix=".pdf")
        self._blobs.write_bytes(key, pdf)
        try:
            with self._db.transaction():
                doc = self._documents.create(
                    title=(title or "").strip() or stem,
                    original_filename=filename,
                    original_file_key=key,
                    file_type=file_type,
                    owner_id=identity.user_id,
                )
                self._audit.record(
                    AuditAction.UPLOADED,
                    user_id=identity.user_id,
                    document_id=int(doc.id),
                    details={"filename": filename, "file_type": file_type.value},
                )
        except Exception:
            self._blobs.delete(key)
            raise
        logger.info("Document %s registered by user %s (%s)", doc.id, identity.user_id, filename)
        return doc

    def upload_signature_image(self, identity: Identity, filename: str, content: bytes) -> str:
        """Store a PNG/JPEG signature image and return its blob key."""
        ext = file_extension(filename)
        if ext not in SIGNATURE_EXTENSIONS:
            raise UploadRejected(
                f"signature extension {ext!r} not allowed ({filename!r})",
                public_message="Only PNG and JPEG images are allowed.",
            )
        self._check_size(content, self._storage.max_signature_size, filename)

        key = self._blobs.new_key(SIGNATURES_AREA, prefix=f"signature-{identity.user_id}", suffix=f".{ext}")
        self._blobs.write_bytes(key, content)
        self._audit.record(
            AuditAction.SIGNATURE_UPLOADED,
            user_id=identity.user_id,
            details={"filename": filename, "key": key},
        )
        return key

    # ------------------------------------------------------------------ #
    @staticmethod
    def _check_size(content: bytes, limit: int, filename: str) -> None:
        if not content:
            raise UploadRejected(f"empty upload {filename!r}", public_message="The uploaded file is empty.")
        if len(content) > limit:
            raise UploadRejected(
                f"{filename!r} is {len(content)} bytes, limit {limit}",
                public_message=f"The file exceeds the maximum size of {limit // (1024 * 1024)} MB.",
            )

    @staticmethod
    def _check_pdf(content: bytes, filename: str) -> None:
        try:
            PdfReader(BytesIO(content)).pages[0]
        except (PdfReadError, IndexError, KeyError, ValueError, OSError) as ex:
            raise UploadRejected(
                f"{filename!r} is not a readable PDF: {ex}",
                public_message="The PDF file could not be read.",
            ) from ex


def _safe(stem: str) -> str:
    """Filename stem reduced to characters that are safe in a blob key."""
    cleaned = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in stem)
    return cleaned[:60] or "document"
