from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .ids import DocumentId, UserId
from .document_status import DocumentStatus
from .file_type import FileType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Document:
    """
    Aggregate root for a document routed for signature.

    Notes:
    - 'original_file_key' points to the pristine PDF in the blob store
    - 'signed_file_key'   is only set once every recipient has completed,
                          i.e. in WAITING_CONFIRMATION and COMPLETED
    """

    id: DocumentId
    title: str
    original_filename: str
    original_file_key: str
    file_type: FileType
    owner_id: UserId
    status: DocumentStatus = DocumentStatus.DRAFT
    signed_file_key: Optional[str] = None

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def is_owned_by(self, user_id: int) -> bool:
        return int(self.owner_id) == int(user_id)

    @property
    def current_file_key(self) -> str:
        """Signed artifact if recorded, otherwise the original."""
        return self.signed_file_key or self.original_file_key
