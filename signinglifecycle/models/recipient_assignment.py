from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .ids import DocumentId, UserId
from .recipient_status import RecipientStatus


@dataclass(slots=True)
class RecipientAssignment:
    """
    One (document, recipient) pair.

    Invariants:
    - signed_at is set iff status == SIGNED
    - revision_note is only set while status == SENT_BACK_FOR_SIGNING
    """
    document_id: DocumentId
    recipient_id: UserId
    recipient_email: str
    status: RecipientStatus = RecipientStatus.PENDING
    due_date: Optional[date] = None
    signed_at: Optional[datetime] = None
    revision_note: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
