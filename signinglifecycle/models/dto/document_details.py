from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from signinglifecycle.models.document import Document
from signinglifecycle.models.recipient_assignment import RecipientAssignment
from signinglifecycle.models.recipient_status import RecipientStatus


@dataclass(slots=True)
class DocumentDetails:
    """A document together with all of its recipient rows."""
    document: Document
    recipients: List[RecipientAssignment] = field(default_factory=list)

    def recipient(self, recipient_id: int) -> Optional[RecipientAssignment]:
        for r in self.recipients:
            if int(r.recipient_id) == int(recipient_id):
                return r
        return None


@dataclass(slots=True)
class AssignedDocument:
    """Row of a recipient's list: the document plus the caller's own progress."""
    document: Document
    recipient_status: RecipientStatus
    due_date: Optional[str] = None
    signed_at: Optional[str] = None
    revision_note: Optional[str] = None
