from __future__ import annotations
from enum import Enum


class RecipientStatus(str, Enum):
    """Progress of one recipient on one document."""
    PENDING = "pending"
    DRAFT = "draft"
    SIGNED = "signed"
    SENT_BACK_FOR_SIGNING = "sent_back_for_signing"

    @property
    def is_outstanding(self) -> bool:
        """Pending and draft block completion; sent-back does not."""
        return self in (RecipientStatus.PENDING, RecipientStatus.DRAFT)
