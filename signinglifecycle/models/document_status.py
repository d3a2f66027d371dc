from __future__ import annotations
from enum import Enum


class DocumentStatus(str, Enum):
    """Lifecycle status of a document routed for signature."""
    DRAFT = "draft"
    SENT_FOR_SIGNING = "sent_for_signing"
    SENT_BACK_FOR_SIGNING = "sent_back_for_signing"
    WAITING_CONFIRMATION = "waiting_confirmation"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self is DocumentStatus.COMPLETED

    @property
    def has_signed_artifact(self) -> bool:
        """True for the states in which the stamped PDF is recorded."""
        return self in (DocumentStatus.WAITING_CONFIRMATION, DocumentStatus.COMPLETED)
