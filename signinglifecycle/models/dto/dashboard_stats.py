from __future__ import annotations
from dataclasses import dataclass


@dataclass(slots=True)
class ManagementDashboard:
    """Counters over the documents a manager owns."""
    total_documents: int = 0
    pending_signatures: int = 0
    signed: int = 0
    drafts: int = 0
    waiting_confirmation: int = 0
    sent_for_signing: int = 0


@dataclass(slots=True)
class RecipientDashboard:
    """Counters over a recipient's own assignments."""
    pending: int = 0
    draft: int = 0
    signed: int = 0
