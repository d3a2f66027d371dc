from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from signinglifecycle.models.document_status import DocumentStatus


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    """Outcome of a signature submission."""
    document_id: int
    status: DocumentStatus
    signed_file_key: Optional[str]

    @property
    def all_complete(self) -> bool:
        return self.status == DocumentStatus.WAITING_CONFIRMATION
