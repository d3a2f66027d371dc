"""
===============================================================================
AssignmentTracker – per-recipient status of a document
-------------------------------------------------------------------------------
Purpose:
    Own the (document, recipient) pairs: idempotent assignment, draft/signed/
    sent-back transitions and the "everyone has completed" question that
    drives the document lifecycle.

Decisions implemented:
    - Re-assigning an existing pair resets it to PENDING and clears signed_at
      and revision_note.
    - revision_note is cleared on every transition away from SENT_BACK.
    - Pairs in SENT_BACK_FOR_SIGNING count as complete; only PENDING and
      DRAFT block completion.
===============================================================================
"""
from __future__ import annotations
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from core.common.errors import InvalidTransition, NotAssigned
from signinglifecycle.logic.policy.lifecycle_policy import RecipientEvent, next_recipient_status
from signinglifecycle.logic.repository.sqlite.assignment_repository_sqlite import AssignmentRepositorySQLite
from signinglifecycle.models.recipient_assignment import RecipientAssignment
from signinglifecycle.models.recipient_status import RecipientStatus

logger = logging.getLogger(__name__)

OUTSTANDING = (RecipientStatus.PENDING, RecipientStatus.DRAFT)


class AssignmentTracker:
    """Recipient assignment tracker backed by the document_recipients table."""

    def __init__(self, assignments: AssignmentRepositorySQLite) -> None:
        self._repo = assignments

    # -------- Reads ------------------------------------------------------- #
    def get(self, document_id: int, recipient_id: int) -> RecipientAssignment:
        """Return the pair or raise NotAssigned."""
        pair = self._repo.get(document_id, recipient_id)
        if pair is None:
            raise NotAssigned(f"user {recipient_id} is not assigned to document {document_id}")
        return pair

    def recipients(self, document_id: int) -> List[RecipientAssignment]:
        return self._repo.list_for_document(document_id)

    def all_complete(self, document_id: int) -> bool:
        """True iff no pair is PENDING or DRAFT (vacuously true without pairs)."""
        return self._repo.count_by_status(document_id, OUTSTANDING) == 0

    def would_complete(self, document_id: int, recipient_id: int) -> bool:
        """True if signing by *recipient_id* would leave no outstanding pair."""
        return not any(
            p.status.is_outstanding
            for p in self._repo.list_for_document(document_id)
            if int(p.recipient_id) != int(recipient_id)
        )

    def latest_signed(self, document_id: int) -> Optional[RecipientAssignment]:
        return self._repo.latest_signed(document_id)

    # -------- Writes ------------------------------------------------------ #
    def assign(
        self,
        document_id: int,
        recipient_id: int,
        recipient_email: str,
        due_date: Optional[date] = None,
    ) -> RecipientAssignment:
        """Create a PENDING pair or reset an existing one to PENDING."""
        existing = self._repo.get(document_id, recipient_id)
        if existing is not None:
            next_recipient_status(existing.status, RecipientEvent.ASSIGN)
        self._repo.upsert(document_id, recipient_id, recipient_email, due_date)
        logger.debug("Assigned document %s to user %s (%s)", document_id, recipient_id, recipient_email)
        return self.get(document_id, recipient_id)

    def mark_draft(self, document_id: int, recipient_id: int) -> RecipientAssignment:
        pair = self.get(document_id, recipient_id)
        target = next_recipient_status(pair.status, RecipientEvent.SAVE_DRAFT)
        self._repo.update_status(document_id, recipient_id, target)
        return self.get(document_id, recipient_id)

    def mark_signed(
        self, document_id: int, recipient_id: int, *, at: Optional[datetime] = None
    ) -> RecipientAssignment:
        pair = self.get(document_id, recipient_id)
        target = next_recipient_status(pair.status, RecipientEvent.SIGN)
        self._repo.update_status(
            document_id, recipient_id, target, signed_at=at or datetime.now(timezone.utc)
        )
        return self.get(document_id, recipient_id)

    def mark_sent_back(self, document_id: int, recipient_id: int, note: str) -> RecipientAssignment:
        """Return a SIGNED pair to its recipient with a non-blank revision note."""
        pair = self.get(document_id, recipient_id)
        cleaned = (note or "").strip()
        if not cleaned:
            raise InvalidTransition(
                "a revision note is required to send a document back",
                public_message="Please provide a note explaining what needs to be revised.",
            )
        target = next_recipient_status(pair.status, RecipientEvent.SEND_BACK)
        self._repo.update_status(document_id, recipient_id, target, revision_note=cleaned)
        return self.get(document_id, recipient_id)
