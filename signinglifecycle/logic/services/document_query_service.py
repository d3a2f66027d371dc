"""
===============================================================================
DocumentQueryService – read side of the signing lifecycle
-------------------------------------------------------------------------------
Purpose:
    Access-checked lookups and list views for owners and recipients, plus the
    dashboard counters. Nothing here writes.
===============================================================================
"""
from __future__ import annotations
import logging
from typing import List, Optional, Sequence, Union

from core.common.errors import NotFound
from core.contracts.identity import Identity
from signinglifecycle.logic.policy.access_policy import AccessPolicy
from signinglifecycle.logic.repository.sqlite.assignment_repository_sqlite import AssignmentRepositorySQLite
from signinglifecycle.logic.repository.sqlite.document_repository_sqlite import DocumentRepositorySQLite
from signinglifecycle.models.document import Document
from signinglifecycle.models.document_status import DocumentStatus
from signinglifecycle.models.dto.dashboard_stats import ManagementDashboard, RecipientDashboard
from signinglifecycle.models.dto.document_details import AssignedDocument, DocumentDetails
from signinglifecycle.models.recipient_status import RecipientStatus

logger = logging.getLogger(__name__)


class DocumentQueryService:
    """Read accessors over documents and assignments."""

    def __init__(
        self,
        documents: DocumentRepositorySQLite,
        assignments: AssignmentRepositorySQLite,
        *,
        access: Optional[AccessPolicy] = None,
    ) -> None:
        self._documents = documents
        self._assignments = assignments
        self._access = access or AccessPolicy()

    # -------- Single document --------------------------------------------- #
    def load_visible(self, identity: Identity, document_id: int) -> Document:
        """Return the document if the caller may see it, else raise."""
        doc = self._documents.get(document_id)
        if doc is None:
            raise NotFound(f"document {document_id} does not exist")
        is_assigned = self._assignments.get(document_id, identity.user_id) is not None
        self._access.require_view(identity, doc, is_assigned=is_assigned)
        return doc

    def get_document(self, identity: Identity, document_id: int) -> DocumentDetails:
        doc = self.load_visible(identity, document_id)
        return DocumentDetails(document=doc, recipients=self._assignments.list_for_document(document_id))

    # -------- Lists ------------------------------------------------------- #
    def documents_visible_to(self, identity: Identity) -> List[Document]:
        return self._documents.list_visible_to(identity.user_id)

    def owned_documents(self, identity: Identity) -> List[Document]:
        return self._documents.list_owned(identity.user_id)

    def assigned_to_me(self, identity: Identity) -> List[AssignedDocument]:
        return self._assigned(identity)

    def assigned_to_sign(self, identity: Identity) -> List[AssignedDocument]:
        """Assignments still waiting for the caller's signature."""
        return self._assigned(identity, (RecipientStatus.PENDING, RecipientStatus.DRAFT))

    def sent_back_to_me(self, identity: Identity) -> List[AssignedDocument]:
        return self._assigned(identity, (RecipientStatus.SENT_BACK_FOR_SIGNING,))

    def waiting_confirmation(self, identity: Identity) -> List[Document]:
        """Owner's documents whose recipients have signed and which await confirmation."""
        return self._documents.list_owned_with_recipient_status(
            identity.user_id, DocumentStatus.WAITING_CONFIRMATION, RecipientStatus.SIGNED
        )

    def sent_back_for_signing(self, identity: Identity) -> Union[List[Document], List[AssignedDocument]]:
        """Management sees its own sent-back documents; recipients see their sent-back assignments."""
        if identity.is_management:
            return self._documents.list_owned(identity.user_id, status=DocumentStatus.SENT_BACK_FOR_SIGNING)
        return self.sent_back_to_me(identity)

    def _assigned(
        self, identity: Identity, statuses: Sequence[RecipientStatus] = ()
    ) -> List[AssignedDocument]:
        rows: List[AssignedDocument] = []
        for pair in self._assignments.list_for_recipient(identity.user_id, statuses=statuses):
            doc = self._documents.get(pair.document_id)
            if doc is None:
                logger.warning("Assignment of user %s points to missing document %s",
                               identity.user_id, pair.document_id)
                continue
            rows.append(AssignedDocument(
                document=doc,
                recipient_status=pair.status,
                due_date=pair.due_date.isoformat() if pair.due_date else None,
                signed_at=pair.signed_at.isoformat() if pair.signed_at else None,
                revision_note=pair.revision_note,
            ))
        return rows

    # -------- Dashboard --------------------------------------------------- #
    def dashboard_stats(self, identity: Identity) -> Union[ManagementDashboard, RecipientDashboard]:
        uid = identity.user_id
        if identity.is_management:
            docs = self._documents
            return ManagementDashboard(
                total_documents=docs.count_owned(uid),
                pending_signatures=docs.count_owned_with_recipient_status(uid, (RecipientStatus.PENDING,)),
                signed=docs.count_owned_with_recipient_status(uid, (RecipientStatus.SIGNED,)),
                drafts=docs.count_owned(uid, status=DocumentStatus.DRAFT),
                waiting_confirmation=docs.count_owned_with_recipient_status(
                    uid, (RecipientStatus.SIGNED,), document_statuses=(DocumentStatus.WAITING_CONFIRMATION,)
                ),
                sent_for_signing=docs.count_owned_with_recipient_status(
                    uid, (RecipientStatus.PENDING, RecipientStatus.DRAFT),
                    document_statuses=(DocumentStatus.SENT_FOR_SIGNING,),
                ),
            )
        return RecipientDashboard(
            pending=self._assignments.count_for_recipient(uid, RecipientStatus.PENDING),
            draft=self._assignments.count_for_recipient(uid, RecipientStatus.DRAFT),
            signed=self._assignments.count_for_recipient(uid, RecipientStatus.SIGNED),
        )
