"""
===============================================================================
Access Policy – who may see and act on a document
-------------------------------------------------------------------------------
Rules:
    - The owner sees every document they created.
    - A non-owner sees a document only while an assignment row exists for them.
    - Assign, send back and confirm are owner-only.
    - Registering a document requires the management role.

Design:
    - No database access here; callers pass whether an assignment exists.
===============================================================================
"""
from __future__ import annotations
import logging

from core.common.errors import AccessDenied
from core.contracts.identity import Identity
from signinglifecycle.models.document import Document

logger = logging.getLogger(__name__)


class AccessPolicy:
    """Evaluate per-document permissions for a verified identity."""

    def can_view(self, identity: Identity, document: Document, *, is_assigned: bool) -> bool:
        return document.is_owned_by(identity.user_id) or is_assigned

    def require_view(self, identity: Identity, document: Document, *, is_assigned: bool) -> None:
        if not self.can_view(identity, document, is_assigned=is_assigned):
            logger.info("User %s denied access to document %s", identity.user_id, document.id)
            raise AccessDenied(f"user {identity.user_id} may not access document {document.id}")

    def require_owner(self, identity: Identity, document: Document, *, action: str) -> None:
        if not document.is_owned_by(identity.user_id):
            logger.info("User %s is not the owner of document %s (%s)", identity.user_id, document.id, action)
            raise AccessDenied(
                f"only the owner may {action} document {document.id} (caller {identity.user_id})"
            )

    def require_management(self, identity: Identity, *, action: str) -> None:
        if not identity.is_management:
            raise AccessDenied(
                f"role {identity.role.value!r} may not {action}",
                public_message="Only management users can perform this action.",
            )
