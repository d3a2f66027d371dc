"""
===============================================================================
LifecycleController – document signing state machine
-------------------------------------------------------------------------------
Purpose:
    Accept the lifecycle events (assign, save draft, submit signature, send
    back, confirm), check ownership and transition guards, mutate tracker and
    annotation store inside one transaction and dispatch notifications once
    the change has committed.

Decisions implemented:
    - Submission renders the stamped PDF (and, when it will complete the
      document, writes it to the blob store) before the write transaction.
      Inside the transaction the completion and the final set are checked
      against what was rendered; on a mismatch the transaction rolls back
      and the submission is rendered again, at most SUBMIT_ATTEMPTS times.
    - Without completion the render only proves that every annotation is
      valid; no artifact is recorded.
    - A send-back or a re-assignment clears the recorded artifact.
    - COMPLETED is terminal.
===============================================================================
"""
from __future__ import annotations
import dataclasses
import logging
from datetime import date
from pathlib import PurePath
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from core.common.db_interface import SQLiteDatabase
from core.common.errors import ArtifactMissing, InvalidTransition, NotFound
from core.contracts.audit import AuditAction, IAuditLog
from core.contracts.blob_store import IBlobStore
from core.contracts.identity import IIdentityDirectory, Identity, ResolvedRecipient
from core.contracts.notifier import Notification, TemplateKind
from signinglifecycle.logic.policy.access_policy import AccessPolicy
from signinglifecycle.logic.policy.lifecycle_policy import (
    DocumentEvent,
    RecipientEvent,
    can_fire,
    next_document_status,
    next_recipient_status,
)
from signinglifecycle.logic.repository.sqlite.document_repository_sqlite import DocumentRepositorySQLite
from signinglifecycle.logic.services.annotation_store import (
    AnnotationStore,
    SignatureInput,
    TextInput,
    coerce_annotations,
)
from signinglifecycle.logic.services.assignment_tracker import AssignmentTracker
from signinglifecycle.logic.services.document_query_service import DocumentQueryService
from signinglifecycle.logic.services.notification_dispatcher import NotificationDispatcher
from signinglifecycle.models.document import Document
from signinglifecycle.models.dto.document_details import DocumentDetails
from signinglifecycle.models.dto.downloaded_artifact import DownloadedArtifact
from signinglifecycle.models.dto.submission_result import SubmissionResult
from signinglifecycle.models.recipient_assignment import RecipientAssignment
from stamping.logic.pdf_stamper import StampingEngine
from stamping.models.annotation import AnnotationSet

logger = logging.getLogger(__name__)

SUBMIT_ATTEMPTS = 3


class _StaleComposition(Exception):
    """Final set or completion changed between render and commit."""


def normalize_emails(recipient_emails: Union[str, Iterable[str]]) -> List[str]:
    """Accept a list or a comma separated string; lower-case, strip, de-duplicate."""
    if isinstance(recipient_emails, str):
        recipient_emails = recipient_emails.split(",")
    seen: List[str] = []
    for raw in recipient_emails or ():
        email = str(raw).strip().lower()
        if email and email not in seen:
            seen.append(email)
    return seen


def _content_of(annotations: AnnotationSet) -> Tuple:
    """Comparable content of a set, ignoring row ids."""
    return (
        tuple(dataclasses.astuple(dataclasses.replace(t, id=None)) for t in annotations.text_fields),
        tuple(dataclasses.astuple(dataclasses.replace(s, id=None)) for s in annotations.signatures),
    )


class LifecycleController:
    """Orchestrates every state-changing operation on a signing document."""

    def __init__(
        self,
        db: SQLiteDatabase,
        documents: DocumentRepositorySQLite,
        tracker: AssignmentTracker,
        store: AnnotationStore,
        engine: StampingEngine,
        blobs: IBlobStore,
        directory: IIdentityDirectory,
        dispatcher: NotificationDispatcher,
        audit: IAuditLog,
        queries: DocumentQueryService,
        *,
        access: Optional[AccessPolicy] = None,
    ) -> None:
        self._db = db
        self._documents = documents
        self._tracker = tracker
        self._store = store
        self._engine = engine
        self._blobs = blobs
        self._directory = directory
        self._dispatcher = dispatcher
        self._audit = audit
        self._queries = queries
        self._access = access or AccessPolicy()

    # ------------------------------------------------------------------ #
    #  Helpers                                                           #
    # ------------------------------------------------------------------ #
    def _load(self, document_id: int) -> Document:
        doc = self._documents.get(document_id)
        if doc is None:
            raise NotFound(f"document {document_id} does not exist")
        return doc

    def _notify_owner(self, doc: Document, template: TemplateKind, **context) -> List[Notification]:
        contact = self._directory.contact_for(int(doc.owner_id))
        if contact is None or not contact.email:
            logger.warning("No contact for owner %s of document %s; %s not sent", doc.owner_id, doc.id, template.value)
            return []
        return [Notification(
            recipient_address=contact.email,
            template=template,
            document_title=doc.title,
            document_id=int(doc.id),
            recipient_name=contact.full_name,
            context=context,
        )]

    # ------------------------------------------------------------------ #
    #  assign                                                            #
    # ------------------------------------------------------------------ #
    def assign(
        self,
        identity: Identity,
        document_id: int,
        recipient_emails: Union[str, Sequence[str]],
        due_date: Optional[date] = None,
    ) -> DocumentDetails:
        """
        Assign (or re-assign) recipients; the document moves to SENT_FOR_SIGNING.

        Unknown addresses are resolved by the identity directory, which may
        create external users; their one-time secret goes out with the
        assignment notification only.
        """
        emails = normalize_emails(recipient_emails)
        if not emails:
            raise InvalidTransition(
                "at least one recipient is required",
                public_message="Recipient emails are required.",
            )
        doc = self._load(document_id)
        self._access.require_owner(identity, doc, action="assign")
        target = next_document_status(doc.status, DocumentEvent.ASSIGN)

        resolved: List[ResolvedRecipient] = [self._directory.resolve_recipient(e) for e in emails]

        with self._db.transaction():
            doc = self._load(document_id)
            next_document_status(doc.status, DocumentEvent.ASSIGN)
            for r in resolved:
                self._tracker.assign(document_id, r.user_id, r.email, due_date)
            self._documents.update_status(document_id, target, None)
            self._audit.record(
                AuditAction.ASSIGNED,
                user_id=identity.user_id,
                document_id=document_id,
                details={
                    "recipients": [r.email for r in resolved],
                    "due_date": due_date.isoformat() if due_date else None,
                },
            )

        logger.info("Document %s assigned to %d recipient(s) by user %s", document_id, len(resolved), identity.user_id)
        self._dispatcher.dispatch(
            Notification(
                recipient_address=r.email,
                template=TemplateKind.ASSIGNED,
                document_title=doc.title,
                document_id=int(document_id),
                secret=r.temporary_secret,
                recipient_name=r.full_name,
                context={"due_date": due_date.isoformat() if due_date else None},
            )
            for r in resolved
        )
        return DocumentDetails(document=self._load(document_id), recipients=self._tracker.recipients(document_id))

    # ------------------------------------------------------------------ #
    #  drafts                                                            #
    # ------------------------------------------------------------------ #
    def save_draft(
        self,
        identity: Identity,
        document_id: int,
        text_fields: Sequence[TextInput] = (),
        signatures: Sequence[SignatureInput] = (),
    ) -> AnnotationSet:
        """Replace the caller's draft set; the pair moves to DRAFT."""
        doc = self._load(document_id)
        self._tracker.get(document_id, identity.user_id)
        if not can_fire(doc.status, DocumentEvent.SUBMIT):
            raise InvalidTransition(f"drafts cannot be saved while document {document_id} is {doc.status.value}")
        with self._db.transaction():
            saved = self._store.save_draft(document_id, identity.user_id, text_fields, signatures)
            self._audit.record(
                AuditAction.DRAFTED,
                user_id=identity.user_id,
                document_id=document_id,
                details={"text_fields": len(saved.text_fields), "signatures": len(saved.signatures)},
            )
        return saved

    def get_draft(self, identity: Identity, document_id: int) -> AnnotationSet:
        self._load(document_id)
        self._tracker.get(document_id, identity.user_id)
        return self._store.drafts_for(document_id, identity.user_id)

    # ------------------------------------------------------------------ #
    #  submit                                                            #
    # ------------------------------------------------------------------ #
    def submit_signature(
        self,
        identity: Identity,
        document_id: int,
        text_fields: Sequence[TextInput] = (),
        signatures: Sequence[SignatureInput] = (),
    ) -> SubmissionResult:
        """
        Finalize the caller's annotations, mark them signed and advance the document.

        The whole final set (other recipients' finals plus the new set) is
        rendered first; an invalid annotation or an unsupported image aborts
        before anything is written.
        """
        uid = identity.user_id
        doc = self._load(document_id)
        pair = self._tracker.get(document_id, uid)
        if not can_fire(doc.status, DocumentEvent.SUBMIT):
            raise InvalidTransition(f"document {document_id} is {doc.status.value}; signing is closed")
        next_recipient_status(pair.status, RecipientEvent.SIGN)

        new_set = coerce_annotations(uid, text_fields, signatures)

        for attempt in range(1, SUBMIT_ATTEMPTS + 1):
            composed = self._store.compose_final(document_id, new_set, uid)
            expect_complete = self._tracker.would_complete(document_id, uid)
            pdf = self._engine.render(doc.original_file_key, composed.text_fields, composed.signatures)
            written_key = (
                self._engine.persist(pdf, name_prefix=f"signed-{document_id}") if expect_complete else None
            )
            try:
                with self._db.transaction():
                    doc = self._load(document_id)
                    if not can_fire(doc.status, DocumentEvent.SUBMIT):
                        raise InvalidTransition(
                            f"document {document_id} became {doc.status.value} during submission"
                        )
                    self._store.finalize(document_id, uid, new_set.text_fields, new_set.signatures)
                    self._tracker.mark_signed(document_id, uid)
                    complete = self._tracker.all_complete(document_id)
                    if complete != expect_complete or (
                        complete and _content_of(self._store.all_final_for(document_id)) != _content_of(composed)
                    ):
                        raise _StaleComposition()
                    target = next_document_status(doc.status, DocumentEvent.SUBMIT, all_complete=complete)
                    self._documents.update_status(document_id, target, written_key)
                    self._audit.record(
                        AuditAction.SIGNED,
                        user_id=uid,
                        document_id=document_id,
                        details={
                            "text_fields": len(new_set.text_fields),
                            "signatures": len(new_set.signatures),
                            "all_complete": complete,
                            "signed_file": written_key,
                        },
                    )
            except _StaleComposition:
                if written_key is not None:
                    self._blobs.delete(written_key)
                logger.info("Document %s changed during submission by user %s (attempt %d); re-rendering",
                            document_id, uid, attempt)
                continue
            except Exception:
                if written_key is not None:
                    self._blobs.delete(written_key)
                raise
            break
        else:
            raise InvalidTransition(
                f"document {document_id} kept changing during submission by user {uid}",
                public_message="The document changed while you were signing. Please submit again.",
            )

        logger.info("User %s signed document %s -> %s", uid, document_id, target.value)
        self._dispatcher.dispatch(self._notify_owner(doc, TemplateKind.SIGNED, signer=identity.email or str(uid)))
        return SubmissionResult(document_id=int(document_id), status=target, signed_file_key=written_key)

    # ------------------------------------------------------------------ #
    #  send back                                                         #
    # ------------------------------------------------------------------ #
    def send_back(
        self,
        identity: Identity,
        document_id: int,
        note: str,
        recipient_id: Optional[int] = None,
    ) -> RecipientAssignment:
        """
        Return a signed pair to its recipient for revision.

        Without *recipient_id* the most recently signed pair is chosen.
        """
        doc = self._load(document_id)
        self._access.require_owner(identity, doc, action="send back")
        next_document_status(doc.status, DocumentEvent.SEND_BACK)
        if not (note or "").strip():
            raise InvalidTransition(
                "a revision note is required to send a document back",
                public_message="Please provide a note explaining what needs to be revised.",
            )

        with self._db.transaction():
            if recipient_id is None:
                target_pair = self._tracker.latest_signed(document_id)
                if target_pair is None:
                    raise InvalidTransition(
                        f"document {document_id} has no signed recipient to send back to",
                        public_message="No signed recipient found for this document.",
                    )
            else:
                target_pair = self._tracker.get(document_id, recipient_id)
            pair = self._tracker.mark_sent_back(document_id, int(target_pair.recipient_id), note)
            self._documents.update_status(
                document_id, next_document_status(doc.status, DocumentEvent.SEND_BACK), None
            )
            self._audit.record(
                AuditAction.SENT_BACK,
                user_id=identity.user_id,
                document_id=document_id,
                details={"recipient_id": int(pair.recipient_id), "note": pair.revision_note},
            )

        logger.info("Document %s sent back to user %s", document_id, pair.recipient_id)
        self._dispatcher.dispatch([Notification(
            recipient_address=pair.recipient_email,
            template=TemplateKind.SENT_BACK,
            document_title=doc.title,
            document_id=int(document_id),
            context={"note": pair.revision_note},
        )])
        return pair

    # ------------------------------------------------------------------ #
    #  confirm                                                           #
    # ------------------------------------------------------------------ #
    def confirm(self, identity: Identity, document_id: int) -> Document:
        """Owner accepts the stamped document; WAITING_CONFIRMATION -> COMPLETED."""
        doc = self._load(document_id)
        self._access.require_owner(identity, doc, action="confirm")
        target = next_document_status(doc.status, DocumentEvent.CONFIRM)
        with self._db.transaction():
            doc = self._load(document_id)
            next_document_status(doc.status, DocumentEvent.CONFIRM)
            self._documents.update_status(document_id, target, doc.signed_file_key)
            self._audit.record(AuditAction.CONFIRMED, user_id=identity.user_id, document_id=document_id)

        logger.info("Document %s confirmed by user %s", document_id, identity.user_id)
        self._dispatcher.dispatch(
            Notification(
                recipient_address=r.recipient_email,
                template=TemplateKind.CONFIRMED,
                document_title=doc.title,
                document_id=int(document_id),
            )
            for r in self._tracker.recipients(document_id)
        )
        return self._load(document_id)

    # ------------------------------------------------------------------ #
    #  download                                                          #
    # ------------------------------------------------------------------ #
    def download(self, identity: Identity, document_id: int) -> DownloadedArtifact:
        """Signed artifact if recorded, otherwise the original PDF."""
        doc = self._queries.load_visible(identity, document_id)
        key = doc.current_file_key
        content = self._blobs.read_bytes(key)
        if not content:
            raise ArtifactMissing(f"blob {key} of document {document_id} is empty")

        is_signed = doc.signed_file_key is not None
        stem = PurePath(doc.original_filename).stem or f"document-{document_id}"
        filename = f"signed-{stem}.pdf" if is_signed else f"{stem}.pdf"
        self._audit.record(
            AuditAction.DOWNLOADED,
            user_id=identity.user_id,
            document_id=document_id,
            details={"signed": is_signed},
        )
        return DownloadedArtifact(filename=filename, content=content, is_signed=is_signed)
