"""
===============================================================================
AnnotationStore – draft and final annotation sets
-------------------------------------------------------------------------------
Purpose:
    Keep each recipient's draft set (saved work in progress) and final set
    (what gets stamped) apart. Every write replaces the whole set of one kind
    for the (document, recipient) pair inside one transaction.
===============================================================================
"""
from __future__ import annotations
import dataclasses
import logging
from typing import Any, Iterable, Mapping, Sequence, Tuple, Union

from core.common.errors import InvalidAnnotation
from signinglifecycle.logic.repository.sqlite.annotation_repository_sqlite import AnnotationRepositorySQLite
from signinglifecycle.logic.services.assignment_tracker import AssignmentTracker
from stamping.models.annotation import AnnotationSet, SignatureField, TextField

logger = logging.getLogger(__name__)

TextInput = Union[TextField, Mapping[str, Any]]
SignatureInput = Union[SignatureField, Mapping[str, Any]]


def coerce_annotations(
    recipient_id: int,
    text_fields: Iterable[TextInput] = (),
    signatures: Iterable[SignatureInput] = (),
) -> AnnotationSet:
    """
    Normalize payload mappings (or ready-made fields) into an AnnotationSet
    owned by *recipient_id*.

    Raises:
        InvalidAnnotation: on non-numeric geometry or missing content
    """
    texts: list[TextField] = []
    for item in text_fields or ():
        if isinstance(item, TextField):
            item = dataclasses.asdict(item)
        if isinstance(item, Mapping):
            texts.append(TextField.from_payload(item, recipient_id=recipient_id))
        else:
            raise InvalidAnnotation(f"unsupported text field payload: {type(item).__name__}")

    sigs: list[SignatureField] = []
    for item in signatures or ():
        if isinstance(item, SignatureField):
            item = dataclasses.asdict(item)
        if isinstance(item, Mapping):
            sigs.append(SignatureField.from_payload(item, recipient_id=recipient_id))
        else:
            raise InvalidAnnotation(f"unsupported signature payload: {type(item).__name__}")

    return AnnotationSet(text_fields=tuple(texts), signatures=tuple(sigs))


class AnnotationStore:
    """Replace-set storage of draft and final annotations."""

    def __init__(self, annotations: AnnotationRepositorySQLite, tracker: AssignmentTracker) -> None:
        self._repo = annotations
        self._tracker = tracker

    # -------- Writes ------------------------------------------------------ #
    def save_draft(
        self,
        document_id: int,
        recipient_id: int,
        text_fields: Sequence[TextInput] = (),
        signatures: Sequence[SignatureInput] = (),
    ) -> AnnotationSet:
        """Replace the draft set and move the pair to DRAFT; the final set is untouched."""
        new_set = coerce_annotations(recipient_id, text_fields, signatures)
        with self._repo.db.transaction():
            self._tracker.mark_draft(document_id, recipient_id)
            self._repo.replace(
                document_id, recipient_id, is_draft=True,
                text_fields=new_set.text_fields, signatures=new_set.signatures,
            )
        logger.debug("Saved draft of %d annotation(s) for doc %s / user %s",
                     len(new_set), document_id, recipient_id)
        return self.drafts_for(document_id, recipient_id)

    def finalize(
        self,
        document_id: int,
        recipient_id: int,
        text_fields: Sequence[TextInput] = (),
        signatures: Sequence[SignatureInput] = (),
    ) -> AnnotationSet:
        """Replace the final set of the pair (first submission or resubmission)."""
        new_set = coerce_annotations(recipient_id, text_fields, signatures)
        self._repo.replace(
            document_id, recipient_id, is_draft=False,
            text_fields=new_set.text_fields, signatures=new_set.signatures,
        )
        return self.finals_for(document_id, recipient_id)

    # -------- Reads ------------------------------------------------------- #
    def drafts_for(self, document_id: int, recipient_id: int) -> AnnotationSet:
        return self._repo.load(document_id, recipient_id, is_draft=True)

    def finals_for(self, document_id: int, recipient_id: int) -> AnnotationSet:
        return self._repo.load(document_id, recipient_id, is_draft=False)

    def all_final_for(self, document_id: int) -> AnnotationSet:
        """Every recipient's final annotations, ordered by recipient then creation."""
        return self._repo.load_all_final(document_id)

    def compose_final(self, document_id: int, replacement: AnnotationSet, recipient_id: int) -> AnnotationSet:
        """
        The final set the document would have once *recipient_id*'s finals are
        replaced by *replacement*. Ordering matches :meth:`all_final_for`.
        """
        others = self._repo.load_all_final(document_id, exclude_recipient=recipient_id)
        return AnnotationSet(
            text_fields=_merge_by_recipient(others.text_fields, replacement.text_fields, recipient_id),
            signatures=_merge_by_recipient(others.signatures, replacement.signatures, recipient_id),
        )


def _merge_by_recipient(existing: Tuple, new: Tuple, recipient_id: int) -> Tuple:
    """Insert *new* at its recipient's slot; sorting is stable so creation order is kept."""
    merged = list(existing) + list(new)
    return tuple(sorted(merged, key=lambda a: a.recipient_id if a.recipient_id is not None else recipient_id))
