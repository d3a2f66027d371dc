"""
===============================================================================
Lifecycle Policy – closed transition tables
-------------------------------------------------------------------------------
Purpose:
    Define which event may fire in which status, for documents and for
    (document, recipient) pairs. Computations are pure (no DB access); the
    tracker and the controller consult these tables before writing.

Document states:
    DRAFT -> SENT_FOR_SIGNING -> (SENT_BACK_FOR_SIGNING loop)
          -> WAITING_CONFIRMATION -> COMPLETED (terminal)

Recipient states:
    PENDING / DRAFT -> SIGNED -> SENT_BACK_FOR_SIGNING -> DRAFT / SIGNED
===============================================================================
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from core.common.errors import InvalidTransition
from signinglifecycle.models.document_status import DocumentStatus
from signinglifecycle.models.recipient_status import RecipientStatus


class DocumentEvent(str, Enum):
    ASSIGN = "assign"
    SUBMIT = "submit"
    SEND_BACK = "send_back"
    CONFIRM = "confirm"


class RecipientEvent(str, Enum):
    ASSIGN = "assign"
    SAVE_DRAFT = "save_draft"
    SIGN = "sign"
    SEND_BACK = "send_back"


_D = DocumentStatus
_R = RecipientStatus

# Source states per document event.
DOCUMENT_SOURCES: Dict[DocumentEvent, FrozenSet[DocumentStatus]] = {
    DocumentEvent.ASSIGN: frozenset({
        _D.DRAFT, _D.SENT_FOR_SIGNING, _D.SENT_BACK_FOR_SIGNING, _D.WAITING_CONFIRMATION,
    }),
    DocumentEvent.SUBMIT: frozenset({
        _D.SENT_FOR_SIGNING, _D.SENT_BACK_FOR_SIGNING, _D.WAITING_CONFIRMATION,
    }),
    DocumentEvent.SEND_BACK: frozenset({
        _D.SENT_FOR_SIGNING, _D.SENT_BACK_FOR_SIGNING, _D.WAITING_CONFIRMATION,
    }),
    DocumentEvent.CONFIRM: frozenset({_D.WAITING_CONFIRMATION}),
}

# (status, event) -> target for every allowed recipient transition.
RECIPIENT_TRANSITIONS: Dict[Tuple[RecipientStatus, RecipientEvent], RecipientStatus] = {
    (_R.PENDING, RecipientEvent.ASSIGN): _R.PENDING,
    (_R.DRAFT, RecipientEvent.ASSIGN): _R.PENDING,
    (_R.SIGNED, RecipientEvent.ASSIGN): _R.PENDING,
    (_R.SENT_BACK_FOR_SIGNING, RecipientEvent.ASSIGN): _R.PENDING,

    (_R.PENDING, RecipientEvent.SAVE_DRAFT): _R.DRAFT,
    (_R.DRAFT, RecipientEvent.SAVE_DRAFT): _R.DRAFT,
    (_R.SENT_BACK_FOR_SIGNING, RecipientEvent.SAVE_DRAFT): _R.DRAFT,

    (_R.PENDING, RecipientEvent.SIGN): _R.SIGNED,
    (_R.DRAFT, RecipientEvent.SIGN): _R.SIGNED,
    (_R.SENT_BACK_FOR_SIGNING, RecipientEvent.SIGN): _R.SIGNED,

    (_R.SIGNED, RecipientEvent.SEND_BACK): _R.SENT_BACK_FOR_SIGNING,
}


def can_fire(status: DocumentStatus, event: DocumentEvent) -> bool:
    return DocumentStatus(status) in DOCUMENT_SOURCES[DocumentEvent(event)]


def next_document_status(
    status: DocumentStatus, event: DocumentEvent, *, all_complete: Optional[bool] = None
) -> DocumentStatus:
    """
    Return the target status for *event* fired in *status*.

    SUBMIT needs *all_complete*: WAITING_CONFIRMATION when every recipient has
    completed, SENT_FOR_SIGNING otherwise.

    Raises:
        InvalidTransition: if the event is not allowed in *status*
    """
    status, event = DocumentStatus(status), DocumentEvent(event)
    if status not in DOCUMENT_SOURCES[event]:
        raise InvalidTransition(f"document event {event.value!r} not allowed in status {status.value!r}")
    if event is DocumentEvent.ASSIGN:
        return _D.SENT_FOR_SIGNING
    if event is DocumentEvent.SUBMIT:
        if all_complete is None:
            raise ValueError("all_complete is required for SUBMIT")
        return _D.WAITING_CONFIRMATION if all_complete else _D.SENT_FOR_SIGNING
    if event is DocumentEvent.SEND_BACK:
        return _D.SENT_BACK_FOR_SIGNING
    return _D.COMPLETED


def next_recipient_status(status: RecipientStatus, event: RecipientEvent) -> RecipientStatus:
    """
    Return the target status of a pair for *event*.

    Raises:
        InvalidTransition: if the pair cannot take *event* in *status*
    """
    status, event = RecipientStatus(status), RecipientEvent(event)
    try:
        return RECIPIENT_TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidTransition(
            f"recipient event {event.value!r} not allowed in status {status.value!r}"
        ) from None
