"""AnnotationStore replace-set semantics."""
from __future__ import annotations

import pytest

from core.common.errors import InvalidAnnotation, InvalidTransition
from signinglifecycle.logic.repository.sqlite.annotation_repository_sqlite import AnnotationRepositorySQLite
from signinglifecycle.logic.repository.sqlite.assignment_repository_sqlite import AssignmentRepositorySQLite
from signinglifecycle.logic.repository.sqlite.document_repository_sqlite import DocumentRepositorySQLite
from signinglifecycle.logic.services.annotation_store import AnnotationStore, coerce_annotations
from signinglifecycle.logic.services.assignment_tracker import AssignmentTracker
from signinglifecycle.models.file_type import FileType
from signinglifecycle.models.recipient_status import RecipientStatus
from stamping.models.annotation import SignatureField, TextField


def _text(text: str, page: int = 1) -> dict:
    return {"page_number": page, "x_coordinate": 50, "y_coordinate": 60, "width": 120, "height": 18,
            "text_content": text}


def _sig(key: str = "signatures/s.png") -> dict:
    return {"page_number": 1, "x_coordinate": 300, "y_coordinate": 650, "width": 120, "height": 40,
            "signature_image_path": key}


@pytest.fixture
def setup(db):
    doc = DocumentRepositorySQLite(db).create(
        title="Lease", original_filename="lease.pdf", original_file_key="originals/lease.pdf",
        file_type=FileType.PDF, owner_id=1,
    )
    tracker = AssignmentTracker(AssignmentRepositorySQLite(db))
    tracker.assign(doc.id, 10, "a@example.com")
    tracker.assign(doc.id, 11, "b@example.com")
    return int(doc.id), tracker, AnnotationStore(AnnotationRepositorySQLite(db), tracker)


def test_save_draft_replaces_whole_set_and_marks_draft(setup) -> None:
    doc_id, tracker, store = setup
    store.save_draft(doc_id, 10, [_text("one"), _text("two")], [_sig()])
    saved = store.save_draft(doc_id, 10, [_text("three")], [])
    assert [t.text_content for t in saved.text_fields] == ["three"]
    assert saved.signatures == ()
    assert tracker.get(doc_id, 10).status is RecipientStatus.DRAFT
    assert len(store.finals_for(doc_id, 10)) == 0


def test_finalize_replaces_final_set_and_keeps_drafts(setup) -> None:
    doc_id, _, store = setup
    store.save_draft(doc_id, 10, [_text("draft")], [])
    store.finalize(doc_id, 10, [_text("A")], [_sig()])
    store.finalize(doc_id, 10, [_text("B")], [])
    finals = store.finals_for(doc_id, 10)
    assert [t.text_content for t in finals.text_fields] == ["B"]
    assert finals.signatures == ()
    assert [t.text_content for t in store.drafts_for(doc_id, 10).text_fields] == ["draft"]


def test_all_final_for_orders_by_recipient_then_creation(setup) -> None:
    doc_id, _, store = setup
    store.finalize(doc_id, 11, [_text("b1"), _text("b2")], [])
    store.finalize(doc_id, 10, [_text("a1")], [])
    texts = [(t.recipient_id, t.text_content) for t in store.all_final_for(doc_id).text_fields]
    assert texts == [(10, "a1"), (11, "b1"), (11, "b2")]


def test_compose_final_swaps_in_new_set(setup) -> None:
    doc_id, _, store = setup
    store.finalize(doc_id, 10, [_text("old")], [])
    store.finalize(doc_id, 11, [_text("other")], [])
    composed = store.compose_final(doc_id, coerce_annotations(10, [_text("new")]), 10)
    assert [(t.recipient_id, t.text_content) for t in composed.text_fields] == [(10, "new"), (11, "other")]


def test_signed_pair_cannot_save_draft(setup) -> None:
    doc_id, tracker, store = setup
    tracker.mark_signed(doc_id, 10)
    with pytest.raises(InvalidTransition):
        store.save_draft(doc_id, 10, [_text("late")], [])
    assert len(store.drafts_for(doc_id, 10)) == 0


def test_invalid_payload_is_rejected_before_writing(setup) -> None:
    doc_id, tracker, store = setup
    bad = dict(_text("x"), x_coordinate="left")
    with pytest.raises(InvalidAnnotation):
        store.save_draft(doc_id, 10, [bad], [])
    assert tracker.get(doc_id, 10).status is RecipientStatus.PENDING


def test_ready_made_fields_go_through_the_same_coercion() -> None:
    text = TextField(page_number="2", x="50", y="60.5", width="120", height="18",
                     text_content="Lessee", font_size="14", recipient_id=99)
    sig = SignatureField(page_number=1.0, x="300", y=650, width="120", height="40",
                         image_key=" signatures/s.png ")
    result = coerce_annotations(7, [text], [sig])

    (t,) = result.text_fields
    assert (t.page_number, t.x, t.y, t.font_size, t.recipient_id) == (2, 50.0, 60.5, 14.0, 7)
    (s,) = result.signatures
    assert (s.page_number, s.x, s.width, s.image_key, s.recipient_id) == (1, 300.0, 120.0, "signatures/s.png", 7)


@pytest.mark.parametrize("field", [
    TextField(page_number=1, x="abc", y=60, width=120, height=18, text_content="x"),
    TextField(page_number="one", x=50, y=60, width=120, height=18, text_content="x"),
    TextField(page_number=1, x=50, y=60, width=120, height=18, text_content="x", font_size="big"),
])
def test_ready_made_text_field_with_bad_values_is_rejected(field) -> None:
    with pytest.raises(InvalidAnnotation):
        coerce_annotations(7, [field], [])


def test_ready_made_signature_with_bad_geometry_is_rejected() -> None:
    sig = SignatureField(page_number=1, x=300, y="bottom", width=120, height=40, image_key="signatures/s.png")
    with pytest.raises(InvalidAnnotation):
        coerce_annotations(7, [], [sig])
