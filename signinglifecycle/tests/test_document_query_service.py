"""List views, visibility and dashboard counters."""
from __future__ import annotations

import pytest

from core.common.errors import AccessDenied, NotFound
from signinglifecycle.models.dto.dashboard_stats import ManagementDashboard, RecipientDashboard
from signinglifecycle.models.recipient_status import RecipientStatus


def _field(text: str) -> dict:
    return {"page": 1, "x": 72, "y": 100, "width": 100, "height": 20, "text": text}


@pytest.fixture
def world(app, owner, other_manager, directory, make_pdf):
    """Three documents of the owner in different states plus one foreign document."""
    draft = app.intake.register_document(owner, "Draft", "draft.pdf", make_pdf())
    routed = app.intake.register_document(owner, "Routed", "routed.pdf", make_pdf())
    ready = app.intake.register_document(owner, "Ready", "ready.pdf", make_pdf())
    foreign = app.intake.register_document(other_manager, "Foreign", "foreign.pdf", make_pdf())

    app.lifecycle.assign(owner, routed.id, ["alice@example.com", "bob@example.com"])
    app.lifecycle.assign(owner, ready.id, ["alice@example.com"])
    alice = directory.identity("alice@example.com")
    bob = directory.identity("bob@example.com")
    app.lifecycle.submit_signature(alice, routed.id, [_field("A")], [])
    app.lifecycle.submit_signature(alice, ready.id, [_field("A")], [])
    return {"draft": draft, "routed": routed, "ready": ready, "foreign": foreign, "alice": alice, "bob": bob}


def test_visibility(app, owner, world, directory) -> None:
    titles = [d.title for d in app.queries.documents_visible_to(owner)]
    assert titles == ["Ready", "Routed", "Draft"]
    assert {d.title for d in app.queries.documents_visible_to(world["bob"])} == {"Routed"}
    assert app.queries.documents_visible_to(directory.identity("eve@example.com")) == []


def test_get_document_access(app, owner, world, directory) -> None:
    details = app.queries.get_document(world["bob"], world["routed"].id)
    assert {r.recipient_email for r in details.recipients} == {"alice@example.com", "bob@example.com"}
    with pytest.raises(AccessDenied):
        app.queries.get_document(world["bob"], world["ready"].id)
    with pytest.raises(AccessDenied):
        app.queries.get_document(owner, world["foreign"].id)
    with pytest.raises(NotFound):
        app.queries.get_document(owner, 999)


def test_recipient_lists(app, world) -> None:
    alice, bob = world["alice"], world["bob"]
    assert [r.recipient_status for r in app.queries.assigned_to_me(alice)] == [RecipientStatus.SIGNED] * 2
    assert app.queries.assigned_to_sign(alice) == []
    assert [r.document.title for r in app.queries.assigned_to_sign(bob)] == ["Routed"]
    assert app.queries.sent_back_to_me(bob) == []


def test_owner_lists(app, owner, world) -> None:
    assert [d.title for d in app.queries.owned_documents(owner)] == ["Ready", "Routed", "Draft"]
    assert [d.title for d in app.queries.waiting_confirmation(owner)] == ["Ready"]

    app.lifecycle.send_back(owner, world["ready"].id, "fix it")
    assert [d.title for d in app.queries.sent_back_for_signing(owner)] == ["Ready"]
    rows = app.queries.sent_back_for_signing(world["alice"])
    assert [(r.document.title, r.revision_note) for r in rows] == [("Ready", "fix it")]
    assert app.queries.waiting_confirmation(owner) == []


def test_dashboards(app, owner, world) -> None:
    stats = app.queries.dashboard_stats(owner)
    assert isinstance(stats, ManagementDashboard)
    assert stats.total_documents == 3
    assert stats.drafts == 1
    assert stats.pending_signatures == 1      # Routed: bob pending
    assert stats.signed == 2                  # Routed and Ready have a signed pair
    assert stats.waiting_confirmation == 1    # Ready
    assert stats.sent_for_signing == 1        # Routed

    alice_stats = app.queries.dashboard_stats(world["alice"])
    assert isinstance(alice_stats, RecipientDashboard)
    assert (alice_stats.pending, alice_stats.draft, alice_stats.signed) == (0, 0, 2)
    bob_stats = app.queries.dashboard_stats(world["bob"])
    assert (bob_stats.pending, bob_stats.draft, bob_stats.signed) == (1, 0, 0)
