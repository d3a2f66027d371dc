"""Document and signature image intake."""
from __future__ import annotations

from io import BytesIO

import docx
import pytest
from pypdf import PdfReader

from core.common.errors import AccessDenied, UploadRejected
from core.contracts.audit import AuditAction
from signinglifecycle.models.document_status import DocumentStatus
from signinglifecycle.models.file_type import FileType


def _docx_bytes(*paragraphs: str) -> bytes:
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buf = BytesIO()
    document.save(buf)
    return buf.getvalue()


def test_register_pdf(app, owner, make_pdf) -> None:
    doc = app.intake.register_document(owner, "  Contract  ", "contract.pdf", make_pdf(2))
    assert doc.status is DocumentStatus.DRAFT
    assert doc.title == "Contract"
    assert doc.file_type is FileType.PDF
    assert doc.signed_file_key is None
    assert doc.original_file_key.startswith("originals/") and doc.original_file_key.endswith(".pdf")
    assert len(PdfReader(BytesIO(app.blobs.read_bytes(doc.original_file_key))).pages) == 2
    assert [e.action for e in app.audit.query(document_id=int(doc.id))] == [AuditAction.UPLOADED]


def test_title_defaults_to_file_stem(app, owner, make_pdf) -> None:
    assert app.intake.register_document(owner, "", "Quarterly Report.pdf", make_pdf()).title == "Quarterly Report"


def test_register_word_converts_to_pdf(app, owner) -> None:
    doc = app.intake.register_document(owner, "Memo", "memo.docx", _docx_bytes("Hello from Word", "Second line"))
    assert doc.file_type is FileType.WORD
    pdf = app.blobs.read_bytes(doc.original_file_key)
    text = PdfReader(BytesIO(pdf)).pages[0].extract_text()
    assert "Hello from Word" in text and "Second line" in text


@pytest.mark.parametrize("filename,content", [
    ("notes.txt", b"plain text"),
    ("legacy.doc", b"\xd0\xcf\x11\xe0 not a docx"),
    ("broken.pdf", b"%PDF-1.4 truncated"),
    ("empty.pdf", b""),
])
def test_rejected_documents(app, owner, filename, content) -> None:
    with pytest.raises(UploadRejected):
        app.intake.register_document(owner, "x", filename, content)
    assert app.queries.owned_documents(owner) == []


def test_size_limit(app, owner, make_pdf) -> None:
    app.intake._storage.max_file_size = 100
    with pytest.raises(UploadRejected) as excinfo:
        app.intake.register_document(owner, "big", "big.pdf", make_pdf(1))
    assert "maximum size" in excinfo.value.public_message


def test_only_management_registers(app, directory, make_pdf) -> None:
    with pytest.raises(AccessDenied):
        app.intake.register_document(directory.identity("alice@example.com"), "x", "x.pdf", make_pdf())


def test_upload_signature_image(app, directory, png_bytes, jpeg_bytes) -> None:
    alice = directory.identity("alice@example.com")
    png_key = app.intake.upload_signature_image(alice, "me.PNG", png_bytes)
    jpg_key = app.intake.upload_signature_image(alice, "me.jpeg", jpeg_bytes)
    assert png_key.startswith("signatures/") and png_key.endswith(".png")
    assert jpg_key.endswith(".jpeg")
    assert app.blobs.read_bytes(png_key) == png_bytes
    assert len(app.audit.query(user_id=alice.user_id, action=AuditAction.SIGNATURE_UPLOADED)) == 2


def test_signature_image_rules(app, directory, png_bytes) -> None:
    alice = directory.identity("alice@example.com")
    with pytest.raises(UploadRejected):
        app.intake.upload_signature_image(alice, "me.gif", png_bytes)
    app.intake._storage.max_signature_size = 10
    with pytest.raises(UploadRejected):
        app.intake.upload_signature_image(alice, "me.png", png_bytes)
