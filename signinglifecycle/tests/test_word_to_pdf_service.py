"""WordToPdfService pagination and rejection."""
from __future__ import annotations

from io import BytesIO

import docx
import pytest
from pypdf import PdfReader

from core.common.errors import UploadRejected
from signinglifecycle.logic.services.word_to_pdf_service import WordToPdfService


def _docx(paragraphs) -> bytes:
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buf = BytesIO()
    document.save(buf)
    return buf.getvalue()


def test_long_documents_are_paginated() -> None:
    pdf = WordToPdfService().convert(_docx(f"Line {i}" for i in range(120)))
    reader = PdfReader(BytesIO(pdf))
    # 47 lines fit between y=750 and y=50 at 15pt leading
    assert len(reader.pages) == 3
    assert "Line 0" in reader.pages[0].extract_text()
    assert "Line 119" in reader.pages[2].extract_text()
    page = reader.pages[0]
    assert (float(page.mediabox.width), float(page.mediabox.height)) == (612.0, 792.0)


def test_long_lines_are_wrapped() -> None:
    pdf = WordToPdfService().convert(_docx(["word " * 40]))
    text = PdfReader(BytesIO(pdf)).pages[0].extract_text()
    assert len(text.strip().splitlines()) >= 2


def test_empty_document_yields_one_blank_page() -> None:
    assert len(PdfReader(BytesIO(WordToPdfService().convert(_docx([])))).pages) == 1


def test_non_docx_is_rejected() -> None:
    with pytest.raises(UploadRejected):
        WordToPdfService().convert(b"not a zip", filename="x.doc")
