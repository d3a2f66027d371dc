"""
===============================================================================
WordToPdfService – render a Word document's text as a PDF
-------------------------------------------------------------------------------
Strategy
    - Read the paragraphs (and table cell text) with python-docx.
    - Draw them with reportlab on US-Letter pages: 12 pt Helvetica, 15 pt
      leading, first baseline at y=750, left margin 50, new page below y=50.
    - Lines longer than 80 characters are wrapped.

Layout and formatting are not preserved; the result is a text rendition that
recipients can place fields on. Legacy binary .doc files are not readable by
python-docx and are rejected.
===============================================================================
"""
from __future__ import annotations

import logging
import textwrap
import zipfile
from io import BytesIO
from typing import Iterator, List

from docx import Document as open_docx
from docx.opc.exceptions import PackageNotFoundError
from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

from core.common.errors import UploadRejected

logger = logging.getLogger(__name__)

PAGE_SIZE = LETTER              # 612 x 792 pt
LEFT_MARGIN = 50
TOP_BASELINE = 750
BOTTOM_LIMIT = 50
FONT_NAME = "Helvetica"
FONT_SIZE = 12
LINE_HEIGHT = 15
WRAP_WIDTH = 80


class WordToPdfService:
    """Convert DOCX bytes into PDF bytes (pure python, no office suite)."""

    def convert(self, content: bytes, *, filename: str = "") -> bytes:
        """
        Convert *content* (a .docx file) to PDF.

        Raises:
            UploadRejected: if python-docx cannot open the file
        """
        lines = self._extract_lines(content, filename=filename)
        return self._render(lines)

    # ---- extraction ---- #
    @staticmethod
    def _extract_lines(content: bytes, *, filename: str) -> List[str]:
        try:
            doc = open_docx(BytesIO(content))
        except (zipfile.BadZipFile, PackageNotFoundError, KeyError, ValueError) as ex:
            raise UploadRejected(
                f"cannot read Word document {filename!r}: {ex}",
                public_message="The Word document could not be read. Please upload a .docx or PDF file.",
            ) from ex

        texts: List[str] = [p.text for p in doc.paragraphs]
        for table in doc.tables:
            for row in table.rows:
                texts.append("  ".join(cell.text.strip() for cell in row.cells))

        lines: List[str] = []
        for text in texts:
            for raw in text.splitlines():
                if raw.strip():
                    lines.extend(_wrap(raw))
        logger.debug("Extracted %d line(s) from %s", len(lines), filename or "<docx>")
        return lines

    # ---- rendering ---- #
    @staticmethod
    def _render(lines: List[str]) -> bytes:
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=PAGE_SIZE, invariant=1)
        c.setFont(FONT_NAME, FONT_SIZE)
        y = TOP_BASELINE
        for line in lines:
            if y < BOTTOM_LIMIT:
                c.showPage()
                c.setFont(FONT_NAME, FONT_SIZE)
                y = TOP_BASELINE
            c.drawString(LEFT_MARGIN, y, line)
            y -= LINE_HEIGHT
        c.showPage()
        c.save()
        return buf.getvalue()


def _wrap(line: str) -> Iterator[str]:
    yield from (textwrap.wrap(line, width=WRAP_WIDTH) or [line[:WRAP_WIDTH]])
