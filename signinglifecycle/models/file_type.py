from __future__ import annotations
from enum import Enum


class FileType(str, Enum):
    """Format the document was uploaded in (stored originals are always PDF)."""
    PDF = "pdf"
    WORD = "word"
