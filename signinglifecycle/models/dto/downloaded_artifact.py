from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DownloadedArtifact:
    """Bytes handed out by a download, with a suggested file name."""
    filename: str
    content: bytes
    media_type: str = "application/pdf"
    is_signed: bool = False
