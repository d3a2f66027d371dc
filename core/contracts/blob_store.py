"""Blob store abstraction.

Byte-level storage for original PDFs, stamped PDFs and signature images,
addressed by relative keys such as ``originals/<name>.pdf``. Allows switching
between local filesystem, S3, Azure Blob, etc.

Contract: a blob is readable immediately after ``write_bytes`` returns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IBlobStore(ABC):
    """Abstract byte store."""

    @abstractmethod
    def new_key(self, area: str, *, suffix: str = "", prefix: str = "") -> str:
        """
        Allocate a fresh, unused key inside *area* (e.g. ``"signed"``).

        Args:
            area: Logical folder
            suffix: File extension including the dot (e.g. ``".pdf"``)
            prefix: Optional name prefix (e.g. ``"signed-12"``)
        """
        raise NotImplementedError

    @abstractmethod
    def write_bytes(self, key: str, data: bytes) -> str:
        """Persist *data* under *key* and return the key."""
        raise NotImplementedError

    @abstractmethod
    def read_bytes(self, key: str) -> bytes:
        """
        Return the blob stored under *key*.

        Raises:
            ArtifactMissing: if no blob exists for *key*
        """
        raise NotImplementedError

    @abstractmethod
    def exists(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove the blob; return False if it did not exist."""
        raise NotImplementedError
