"""Filesystem implementation of IBlobStore.

Stores blobs below ``StorageConfig.upload_dir`` with one sub-directory per area:

    <upload_dir>/originals/...
    <upload_dir>/signatures/...
    <upload_dir>/signed/...
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
import uuid
from pathlib import Path, PurePosixPath

from core.common.errors import ArtifactMissing
from core.config.config_service import StorageConfig
from core.contracts.blob_store import IBlobStore

logger = logging.getLogger(__name__)


class FilesystemBlobStore(IBlobStore):
    """Local filesystem implementation of IBlobStore."""

    def __init__(self, config: StorageConfig):
        """
        Initialize filesystem storage.

        Args:
            config: Storage section; only ``upload_dir`` is used here
        """
        self._root = Path(config.upload_dir).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, key: str) -> Path:
        """Map a relative key to a path below the root; reject anything escaping it."""
        rel = PurePosixPath(str(key).replace("\\", "/"))
        if not str(key) or rel.is_absolute() or ".." in rel.parts:
            raise ArtifactMissing(f"invalid blob key: {key!r}")
        return self._root.joinpath(*rel.parts)

    def new_key(self, area: str, *, suffix: str = "", prefix: str = "") -> str:
        """Allocate ``<area>/<prefix>-<millis>-<random><suffix>``."""
        stem = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
        name = f"{prefix}-{stem}" if prefix else stem
        return f"{area.strip('/')}/{name}{suffix}"

    def write_bytes(self, key: str, data: bytes) -> str:
        """Write atomically (temp file + rename) so readers never see partial blobs."""
        dest = self._path_for(key)
        dest.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=dest.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, dest)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Blob written: %s (%d bytes)", key, len(data))
        return key

    def read_bytes(self, key: str) -> bytes:
        path = self._path_for(key)
        if not path.is_file():
            raise ArtifactMissing(f"blob not found: {key}")
        return path.read_bytes()

    def exists(self, key: str) -> bool:
        try:
            return self._path_for(key).is_file()
        except ArtifactMissing:
            return False

    def delete(self, key: str) -> bool:
        try:
            path = self._path_for(key)
        except ArtifactMissing:
            return False
        if not path.is_file():
            return False
        path.unlink()
        return True
