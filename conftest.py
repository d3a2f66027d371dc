"""Shared pytest fixtures: temp database and storage, generated PDFs/images, fake collaborators."""
from __future__ import annotations

import threading
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pytest
from PIL import Image
from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

from core.common.db_interface import SQLiteDatabase
from core.config.config_service import (
    AppConfig,
    DatabaseConfig,
    GeneralConfig,
    NotificationsConfig,
    StorageConfig,
)
from core.contracts.identity import Contact, IIdentityDirectory, Identity, ResolvedRecipient, UserRole
from core.contracts.notifier import INotifier, Notification
from signinglifecycle.bootstrap import SigningApp, build_signing_app
from signinglifecycle.logic.adapters.filesystem_blob_store import FilesystemBlobStore


# --------------------------------------------------------------------------- #
#  Fakes
# --------------------------------------------------------------------------- #

class FakeDirectory(IIdentityDirectory):
    """In-memory user directory; unknown addresses become external users with a secret."""

    def __init__(self) -> None:
        self._by_email: Dict[str, Contact] = {}
        self._next_id = 100

    def add(self, user_id: int, email: str, full_name: str = "") -> Contact:
        contact = Contact(user_id=user_id, email=email, full_name=full_name or email.split("@")[0])
        self._by_email[email] = contact
        return contact

    def resolve_recipient(self, email: str) -> ResolvedRecipient:
        known = self._by_email.get(email)
        if known is not None:
            return ResolvedRecipient(user_id=known.user_id, email=known.email, full_name=known.full_name)
        self._next_id += 1
        contact = self.add(self._next_id, email)
        return ResolvedRecipient(
            user_id=contact.user_id, email=email, full_name=contact.full_name,
            temporary_secret=f"temp-{contact.user_id}",
        )

    def contact_for(self, user_id: int) -> Optional[Contact]:
        for contact in self._by_email.values():
            if contact.user_id == user_id:
                return contact
        return None

    def identity(self, email: str, role: UserRole = UserRole.RECIPIENT) -> Identity:
        r = self.resolve_recipient(email)
        return Identity(user_id=r.user_id, role=role, email=r.email, full_name=r.full_name)


class RecordingNotifier(INotifier):
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: List[Notification] = []
        self._lock = threading.Lock()

    def send(self, notification: Notification) -> None:
        if self.fail:
            raise RuntimeError("smtp unreachable")
        with self._lock:
            self.sent.append(notification)


# --------------------------------------------------------------------------- #
#  Generated content
# --------------------------------------------------------------------------- #

def build_pdf(pages: int = 1, *, pagesize=LETTER, labels: Optional[Sequence[str]] = None) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=pagesize)
    for i in range(pages):
        label = labels[i] if labels else f"Page {i + 1}"
        c.setFont("Helvetica", 12)
        c.drawString(72, pagesize[1] - 72, label)
        c.showPage()
    c.save()
    return buf.getvalue()


def build_image(fmt: str = "PNG", size=(120, 40)) -> bytes:
    mode = "RGBA" if fmt == "PNG" else "RGB"
    img = Image.new(mode, size, (20, 40, 160, 255) if mode == "RGBA" else (20, 40, 160))
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture
def png_bytes() -> bytes:
    return build_image("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return build_image("JPEG")


# --------------------------------------------------------------------------- #
#  Infrastructure
# --------------------------------------------------------------------------- #

@pytest.fixture
def db(tmp_path: Path):
    database = SQLiteDatabase(tmp_path / "easysign.db")
    yield database
    database.close()


@pytest.fixture
def storage_config(tmp_path: Path) -> StorageConfig:
    return StorageConfig(upload_dir=tmp_path / "uploads")


@pytest.fixture
def blobs(storage_config: StorageConfig) -> FilesystemBlobStore:
    return FilesystemBlobStore(storage_config)


@pytest.fixture
def app_config(tmp_path: Path, storage_config: StorageConfig) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(path=tmp_path / "app.db"),
        storage=storage_config,
        notifications=NotificationsConfig(enabled=True, workers=2),
        general=GeneralConfig(),
    )


@pytest.fixture
def directory() -> FakeDirectory:
    d = FakeDirectory()
    d.add(1, "owner@example.com", "Olivia Owner")
    d.add(2, "other.manager@example.com", "Max Manager")
    return d


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def app(app_config: AppConfig, directory: FakeDirectory, notifier: RecordingNotifier) -> SigningApp:
    signing = build_signing_app(app_config, directory, notifier)
    yield signing
    signing.close()


@pytest.fixture
def owner() -> Identity:
    return Identity(user_id=1, role=UserRole.MANAGEMENT, email="owner@example.com", full_name="Olivia Owner")


@pytest.fixture
def other_manager() -> Identity:
    return Identity(user_id=2, role=UserRole.MANAGEMENT, email="other.manager@example.com")
