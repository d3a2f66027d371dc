"""Error taxonomy of the signing core.

Every domain failure derives from :class:`SigningError`. ``str(error)`` carries
the full detail for logs; ``public_message`` is safe to hand to untrusted
callers (no paths, no internals). Infrastructure failures (``sqlite3.Error``,
``OSError``) are deliberately not wrapped.
"""
from __future__ import annotations

from typing import Optional


class SigningError(Exception):
    """Base exception for the signing core."""

    code: str = "signing_error"
    default_public_message: str = "The request could not be processed."

    def __init__(self, detail: str = "", *, public_message: Optional[str] = None) -> None:
        super().__init__(detail or self.default_public_message)
        self.public_message = public_message or self.default_public_message


class NotFound(SigningError):
    """Document or (document, recipient) pair does not exist."""

    code = "not_found"
    default_public_message = "Document not found."


class NotAssigned(NotFound):
    """No assignment exists for the (document, recipient) pair."""

    code = "not_assigned"
    default_public_message = "You are not assigned to this document."


class AccessDenied(SigningError):
    """Caller is neither the owner nor an assigned recipient (or lacks the role)."""

    code = "access_denied"
    default_public_message = "Document not found or access denied."


class InvalidTransition(SigningError):
    """A state-machine guard failed."""

    code = "invalid_transition"
    default_public_message = "This action is not allowed in the document's current state."


class InvalidAnnotation(SigningError):
    """An annotation carries a non-numeric coordinate, size or page number."""

    code = "invalid_annotation"
    default_public_message = "One of the placed fields has an invalid position or size."


class UnsupportedImageFormat(SigningError):
    """A signature image is neither PNG nor JPEG."""

    code = "unsupported_image_format"
    default_public_message = "Signature images must be PNG or JPEG."


class ArtifactMissing(SigningError):
    """A referenced blob (original, signed PDF or signature image) is absent."""

    code = "artifact_missing"
    default_public_message = "Document file not found."


class UploadRejected(SigningError):
    """An uploaded file has a disallowed type, is too large or unreadable."""

    code = "upload_rejected"
    default_public_message = "The uploaded file was rejected."
