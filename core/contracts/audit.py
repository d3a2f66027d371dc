"""core/contracts/audit.py
======================

Audit trail contracts.

Keeps audit sinks replaceable (SQLite table, file, remote) while keeping a
single place where audit semantics are defined.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Mapping, Optional


class AuditAction(str, Enum):
    """Audited actions of the signing lifecycle."""

    UPLOADED = "uploaded"
    SIGNATURE_UPLOADED = "signature_uploaded"
    ASSIGNED = "assigned"
    DRAFTED = "drafted"
    SIGNED = "signed"
    SENT_BACK = "sent_back"
    CONFIRMED = "confirmed"
    DOWNLOADED = "downloaded"


class IAuditLog(ABC):
    """Write-mostly audit trail."""

    @abstractmethod
    def record(
        self,
        action: AuditAction,
        *,
        user_id: Optional[int],
        document_id: Optional[int] = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        """Write an audit event."""
