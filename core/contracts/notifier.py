"""core/contracts/notifier.py
=========================

Notification contracts.

The signing core only decides *who* is told *what kind* of news about *which*
document. Template rendering and delivery (SMTP, queue, ...) live behind
:class:`INotifier`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


class TemplateKind(str, Enum):
    ASSIGNED = "assigned"
    SIGNED = "signed"
    SENT_BACK = "sent_back"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class Notification:
    recipient_address: str
    template: TemplateKind
    document_title: str
    document_id: int
    secret: Optional[str] = None
    recipient_name: str = ""
    context: Mapping[str, Any] = field(default_factory=dict)


class INotifier(ABC):
    """Delivery endpoint for notifications."""

    @abstractmethod
    def send(self, notification: Notification) -> None:
        """Deliver *notification*; may raise on delivery failure."""
