"""Default notifier: writes notifications to the log instead of sending mail."""

from __future__ import annotations

import logging

from core.contracts.notifier import INotifier, Notification

logger = logging.getLogger(__name__)


class LoggingNotifier(INotifier):
    """Log each notification; the one-time secret is never logged."""

    def send(self, notification: Notification) -> None:
        logger.info(
            "Notify %s: %s for document %s (%r)%s",
            notification.recipient_address,
            notification.template.value,
            notification.document_id,
            notification.document_title,
            " [with temporary credentials]" if notification.secret else "",
        )
