"""
===============================================================================
NotificationDispatcher – fire-and-forget delivery after commit
-------------------------------------------------------------------------------
Notifications are handed to a small worker pool once the transition that
caused them has committed. Delivery failures are logged and swallowed; they
never reach the caller of a lifecycle operation.
===============================================================================
"""
from __future__ import annotations
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Iterable, Optional, Set

from core.contracts.notifier import INotifier, Notification

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Schedules INotifier.send calls on a thread pool."""

    def __init__(self, notifier: INotifier, *, workers: int = 2, enabled: bool = True) -> None:
        self._notifier = notifier
        self._enabled = enabled
        self._executor = ThreadPoolExecutor(max_workers=max(1, int(workers)), thread_name_prefix="notify")
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()

    def dispatch(self, notifications: Iterable[Notification]) -> None:
        if not self._enabled:
            return
        for n in notifications:
            fut = self._executor.submit(self._deliver, n)
            with self._lock:
                self._pending.add(fut)
            fut.add_done_callback(self._forget)

    def _deliver(self, notification: Notification) -> None:
        try:
            self._notifier.send(notification)
        except Exception:
            logger.exception(
                "Notification %s for document %s to %s failed",
                notification.template.value, notification.document_id, notification.recipient_address,
            )

    def _forget(self, fut: Future) -> None:
        with self._lock:
            self._pending.discard(fut)

    def wait_idle(self, timeout: Optional[float] = None) -> None:
        """Block until every scheduled notification has been attempted."""
        with self._lock:
            pending = set(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
