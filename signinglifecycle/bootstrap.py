"""
===============================================================================
Signing lifecycle – composition root
-------------------------------------------------------------------------------
Builds database, repositories, blob store, stamping engine, notification
dispatcher and services from an AppConfig plus the host's identity directory
and (optionally) notifier. There is no module level singleton; hosts keep the
returned SigningApp and call close() on shutdown.
===============================================================================
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from core.audit.audit_log import AuditLog
from core.common.db_interface import SQLiteDatabase
from core.config.config_service import AppConfig
from core.contracts.identity import IIdentityDirectory
from core.contracts.notifier import INotifier
from signinglifecycle.logic.adapters.filesystem_blob_store import FilesystemBlobStore
from signinglifecycle.logic.adapters.logging_notifier import LoggingNotifier
from signinglifecycle.logic.policy.access_policy import AccessPolicy
from signinglifecycle.logic.repository.sqlite.annotation_repository_sqlite import AnnotationRepositorySQLite
from signinglifecycle.logic.repository.sqlite.assignment_repository_sqlite import AssignmentRepositorySQLite
from signinglifecycle.logic.repository.sqlite.document_repository_sqlite import DocumentRepositorySQLite
from signinglifecycle.logic.services.annotation_store import AnnotationStore
from signinglifecycle.logic.services.assignment_tracker import AssignmentTracker
from signinglifecycle.logic.services.document_intake_service import DocumentIntakeService
from signinglifecycle.logic.services.document_query_service import DocumentQueryService
from signinglifecycle.logic.services.lifecycle_controller import LifecycleController
from signinglifecycle.logic.services.notification_dispatcher import NotificationDispatcher
from stamping.logic.pdf_stamper import StampingEngine

logger = logging.getLogger(__name__)


@dataclass
class SigningApp:
    """Wired services of the signing lifecycle."""
    db: SQLiteDatabase
    blobs: FilesystemBlobStore
    audit: AuditLog
    dispatcher: NotificationDispatcher
    intake: DocumentIntakeService
    queries: DocumentQueryService
    lifecycle: LifecycleController

    def close(self) -> None:
        self.dispatcher.shutdown(wait=True)
        self.db.close()


def build_signing_app(
    config: AppConfig,
    directory: IIdentityDirectory,
    notifier: Optional[INotifier] = None,
) -> SigningApp:
    db = SQLiteDatabase(config.database.path)

    documents = DocumentRepositorySQLite(db)
    assignments = AssignmentRepositorySQLite(db)
    annotations = AnnotationRepositorySQLite(db)
    audit = AuditLog(db)

    blobs = FilesystemBlobStore(config.storage)
    engine = StampingEngine(blobs)
    dispatcher = NotificationDispatcher(
        notifier or LoggingNotifier(),
        workers=config.notifications.workers,
        enabled=config.notifications.enabled,
    )

    access = AccessPolicy()
    tracker = AssignmentTracker(assignments)
    store = AnnotationStore(annotations, tracker)
    queries = DocumentQueryService(documents, assignments, access=access)
    intake = DocumentIntakeService(db, documents, blobs, audit, config.storage, access=access)
    lifecycle = LifecycleController(
        db, documents, tracker, store, engine, blobs, directory, dispatcher, audit, queries,
        access=access,
    )
    logger.info("%s signing core ready (db=%s, storage=%s)",
                config.general.app_name, config.database.path, blobs.root)
    return SigningApp(
        db=db,
        blobs=blobs,
        audit=audit,
        dispatcher=dispatcher,
        intake=intake,
        queries=queries,
        lifecycle=lifecycle,
    )
