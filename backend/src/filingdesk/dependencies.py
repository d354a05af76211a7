"""FastAPI dependency providers for core services.

Services are built per request on the request's session. The upload store
is a process-wide singleton.
"""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .documents.checklist import ChecklistEngine
from .documents.review import DocumentReviewPipeline
from .documents.version_store import DocumentVersionStore
from .domain.documents.ports import UploadStorePort
from .filings.service import FilingLifecycleManager
from .infrastructure.storage import S3UploadStore, load_storage_config
from .workers.celery_app import celery_app

logger = logging.getLogger(__name__)

_upload_store: Optional[UploadStorePort] = None


def get_upload_store() -> UploadStorePort:
    """Get or create the upload store singleton."""
    global _upload_store

    if _upload_store is None:
        _upload_store = S3UploadStore.from_config(load_storage_config())
        logger.info("Initialized upload store")

    return _upload_store


def get_version_store(
    db: Session = Depends(get_db),
    upload_store: UploadStorePort = Depends(get_upload_store),
) -> DocumentVersionStore:
    return DocumentVersionStore(db, upload_store)


def get_checklist_engine(
    db: Session = Depends(get_db),
    version_store: DocumentVersionStore = Depends(get_version_store),
) -> ChecklistEngine:
    return ChecklistEngine(db, version_store)


def get_filing_manager(db: Session = Depends(get_db)) -> FilingLifecycleManager:
    return FilingLifecycleManager(db)


def get_review_pipeline(db: Session = Depends(get_db)) -> DocumentReviewPipeline:
    return DocumentReviewPipeline(db)


def kick_notification_dispatch() -> None:
    """Enqueue an outbox dispatch. Best effort; beat picks up anything missed.

    Meant to run as a BackgroundTask, i.e. after the request committed.
    """
    if not settings.DISPATCH_NOTIFICATIONS_ON_COMMIT:
        return

    try:
        celery_app.send_task("notifications.dispatch_outbox")
    except Exception:
        logger.warning("Could not enqueue notification dispatch", exc_info=True)
