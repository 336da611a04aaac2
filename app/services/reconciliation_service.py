# /note-polish-backend/app/services/reconciliation_service.py

"""
Orphaned-blob sweep.

The compensating delete in `ingestion_service` covers request-level failures,
but a process crash between `put` and the metadata update still leaves a blob
no generation references. This sweep deletes such blobs once they are older
than a grace period; the grace period keeps it clear of uploads whose attach
step is still in flight.

Run periodically with `python -m app.services.reconciliation_service`.
"""

import logging
import sys
from datetime import datetime, timedelta, timezone
from typing import List

from app.core.config import get_settings
from app.core.logging_config import configure_logging

from .database_helpers.generation_repository_sql import GenerationRepositorySQL
from .storage_helpers.base import BlobStore

logger = logging.getLogger(__name__)


def sweep_orphans(repo: GenerationRepositorySQL, blob_store: BlobStore, grace: timedelta) -> List[str]:
    """
    Deletes every blob older than `grace` that no generation references.

    Returns:
        The keys that were deleted.
    """
    older_than = datetime.now(timezone.utc) - grace
    candidates = blob_store.list_keys(older_than)
    # Read references after listing, so a key attached in between is still protected.
    referenced = repo.iter_referenced_keys()

    deleted: List[str] = []
    for key in candidates:
        if key in referenced:
            continue
        try:
            blob_store.delete(key)
            deleted.append(key)
        except Exception as e:
            logger.error(f"Orphan sweep could not delete {key}: {e}")

    logger.info(f"Orphan sweep checked {len(candidates)} blob(s), deleted {len(deleted)}")
    return deleted


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)

    from app.db.database import SessionLocal
    from app.services.storage_service import get_blob_store

    session = SessionLocal()
    try:
        sweep_orphans(
            GenerationRepositorySQL(session),
            get_blob_store(),
            timedelta(minutes=settings.orphan_grace_minutes),
        )
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
