# /note-polish-backend/app/services/storage_service.py

"""
Startup-time selection of the blob backend.

Exactly one `BlobStore` is built per process, chosen by configuration
presence (a configured bucket selects object storage, otherwise the database
backend is used). Request handlers receive it through `get_blob_store` and
never look at which backend is behind it.
"""

import logging
from functools import lru_cache
from typing import Callable

from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings

from .storage_helpers.base import BlobStore
from .storage_helpers.database_blob_store import DatabaseBlobStore
from .storage_helpers.object_storage_blob_store import ObjectStorageBlobStore

logger = logging.getLogger(__name__)


def build_blob_store(settings: Settings, session_factory: Callable[[], Session]) -> BlobStore:
    if settings.uses_object_storage:
        store: BlobStore = ObjectStorageBlobStore(settings)
    else:
        store = DatabaseBlobStore(session_factory)
    logger.info(f"Blob storage backend selected: {store.backend_name}")
    return store


@lru_cache
def get_blob_store() -> BlobStore:
    """FastAPI dependency / process singleton for the selected backend."""
    from app.db.database import SessionLocal

    return build_blob_store(get_settings(), SessionLocal)
