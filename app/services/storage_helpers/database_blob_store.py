# /note-polish-backend/app/services/storage_helpers/database_blob_store.py

"""
Embedded blob backend: file bytes live in the `stored_blobs` table.

Keys are generated by the store (uuid4 hex). Nothing can be pre-signed, so
URLs point at the internal streaming route `/files/{key}`.

Every operation opens its own short-lived session from the injected factory.
Blob writes are therefore never part of a request's generation transaction,
which mirrors the object-storage backend and is why the ingestion service
carries explicit compensation logic.
"""

import logging
import re
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFound, StorageFailure
from app.db.models.blob_models import StoredBlob

from .base import DEFAULT_CONTENT_TYPE, BlobStore

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[0-9a-f]{32}$")
FILES_ROUTE_PREFIX = "/files"


def is_valid_key(key: Optional[str]) -> bool:
    return bool(key) and bool(_KEY_PATTERN.match(key))


class DatabaseBlobStore(BlobStore):
    backend_name = "database"

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def put(
        self,
        data: bytes,
        content_type: str,
        desired_key: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> str:
        key = desired_key.lower() if desired_key and is_valid_key(desired_key.lower()) else uuid.uuid4().hex
        blob = StoredBlob(
            key=key,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            filename=filename,
            size=len(data),
            data=data,
        )
        session = self._session_factory()
        try:
            session.merge(blob)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database blob write failed for key {key}: {e}")
            raise StorageFailure(f"Failed to store file: {e}")
        finally:
            session.close()
        return key

    def resolve_url(self, key: str) -> str:
        return f"{FILES_ROUTE_PREFIX}/{key}"

    def get_bytes(self, key: str) -> Tuple[bytes, str]:
        if not is_valid_key(key):
            raise NotFound("File not found", details={"key": key})

        session = self._session_factory()
        try:
            blob = session.get(StoredBlob, key)
            if blob is None:
                raise NotFound("File not found", details={"key": key})
            return bytes(blob.data), blob.content_type or DEFAULT_CONTENT_TYPE
        except SQLAlchemyError as e:
            raise StorageFailure(f"Failed to read file: {e}")
        finally:
            session.close()

    def delete(self, key: str) -> None:
        if not is_valid_key(key):
            return

        session = self._session_factory()
        try:
            blob = session.get(StoredBlob, key)
            if blob is not None:
                session.delete(blob)
                session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageFailure(f"Failed to delete file: {e}")
        finally:
            session.close()

    def list_keys(self, older_than: datetime) -> List[str]:
        session = self._session_factory()
        try:
            stmt = select(StoredBlob.key).where(StoredBlob.created_at < older_than)
            return list(session.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            raise StorageFailure(f"Failed to list files: {e}")
        finally:
            session.close()
