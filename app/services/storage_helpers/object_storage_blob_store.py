# /note-polish-backend/app/services/storage_helpers/object_storage_blob_store.py

"""
External object-storage backend (Google Cloud Storage).

Keys are free-form object names; when the caller does not supply one the
store uses `<prefix>/<uuid4>`. Reads are served through V4 signed GET URLs
that expire after `SIGNED_URL_TTL_MINUTES`, so the API never proxies bytes.

The storage client is resolved lazily on first use and then cached for the
life of the process. If the backend was selected (a bucket is configured) but
the rest of its configuration is missing or unreadable, that outcome is cached
too: every operation fails with the same `StorageUnavailable` instead of the
process refusing to start.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Any, List, Optional, Tuple

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage

from app.core.config import Settings
from app.core.exceptions import NotFound, StorageFailure, StorageUnavailable

from .base import DEFAULT_CONTENT_TYPE, BlobStore

logger = logging.getLogger(__name__)


class ObjectStorageBlobStore(BlobStore):
    backend_name = "object-storage"

    def __init__(self, settings: Settings, bucket: Optional[Any] = None):
        """
        :param settings: process settings; `gcs_bucket` must be set.
        :param bucket: an already-built bucket handle (tests inject a fake here).
        """
        self._settings = settings
        self._bucket = bucket
        self._lock = threading.Lock()
        self._unavailable: Optional[StorageUnavailable] = None

    # --- Client Resolution ---

    def _get_bucket(self):
        if self._bucket is not None:
            return self._bucket

        with self._lock:
            if self._unavailable is not None:
                raise self._unavailable
            if self._bucket is None:
                try:
                    self._bucket = self._build_bucket()
                except StorageUnavailable as e:
                    logger.error(f"Object storage unavailable: {e.message}")
                    self._unavailable = e
                    raise
        return self._bucket

    def _build_bucket(self):
        cfg = self._settings
        missing = [
            name
            for name, value in (("GCS_BUCKET", cfg.gcs_bucket), ("GCS_CREDENTIALS_FILE", cfg.gcs_credentials_file))
            if not value
        ]
        if missing:
            raise StorageUnavailable(f"Missing env var {', '.join(missing)}")

        try:
            client = storage.Client.from_service_account_json(cfg.gcs_credentials_file)
        except (OSError, ValueError) as e:
            raise StorageUnavailable(f"Object storage credentials could not be loaded: {e}")

        logger.info(f"Object storage initialised for bucket '{cfg.gcs_bucket}'")
        return client.bucket(cfg.gcs_bucket)

    # --- BlobStore Interface ---

    def put(
        self,
        data: bytes,
        content_type: str,
        desired_key: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> str:
        bucket = self._get_bucket()
        key = desired_key or f"{self._settings.gcs_key_prefix}/{uuid.uuid4()}"

        blob = bucket.blob(key)
        if filename:
            blob.metadata = {"filename": filename}
        try:
            blob.upload_from_string(data, content_type=content_type or DEFAULT_CONTENT_TYPE)
        except gcs_exceptions.GoogleAPIError as e:
            logger.error(f"Object storage upload failed for {key}: {e}")
            raise StorageFailure(f"Failed to upload file to storage: {e}")
        return key

    def resolve_url(self, key: str) -> str:
        blob = self._get_bucket().blob(key)
        try:
            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(minutes=self._settings.signed_url_ttl_minutes),
                method="GET",
            )
        except (gcs_exceptions.GoogleAPIError, AttributeError, ValueError) as e:
            raise StorageFailure(f"Failed to sign URL: {e}")

    def get_bytes(self, key: str) -> Tuple[bytes, str]:
        bucket = self._get_bucket()
        try:
            blob = bucket.get_blob(key)
            if blob is None:
                raise NotFound("File not found", details={"key": key})
            data = blob.download_as_bytes()
        except gcs_exceptions.NotFound:
            raise NotFound("File not found", details={"key": key})
        except gcs_exceptions.GoogleAPIError as e:
            raise StorageFailure(f"Failed to download file from storage: {e}")

        content_type = (blob.content_type or "").strip() or DEFAULT_CONTENT_TYPE
        return data, content_type

    def delete(self, key: str) -> None:
        try:
            self._get_bucket().blob(key).delete()
        except gcs_exceptions.NotFound:
            return
        except gcs_exceptions.GoogleAPIError as e:
            raise StorageFailure(f"Failed to delete file from storage: {e}")

    def list_keys(self, older_than: datetime) -> List[str]:
        bucket = self._get_bucket()
        try:
            return [
                blob.name
                for blob in bucket.list_blobs(prefix=f"{self._settings.gcs_key_prefix}/")
                if blob.time_created is not None and blob.time_created < older_than
            ]
        except gcs_exceptions.GoogleAPIError as e:
            raise StorageFailure(f"Failed to list files in storage: {e}")
