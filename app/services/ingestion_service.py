# /note-polish-backend/app/services/ingestion_service.py

"""
Attaching and detaching uploaded files on a `pending` generation.

Blob storage and generation records are not transactionally coupled, so the
attach path is a two-phase write: bytes first, then the conditional metadata
update. When the second phase fails for any reason, including a lost race that
moved the record out of `pending`, every blob written in the same call is
deleted again before the error propagates.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from fastapi import Depends

from app.core.config import Settings, get_settings
from app.core.exceptions import FileTooLarge, InvalidState, NotFound, ValidationFailed
from app.models.generation_model import GenerationStatus

from .database_helpers.generation_repository_sql import GenerationRepositorySQL
from .database_service import DatabaseService, get_db_service
from .generation_service import EDIT_CONFLICT_MESSAGE
from .storage_helpers.base import BlobStore
from .storage_service import get_blob_store

logger = logging.getLogger(__name__)

ALLOWED_EXACT_TYPES = ("application/pdf",)
ALLOWED_TYPE_PREFIXES = ("image/",)


@dataclass
class Upload:
    """One file as received by the API, fully buffered in memory."""
    data: bytes
    content_type: str
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


def is_allowed_content_type(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    content_type = content_type.split(";", 1)[0].strip().lower()
    return content_type in ALLOWED_EXACT_TYPES or content_type.startswith(ALLOWED_TYPE_PREFIXES)


class IngestionService:
    def __init__(self, repo: GenerationRepositorySQL, blob_store: BlobStore, settings: Settings):
        self.repo = repo
        self.blob_store = blob_store
        self.settings = settings

    def validate_upload(self, upload: Upload) -> None:
        """Type and size checks against the in-memory upload; touches no storage."""
        if not is_allowed_content_type(upload.content_type):
            raise ValidationFailed(f"Unsupported file type: {upload.content_type or 'unknown'}")
        if upload.size <= 0:
            raise ValidationFailed("Empty file")
        if upload.size > self.settings.max_file_bytes:
            raise FileTooLarge(upload.size, self.settings.max_file_bytes)

    def _require_pending(self, owner_id: str, generation_id: str):
        generation = self.repo.find_owned(generation_id, owner_id)
        if generation is None:
            raise NotFound()
        if generation.status != GenerationStatus.PENDING.value:
            raise InvalidState(EDIT_CONFLICT_MESSAGE)
        return generation

    def _raise_for_zero(self, owner_id: str, generation_id: str) -> None:
        if self.repo.find_owned(generation_id, owner_id) is None:
            raise NotFound()
        raise InvalidState(EDIT_CONFLICT_MESSAGE)

    def attach_files(self, owner_id: str, generation_id: str, uploads: List[Upload]) -> List[str]:
        """
        Stores every upload and appends the new keys to `input_files`.

        Returns:
            The keys written, in upload order.
        """
        if not uploads:
            raise ValidationFailed("No files provided")

        self._require_pending(owner_id, generation_id)
        for upload in uploads:
            self.validate_upload(upload)

        written: List[str] = []
        try:
            for upload in uploads:
                written.append(self.blob_store.put(upload.data, upload.content_type, filename=upload.filename))

            affected = self.repo.conditional_update(
                generation_id,
                owner_id,
                expected_status=GenerationStatus.PENDING.value,
                add_files=written,
            )
            if affected == 0:
                self._raise_for_zero(owner_id, generation_id)
        except Exception:
            self._compensate(generation_id, written)
            raise

        logger.info(f"Attached {len(written)} file(s) to generation {generation_id}")
        return written

    def detach_file(self, owner_id: str, generation_id: str, file_ref: str) -> str:
        """
        Removes one input file. `file_ref` may be the raw key or the URL the
        API handed out for it. The blob delete after a successful detach is
        best effort.
        """
        generation = self._require_pending(owner_id, generation_id)

        matched_key = None
        for key in generation.input_files or []:
            if file_ref == key or file_ref == self.blob_store.resolve_url(key):
                matched_key = key
                break
        if matched_key is None:
            raise NotFound("File not found")

        affected = self.repo.conditional_update(
            generation_id,
            owner_id,
            expected_status=GenerationStatus.PENDING.value,
            remove_files=[matched_key],
        )
        if affected == 0:
            self._raise_for_zero(owner_id, generation_id)

        try:
            self.blob_store.delete(matched_key)
        except Exception as e:
            logger.warning(f"Detached {matched_key} from {generation_id} but could not delete the blob: {e}")

        return matched_key

    def _compensate(self, generation_id: str, keys: List[str]) -> None:
        for key in keys:
            try:
                self.blob_store.delete(key)
                logger.info(f"Compensating delete of {key} after failed attach to {generation_id}")
            except Exception as e:
                logger.error(f"Compensating delete of {key} failed; blob is orphaned: {e}")


# --- DEPENDENCY PROVIDER ---
def get_ingestion_service(
    db: DatabaseService = Depends(get_db_service),
    blob_store: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
) -> IngestionService:
    return IngestionService(db.generation_repo, blob_store, settings)
