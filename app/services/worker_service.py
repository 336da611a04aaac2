# /note-polish-backend/app/services/worker_service.py

"""
The worker side of the generation lifecycle.

Only code going through `WorkerGateway` moves a generation along
`queued -> processing -> processed | failed`. Each callback is conditional on
`processing`, so a generation the owner deleted (or that another worker
reclaimed and finished) is never resurrected or overwritten.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from app.db.models.generation_models import Generation
from app.models.generation_model import GenerationStatus

from .database_helpers.generation_repository_sql import GenerationRepositorySQL
from .storage_helpers.base import BlobStore

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 2000


@dataclass(frozen=True)
class ClaimedJob:
    """
    Detached copy of a claimed generation. The worker keeps using it after the
    record itself may have been deleted by its owner.
    """
    id: str
    owner_id: str
    input_text: Optional[str] = None
    input_files: List[str] = field(default_factory=list)
    style: Dict = field(default_factory=dict)

    @property
    def prompt(self) -> str:
        return (self.style.get("snapshot_prompt") or "").strip()

    @classmethod
    def from_record(cls, record: Generation) -> "ClaimedJob":
        return cls(
            id=record.id,
            owner_id=record.owner_id,
            input_text=record.input_text,
            input_files=list(record.input_files or []),
            style=dict(record.style or {}),
        )


class WorkerGateway:
    def __init__(self, repo: GenerationRepositorySQL, blob_store: BlobStore, stale_after: timedelta = timedelta(minutes=10)):
        self.repo = repo
        self.blob_store = blob_store
        self.stale_after = stale_after

    def claim_next(self) -> Optional[ClaimedJob]:
        """Claims the oldest queued job, or one whose worker stopped heartbeating."""
        stale_before = datetime.now(timezone.utc) - self.stale_after
        record = self.repo.claim_next(stale_before)
        if record is None:
            return None
        job = ClaimedJob.from_record(record)
        logger.info(f"Claimed generation {job.id}")
        return job

    def heartbeat(self, generation_id: str) -> bool:
        return self.repo.touch(generation_id, GenerationStatus.PROCESSING.value) == 1

    def complete(self, job: ClaimedJob, output_files: List[str], preview_images: Optional[List[str]] = None) -> bool:
        """
        Marks the job processed. Returns False when the record is no longer
        `processing`; the output blobs written for it are then deleted so they
        do not outlive a record that cannot reference them.
        """
        affected = self.repo.conditional_update(
            job.id,
            job.owner_id,
            expected_status=GenerationStatus.PROCESSING.value,
            patch={
                "status": GenerationStatus.PROCESSED.value,
                "output_files": list(output_files),
                "preview_images": list(preview_images) if preview_images else None,
                "error": None,
            },
        )
        if affected == 1:
            logger.info(f"Generation {job.id} processed with {len(output_files)} output file(s)")
            return True

        logger.warning(f"Generation {job.id} left 'processing' before completion; discarding its outputs")
        for key in output_files:
            try:
                self.blob_store.delete(key)
            except Exception as e:
                logger.error(f"Could not delete discarded output {key}: {e}")
        return False

    def fail(self, job: ClaimedJob, error: str) -> bool:
        affected = self.repo.conditional_update(
            job.id,
            job.owner_id,
            expected_status=GenerationStatus.PROCESSING.value,
            patch={"status": GenerationStatus.FAILED.value, "error": (error or "Job failed")[:MAX_ERROR_LENGTH]},
        )
        if affected == 1:
            logger.info(f"Generation {job.id} failed: {error}")
        else:
            logger.warning(f"Generation {job.id} left 'processing' before it could be marked failed")
        return affected == 1
