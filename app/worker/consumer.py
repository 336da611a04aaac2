# /note-polish-backend/app/worker/consumer.py

"""
Polling consumer for queued generations.

Run with `python -m app.worker.consumer`. The actual transformation is opaque
to this module: it is a callable `processor(job, data, content_type)` that
returns `(output_bytes, output_content_type)`, configured through
`WORKER_PROCESSOR` as `package.module:callable`.
"""

import importlib
import logging
import sys
import threading
import time
import uuid
from datetime import timedelta
from typing import Callable, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.logging_config import configure_logging
from app.services.database_helpers.generation_repository_sql import GenerationRepositorySQL
from app.services.storage_helpers.base import BlobStore
from app.services.worker_service import ClaimedJob, WorkerGateway

logger = logging.getLogger(__name__)

Processor = Callable[[ClaimedJob, bytes, str], Tuple[bytes, str]]

BATCH_SLEEP_SECONDS = 0.2
HEARTBEAT_SECONDS = 30.0


class JobError(Exception):
    """The job itself is unprocessable; recorded on the generation as its error."""


# --- Heartbeat ---

class _Heartbeat:
    """Keeps a claimed job's `updated_at` fresh so it is not reclaimed as stale."""

    def __init__(self, session_factory: Callable[[], Session], generation_id: str, interval: float):
        self._session_factory = session_factory
        self._generation_id = generation_id
        self._interval = interval
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=f"heartbeat-{generation_id}", daemon=True)

    def __enter__(self):
        self._thread.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._stop.set()
        self._thread.join(timeout=self._interval)

    def _run(self):
        while not self._stop.wait(self._interval):
            session = self._session_factory()
            try:
                GenerationRepositorySQL(session).touch(self._generation_id, "processing")
            except Exception as e:
                logger.warning(f"Heartbeat for {self._generation_id} failed: {e}")
            finally:
                session.close()


# --- Job Processing ---

def process_job(gateway: WorkerGateway, blob_store: BlobStore, job: ClaimedJob, processor: Processor) -> bool:
    """
    Runs one claimed job end to end and records the outcome.

    Returns:
        True when the job ended `processed`.
    """
    try:
        if not job.input_files:
            raise JobError("No input files attached")
        if not job.prompt:
            raise JobError("Missing snapshot_prompt")

        data, content_type = blob_store.get_bytes(job.input_files[0])
        out_bytes, out_type = processor(job, data, content_type)
        out_key = blob_store.put(out_bytes, out_type)
    except Exception as e:
        logger.info(f"Job {job.id} failed: {e}")
        gateway.fail(job, str(e) or "Job failed")
        return False

    return gateway.complete(job, [out_key])


def run_once(
    session_factory: Callable[[], Session],
    blob_store: BlobStore,
    processor: Processor,
    settings: Settings,
) -> bool:
    """Claims and processes at most one job. Returns whether a job was claimed."""
    session = session_factory()
    try:
        gateway = WorkerGateway(
            GenerationRepositorySQL(session),
            blob_store,
            stale_after=timedelta(minutes=settings.worker_stale_minutes),
        )
        job = gateway.claim_next()
        if job is None:
            return False

        with _Heartbeat(session_factory, job.id, HEARTBEAT_SECONDS):
            process_job(gateway, blob_store, job, processor)
        return True
    finally:
        session.close()


def run_consumer(
    session_factory: Callable[[], Session],
    blob_store: BlobStore,
    processor: Processor,
    settings: Settings,
    max_iterations: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Main polling loop. Loop-level errors (database down, storage unreachable)
    are logged and the loop backs off for one poll interval; it never exits on
    its own unless `max_iterations` is given.
    """
    worker_id = f"worker-{uuid.uuid4().hex[:8]}"
    logger.info(f"[consumer] starting {worker_id}")

    iterations = 0
    while max_iterations is None or iterations < max_iterations:
        iterations += 1
        try:
            claimed = run_once(session_factory, blob_store, processor, settings)
        except Exception as e:
            logger.error(f"[consumer] loop error: {e}")
            sleep(settings.worker_poll_seconds)
            continue

        sleep(BATCH_SLEEP_SECONDS if claimed else settings.worker_poll_seconds)


def load_processor(dotted_path: str) -> Processor:
    module_name, _, attr = dotted_path.partition(":")
    if not module_name or not attr:
        raise ValueError(f"WORKER_PROCESSOR must look like 'package.module:callable', got '{dotted_path}'")
    return getattr(importlib.import_module(module_name), attr)


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)

    if not settings.worker_processor:
        logger.error("WORKER_PROCESSOR is not set; nothing to run jobs with")
        return 1

    from app.db.database import SessionLocal
    from app.services.storage_service import get_blob_store

    run_consumer(SessionLocal, get_blob_store(), load_processor(settings.worker_processor), settings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
