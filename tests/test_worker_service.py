# /tests/test_worker_service.py

from datetime import timedelta

import pytest

from app.core.exceptions import NotFound
from app.models.generation_model import GenerationPatch
from app.services.ingestion_service import Upload
from app.services.worker_service import MAX_ERROR_LENGTH, WorkerGateway
from app.worker import consumer

from conftest import OWNER_A


@pytest.fixture
def gateway(repo, blob_store):
    return WorkerGateway(repo, blob_store, stale_after=timedelta(minutes=10))


@pytest.fixture
def queued(lifecycle, ingestion, presets):
    generation = lifecycle.get_or_create_pending(OWNER_A)
    ingestion.attach_files(OWNER_A, generation.id, [Upload(b"\x89PNG page", "image/png", "page.png")])
    lifecycle.update_generation(OWNER_A, generation.id, GenerationPatch(input_text="notes"))
    return lifecycle.submit(OWNER_A, generation.id)


# --- Gateway ---

def test_claim_moves_queued_to_processing(gateway, queued, repo):
    job = gateway.claim_next()

    assert job.id == queued.id
    assert job.prompt == "make it clean"
    assert repo.find_by_id(queued.id).status == "processing"
    assert gateway.claim_next() is None


def test_complete_records_outputs(gateway, queued, repo, blob_store):
    job = gateway.claim_next()
    out_key = blob_store.put(b"sheet", "image/png")

    assert gateway.complete(job, [out_key], preview_images=["preview-1"]) is True

    record = repo.find_by_id(queued.id)
    assert record.status == "processed"
    assert record.output_files == [out_key]
    assert record.preview_images == ["preview-1"]


def test_fail_truncates_error(gateway, queued, repo):
    job = gateway.claim_next()

    assert gateway.fail(job, "x" * (MAX_ERROR_LENGTH + 500)) is True

    record = repo.find_by_id(queued.id)
    assert record.status == "failed"
    assert len(record.error) == MAX_ERROR_LENGTH


def test_completion_after_owner_delete_discards_outputs(gateway, queued, lifecycle, blob_store):
    job = gateway.claim_next()
    out_key = blob_store.put(b"sheet", "image/png")
    lifecycle.delete_generation(OWNER_A, queued.id)

    assert gateway.complete(job, [out_key]) is False
    with pytest.raises(NotFound):
        blob_store.get_bytes(out_key)


def test_completion_never_overwrites_a_finished_record(gateway, queued, repo):
    job = gateway.claim_next()
    gateway.fail(job, "first outcome")

    assert gateway.complete(job, []) is False
    assert repo.find_by_id(queued.id).status == "failed"


def test_heartbeat_only_touches_processing_jobs(gateway, queued):
    assert gateway.heartbeat(queued.id) is False
    job = gateway.claim_next()
    assert gateway.heartbeat(job.id) is True


# --- Consumer loop ---

def test_process_job_stores_output_and_completes(gateway, queued, repo, blob_store):
    calls = []

    def processor(job, data, content_type):
        calls.append((job.prompt, data, content_type))
        return b"polished", "image/png"

    job = gateway.claim_next()
    assert consumer.process_job(gateway, blob_store, job, processor) is True

    assert calls == [("make it clean", b"\x89PNG page", "image/png")]
    record = repo.find_by_id(queued.id)
    assert record.status == "processed"
    assert blob_store.get_bytes(record.output_files[0]) == (b"polished", "image/png")


def test_processor_error_marks_job_failed(gateway, queued, repo, blob_store):
    def processor(job, data, content_type):
        raise ValueError("Input is not an image: application/pdf")

    job = gateway.claim_next()
    assert consumer.process_job(gateway, blob_store, job, processor) is False

    record = repo.find_by_id(queued.id)
    assert record.status == "failed"
    assert record.error == "Input is not an image: application/pdf"


def test_text_only_job_fails_without_calling_processor(lifecycle, gateway, repo, blob_store, presets, mocker):
    generation = lifecycle.get_or_create_pending(OWNER_A)
    lifecycle.update_generation(OWNER_A, generation.id, GenerationPatch(input_text="only text"))
    lifecycle.submit(OWNER_A, generation.id)
    processor = mocker.Mock()

    job = gateway.claim_next()
    consumer.process_job(gateway, blob_store, job, processor)

    processor.assert_not_called()
    assert repo.find_by_id(generation.id).error == "No input files attached"


def test_run_consumer_processes_queue_then_idles(session_factory, blob_store, settings, queued, repo, mocker):
    processor = mocker.Mock(return_value=(b"polished", "image/png"))
    sleeps = []

    consumer.run_consumer(session_factory, blob_store, processor, settings, max_iterations=2, sleep=sleeps.append)

    assert processor.call_count == 1
    assert repo.find_by_id(queued.id).status == "processed"
    assert sleeps == [consumer.BATCH_SLEEP_SECONDS, settings.worker_poll_seconds]


def test_load_processor_requires_module_and_callable():
    assert consumer.load_processor("json:dumps").__name__ == "dumps"
    with pytest.raises(ValueError):
        consumer.load_processor("json.dumps")
