# /note-polish-backend/app/routers/generations_router.py

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

# Import the Pydantic models that define our API contract
from ..models import generation_model, history_model

# Import the services that contain our business logic
from ..core.config import Settings, get_settings
from ..core.deps import get_current_owner_id
from ..core.exceptions import InvalidState, ValidationFailed
from ..services import history_service
from ..services.generation_service import EDIT_CONFLICT_MESSAGE, GenerationLifecycle, get_generation_lifecycle
from ..services.ingestion_service import IngestionService, Upload, get_ingestion_service

router = APIRouter()


# --- Authoring Surface ---

@router.post(
    "/pending",
    response_model=generation_model.GenerationEnvelope,
    summary="Get or Create the Pending Generation",
)
def get_or_create_pending(
    owner_id: str = Depends(get_current_owner_id),
    lifecycle: GenerationLifecycle = Depends(get_generation_lifecycle),
):
    """
    Returns the caller's newest pending generation, creating one (with the
    default style) the first time the authoring surface is opened.
    """
    generation = lifecycle.get_or_create_pending(owner_id)
    return generation_model.GenerationEnvelope(generation=lifecycle.to_public(generation))


@router.get(
    "",  # Maps to /api/generations
    response_model=history_model.HistoryResponse,
    summary="List Generations",
)
def list_generations(
    q: Optional[str] = None,
    status_filter: Optional[generation_model.GenerationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(history_service.DEFAULT_PAGE_SIZE, ge=1, le=history_service.MAX_PAGE_SIZE),
    owner_id: str = Depends(get_current_owner_id),
    lifecycle: GenerationLifecycle = Depends(get_generation_lifecycle),
):
    return history_service.get_history(
        lifecycle,
        owner_id,
        search=q,
        status=status_filter.value if status_filter else None,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{generation_id}",
    response_model=generation_model.GenerationEnvelope,
    summary="Get a Generation",
    responses={404: {"description": "Generation not found"}},
)
def get_generation(
    generation_id: str,
    owner_id: str = Depends(get_current_owner_id),
    lifecycle: GenerationLifecycle = Depends(get_generation_lifecycle),
):
    generation = lifecycle.get_generation(owner_id, generation_id)
    return generation_model.GenerationEnvelope(generation=lifecycle.to_public(generation))


@router.patch(
    "/{generation_id}",
    response_model=generation_model.GenerationEnvelope,
    summary="Edit a Pending Generation",
    responses={404: {"description": "Generation not found"}, 409: {"description": "Generation is not pending"}},
)
def update_generation(
    generation_id: str,
    payload: generation_model.GenerationPatch,
    owner_id: str = Depends(get_current_owner_id),
    lifecycle: GenerationLifecycle = Depends(get_generation_lifecycle),
):
    generation = lifecycle.update_generation(owner_id, generation_id, payload)
    return generation_model.GenerationEnvelope(generation=lifecycle.to_public(generation))


@router.post(
    "/{generation_id}/submit",
    response_model=generation_model.SubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a Generation for Processing",
    responses={404: {"description": "Generation not found"}, 409: {"description": "Generation is not pending"}},
)
def submit_generation(
    generation_id: str,
    owner_id: str = Depends(get_current_owner_id),
    lifecycle: GenerationLifecycle = Depends(get_generation_lifecycle),
):
    generation = lifecycle.submit(owner_id, generation_id)
    return generation_model.SubmitResponse(generation=lifecycle.to_public(generation))


@router.delete(
    "/{generation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a Generation",
    description="Permanently deletes a generation and every file it references, whatever its status.",
    responses={404: {"description": "Generation not found"}},
)
def delete_generation(
    generation_id: str,
    owner_id: str = Depends(get_current_owner_id),
    lifecycle: GenerationLifecycle = Depends(get_generation_lifecycle),
):
    lifecycle.delete_generation(owner_id, generation_id)
    # On success, return a 204 response with no content in the body.
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Input Files ---

@router.post(
    "/{generation_id}/files",
    response_model=generation_model.FilesAttachedResponse,
    summary="Attach Files to a Pending Generation",
    responses={413: {"description": "A file exceeds the per-file size limit"}},
)
def attach_files(
    generation_id: str,
    files: List[UploadFile] = File(...),
    owner_id: str = Depends(get_current_owner_id),
    lifecycle: GenerationLifecycle = Depends(get_generation_lifecycle),
    ingestion: IngestionService = Depends(get_ingestion_service),
    settings: Settings = Depends(get_settings),
):
    """
    Accepts images and PDFs as multipart field `files`. The per-generation
    file count ceiling is enforced here, before anything is stored.
    """
    current = lifecycle.get_generation(owner_id, generation_id)
    if current.status != generation_model.GenerationStatus.PENDING.value:
        raise InvalidState(EDIT_CONFLICT_MESSAGE)
    if len(current.input_files or []) + len(files) > settings.max_files_per_generation:
        raise ValidationFailed(f"A generation can have at most {settings.max_files_per_generation} files")

    uploads = [
        Upload(data=f.file.read(), content_type=f.content_type or "", filename=f.filename)
        for f in files
    ]
    added_keys = ingestion.attach_files(owner_id, generation_id, uploads)

    generation = lifecycle.get_generation(owner_id, generation_id)
    return generation_model.FilesAttachedResponse(added_keys=added_keys, generation=lifecycle.to_public(generation))


@router.delete(
    "/{generation_id}/files",
    response_model=generation_model.FileDetachedResponse,
    summary="Detach a File from a Pending Generation",
)
def detach_file(
    generation_id: str,
    file_key: str = Query(..., min_length=1, description="The stored key or the URL returned for it."),
    owner_id: str = Depends(get_current_owner_id),
    lifecycle: GenerationLifecycle = Depends(get_generation_lifecycle),
    ingestion: IngestionService = Depends(get_ingestion_service),
):
    removed_key = ingestion.detach_file(owner_id, generation_id, file_key.strip())
    generation = lifecycle.get_generation(owner_id, generation_id)
    return generation_model.FileDetachedResponse(removed_key=removed_key, generation=lifecycle.to_public(generation))


# --- Flags ---

@router.put(
    "/{generation_id}/favourite",
    response_model=generation_model.GenerationEnvelope,
    summary="Mark or Unmark as Favourite",
)
def set_favourite(
    generation_id: str,
    payload: generation_model.FlagUpdate,
    owner_id: str = Depends(get_current_owner_id),
    lifecycle: GenerationLifecycle = Depends(get_generation_lifecycle),
):
    generation = lifecycle.set_favourite(owner_id, generation_id, payload.value)
    return generation_model.GenerationEnvelope(generation=lifecycle.to_public(generation))


@router.put(
    "/{generation_id}/downloaded",
    response_model=generation_model.GenerationEnvelope,
    summary="Mark or Unmark as Downloaded",
)
def set_downloaded(
    generation_id: str,
    payload: generation_model.FlagUpdate,
    owner_id: str = Depends(get_current_owner_id),
    lifecycle: GenerationLifecycle = Depends(get_generation_lifecycle),
):
    generation = lifecycle.set_downloaded(owner_id, generation_id, payload.value)
    return generation_model.GenerationEnvelope(generation=lifecycle.to_public(generation))
