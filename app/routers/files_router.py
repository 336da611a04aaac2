# /note-polish-backend/app/routers/files_router.py

from fastapi import APIRouter, Depends, Response

from ..core.config import Settings, get_settings
from ..core.deps import get_current_owner_id
from ..core.exceptions import NotFound
from ..services.database_service import DatabaseService, get_db_service
from ..services.storage_helpers.base import BlobStore
from ..services.storage_service import get_blob_store

router = APIRouter()


@router.get("/{key:path}", response_class=Response, summary="Stream a Stored File")
def read_file(
    key: str,
    owner_id: str = Depends(get_current_owner_id),
    db: DatabaseService = Depends(get_db_service),
    blob_store: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
):
    """
    Serves blob bytes for the URLs handed out by the database backend. Any
    authenticated caller may read any key unless FILES_REQUIRE_OWNERSHIP is
    enabled, in which case the key must belong to one of the caller's
    generations.
    """
    if settings.files_require_ownership and not db.generation_repo.owner_references_key(owner_id, key):
        raise NotFound("File not found")

    content, content_type = blob_store.get_bytes(key)
    filename = key.rsplit("/", 1)[-1]
    return Response(
        content=content,
        media_type=content_type,
        headers={
            "Content-Disposition": f'inline; filename="{filename}"',
            "Cache-Control": "no-store",
        },
    )
