# /note-polish-backend/app/routers/style_presets_router.py

from fastapi import APIRouter, Depends

from ..core.deps import get_current_owner_id
from ..models.style_preset_model import PublicStylePreset, StylePresetListResponse
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


@router.get(
    "",  # Maps to /api/style-presets
    response_model=StylePresetListResponse,
    summary="List Active Style Presets",
    description="Active catalog entries ordered by sort order. Preset prompts are never included.",
)
def list_style_presets(
    owner_id: str = Depends(get_current_owner_id),
    db: DatabaseService = Depends(get_db_service),
):
    presets = [PublicStylePreset.model_validate(p) for p in db.list_active_presets()]
    return StylePresetListResponse(presets=presets)
