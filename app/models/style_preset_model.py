# /note-polish-backend/app/models/style_preset_model.py

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class PublicStylePreset(BaseModel):
    """
    Public projection of a catalog entry. The preset's prompt is intentionally
    NOT part of this contract.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    key: str
    title: str
    sort_order: int
    image_url: str = Field(..., description="e.g. /presets/readable_clean.png")
    created_at: datetime
    updated_at: datetime


class StylePresetListResponse(BaseModel):
    presets: List[PublicStylePreset]


class StylePresetSeed(BaseModel):
    """One entry of the JSON seed file loaded into an empty catalog."""
    key: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    image_url: str = ""
    sort_order: int = 0
    is_active: bool = True
