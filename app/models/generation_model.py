# /note-polish-backend/app/models/generation_model.py

# --- Core Imports ---
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Enumerations ---

class GenerationStatus(str, Enum):
    PENDING = "pending"
    QUEUED = "queued"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class StyleMode(str, Enum):
    PRESET = "preset"
    CUSTOM = "custom"


# --- Style Selection (request side) ---

class PresetStyleSelection(BaseModel):
    mode: Literal["preset"]
    preset_id: str = Field(..., min_length=1)


class CustomStyleSelection(BaseModel):
    mode: Literal["custom"]
    custom_prompt: str = Field(..., min_length=1)


StyleSelection = Annotated[
    Union[PresetStyleSelection, CustomStyleSelection],
    Field(discriminator="mode"),
]


class GenerationPatch(BaseModel):
    """
    Body of `PATCH /api/generations/{id}`. At least one field must be present;
    the snapshot values are never accepted from the client.
    """
    input_text: Optional[str] = None
    style: Optional[StyleSelection] = None

    @model_validator(mode="after")
    def _require_something(self) -> "GenerationPatch":
        if self.input_text is None and self.style is None:
            raise ValueError("Nothing to update")
        return self


class FlagUpdate(BaseModel):
    value: bool


# --- Public Projections (response side) ---

class PublicStyle(BaseModel):
    """The stored style minus its private `snapshot_prompt`."""
    mode: StyleMode
    preset_id: Optional[str] = None
    custom_prompt: Optional[str] = None
    snapshot_title: Optional[str] = None


class PublicGeneration(BaseModel):
    """
    Defines the data contract for a generation as sent to API consumers.
    File fields carry resolved URLs, never raw blob keys. The attach and
    detach responses are the one place keys are handed out, as handles for
    `DELETE /api/generations/{id}/files?file_key=`.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: Optional[str] = None
    status: GenerationStatus
    error: Optional[str] = None

    input_text: Optional[str] = None
    input_files: List[str] = Field(default_factory=list, description="Resolved URLs of the attached inputs.")

    style: PublicStyle

    output_files: Optional[List[str]] = None
    preview_images: Optional[List[str]] = None

    is_favourite: bool
    is_downloaded: bool

    created_at: datetime
    updated_at: datetime


class GenerationEnvelope(BaseModel):
    generation: PublicGeneration


class FilesAttachedResponse(BaseModel):
    ok: bool = True
    added_keys: List[str] = Field(
        description="Storage keys of the new files. Accepted by detach as an alternative to the URL."
    )
    generation: PublicGeneration


class FileDetachedResponse(BaseModel):
    ok: bool = True
    removed_key: str = Field(description="Storage key of the detached file.")
    generation: PublicGeneration


class SubmitResponse(BaseModel):
    ok: bool = True
    generation: PublicGeneration
