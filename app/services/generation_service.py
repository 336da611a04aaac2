# /note-polish-backend/app/services/generation_service.py

"""
The generation lifecycle: the state machine and guard logic layered on top of
`GenerationRepositorySQL`.

    pending -> queued -> processing -> processed | failed

Owners may only edit or submit while a generation is `pending`. Every owner
operation checks, in this order: ownership (a foreign record is reported as
`NotFound`), status (`InvalidState`), input validation (`ValidationFailed`),
and only then writes. Writes are conditional on the status that was checked,
so a concurrent transition between the read and the write surfaces as
`InvalidState` instead of being silently overwritten.

The `queued -> processing -> processed|failed` edges belong to the worker and
live in `worker_service`.
"""

import logging
import uuid
from typing import Dict, List, Optional

from fastapi import Depends

from app.core.exceptions import InvalidState, NotFound, ValidationFailed
from app.db.models.generation_models import Generation
from app.models.generation_model import (
    CustomStyleSelection,
    GenerationPatch,
    GenerationStatus,
    PublicGeneration,
    PublicStyle,
    StyleMode,
)

from .database_helpers.generation_repository_sql import GenerationRepositorySQL
from .database_helpers.style_preset_repository_sql import StylePresetRepositorySQL
from .database_service import DatabaseService, get_db_service
from .storage_helpers.base import BlobStore
from .storage_service import get_blob_store

logger = logging.getLogger(__name__)

CUSTOM_STYLE_TITLE = "Custom"
EDIT_CONFLICT_MESSAGE = "Only pending generations can be edited"
SUBMIT_CONFLICT_MESSAGE = "Only pending generations can be submitted"


# --- Helpers ---

def new_generation_id() -> str:
    return f"gen_{uuid.uuid4().hex[:16]}"


def preview_title_from_text(input_text: Optional[str]) -> str:
    """First non-blank line of the notes, capped at 60 characters."""
    if not input_text:
        return "Untitled"
    first_line = next((line.strip() for line in input_text.split("\n") if line.strip()), None)
    if not first_line:
        return "Untitled"
    return f"{first_line[:60]}…" if len(first_line) > 60 else first_line


def style_label(style: Optional[Dict]) -> str:
    style = style or {}
    if style.get("snapshot_title"):
        return style["snapshot_title"]
    return CUSTOM_STYLE_TITLE if style.get("mode") == StyleMode.CUSTOM.value else "Preset"


def _preset_snapshot(preset) -> Dict:
    return {
        "mode": StyleMode.PRESET.value,
        "preset_id": preset.id,
        "snapshot_title": preset.title,
        "snapshot_prompt": preset.prompt,
    }


def _custom_snapshot(prompt: str) -> Dict:
    return {
        "mode": StyleMode.CUSTOM.value,
        "custom_prompt": prompt,
        "snapshot_title": CUSTOM_STYLE_TITLE,
        "snapshot_prompt": prompt,
    }


# --- Lifecycle ---

class GenerationLifecycle:
    def __init__(self, repo: GenerationRepositorySQL, presets: StylePresetRepositorySQL, blob_store: BlobStore):
        self.repo = repo
        self.presets = presets
        self.blob_store = blob_store

    # --- Reads ---

    def get_generation(self, owner_id: str, generation_id: str) -> Generation:
        generation = self.repo.find_owned(generation_id, owner_id)
        if generation is None:
            raise NotFound()
        return generation

    def to_public(self, generation: Generation) -> PublicGeneration:
        """
        Projects a stored record for API consumers: blob keys become URLs
        (resolved now, never persisted) and the private snapshot prompt is dropped.
        """
        style = generation.style or {}
        output_keys = generation.output_files or []
        return PublicGeneration(
            id=generation.id,
            title=generation.title,
            status=generation.status,
            error=generation.error,
            input_text=generation.input_text,
            input_files=[self.blob_store.resolve_url(k) for k in (generation.input_files or [])],
            style=PublicStyle(
                mode=style.get("mode", StyleMode.CUSTOM.value),
                preset_id=style.get("preset_id"),
                custom_prompt=style.get("custom_prompt"),
                snapshot_title=style.get("snapshot_title"),
            ),
            output_files=[self.blob_store.resolve_url(k) for k in output_keys] if output_keys else None,
            preview_images=generation.preview_images or None,
            is_favourite=bool(generation.is_favourite),
            is_downloaded=bool(generation.is_downloaded),
            created_at=generation.created_at,
            updated_at=generation.updated_at,
        )

    # --- Transitions ---

    def get_or_create_pending(self, owner_id: str) -> Generation:
        """
        Returns the owner's newest `pending` generation, creating one with the
        default style (first active preset by sort order) when none exists.
        """
        existing = self.repo.find_latest_pending(owner_id)
        if existing is not None:
            return existing

        preset = self.presets.first_active()
        if preset is not None:
            style = _preset_snapshot(preset)
        else:
            # Empty catalog: start with a blank custom style; submit stays blocked until one is chosen.
            logger.warning("No active style presets; new generation starts with a blank custom style")
            style = _custom_snapshot("")

        generation = self.repo.create(
            {
                "id": new_generation_id(),
                "owner_id": owner_id,
                "status": GenerationStatus.PENDING.value,
                "input_text": None,
                "input_files": [],
                "style": style,
                "is_favourite": False,
                "is_downloaded": False,
            }
        )
        logger.info(f"Created pending generation {generation.id} for owner {owner_id}")
        return generation

    def update_generation(self, owner_id: str, generation_id: str, patch: GenerationPatch) -> Generation:
        current = self.get_generation(owner_id, generation_id)
        if current.status != GenerationStatus.PENDING.value:
            raise InvalidState(EDIT_CONFLICT_MESSAGE)

        changes: Dict = {}
        if patch.input_text is not None:
            changes["input_text"] = patch.input_text
            changes["title"] = preview_title_from_text(patch.input_text)

        if patch.style is not None:
            if isinstance(patch.style, CustomStyleSelection):
                custom = patch.style.custom_prompt.strip()
                if not custom:
                    raise ValidationFailed("Custom prompt required")
                changes["style"] = _custom_snapshot(custom)
            else:
                preset = self.presets.find_active(patch.style.preset_id)
                if preset is None:
                    raise ValidationFailed("Invalid preset")
                changes["style"] = _preset_snapshot(preset)

        affected = self.repo.conditional_update(
            generation_id, owner_id, expected_status=GenerationStatus.PENDING.value, patch=changes
        )
        if affected == 0:
            self._raise_for_zero(owner_id, generation_id, EDIT_CONFLICT_MESSAGE)
        return self.get_generation(owner_id, generation_id)

    def submit(self, owner_id: str, generation_id: str) -> Generation:
        current = self.get_generation(owner_id, generation_id)
        if current.status != GenerationStatus.PENDING.value:
            raise InvalidState(SUBMIT_CONFLICT_MESSAGE)

        has_text = bool((current.input_text or "").strip())
        has_files = len(current.input_files or []) > 0
        if not has_text and not has_files:
            raise ValidationFailed("Add text or upload at least one file before submitting")

        self._validate_style_for_submit(current.style or {})

        affected = self.repo.conditional_update(
            generation_id,
            owner_id,
            expected_status=GenerationStatus.PENDING.value,
            patch={"status": GenerationStatus.QUEUED.value, "error": None, "preview_images": None},
        )
        if affected == 0:
            logger.info(f"Submit of {generation_id} lost a concurrent transition")
            self._raise_for_zero(owner_id, generation_id, SUBMIT_CONFLICT_MESSAGE)

        logger.info(f"Generation {generation_id} queued")
        return self.get_generation(owner_id, generation_id)

    def delete_generation(self, owner_id: str, generation_id: str) -> None:
        """
        Status-independent delete. The repository locks the record and hands
        over the keys it references at that moment; blobs go first, so if one
        cannot be removed the record survives, still listing its keys, and the
        delete can be retried.
        """
        released: List[str] = []

        def _delete_blobs(keys: List[str]) -> None:
            for key in keys:
                self.blob_store.delete(key)
                released.append(key)

        if not self.repo.delete(generation_id, owner_id, release_keys=_delete_blobs):
            raise NotFound()
        logger.info(f"Deleted generation {generation_id} and {len(released)} blob(s)")

    # --- Status-independent flags ---

    def set_favourite(self, owner_id: str, generation_id: str, value: bool) -> Generation:
        return self._set_flag(owner_id, generation_id, "is_favourite", value)

    def set_downloaded(self, owner_id: str, generation_id: str, value: bool) -> Generation:
        return self._set_flag(owner_id, generation_id, "is_downloaded", value)

    def _set_flag(self, owner_id: str, generation_id: str, field: str, value: bool) -> Generation:
        if self.repo.update_flags(generation_id, owner_id, {field: value}) == 0:
            raise NotFound()
        return self.get_generation(owner_id, generation_id)

    # --- Guards ---

    def _validate_style_for_submit(self, style: Dict) -> None:
        if style.get("mode") == StyleMode.PRESET.value:
            preset_id = style.get("preset_id")
            if not preset_id or self.presets.find_active(preset_id) is None:
                raise ValidationFailed("Selected style preset is no longer available")
        elif not (style.get("custom_prompt") or "").strip():
            raise ValidationFailed("Custom prompt required")

    def _raise_for_zero(self, owner_id: str, generation_id: str, conflict_message: str) -> None:
        """A conditional write matched nothing: tell "gone" apart from "moved on"."""
        if self.repo.find_owned(generation_id, owner_id) is None:
            raise NotFound()
        raise InvalidState(conflict_message)


# --- DEPENDENCY PROVIDER ---
def get_generation_lifecycle(
    db: DatabaseService = Depends(get_db_service),
    blob_store: BlobStore = Depends(get_blob_store),
) -> GenerationLifecycle:
    return GenerationLifecycle(db.generation_repo, db.style_preset_repo, blob_store)
