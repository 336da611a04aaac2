# /note-polish-backend/app/services/database_helpers/style_preset_repository_sql.py

import json
import logging
import uuid
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.db.models.generation_models import StylePreset
from app.models.style_preset_model import StylePresetSeed

logger = logging.getLogger(__name__)


class StylePresetRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- Catalog Reads ---
    def list_active(self) -> List[StylePreset]:
        return (
            self.db.query(StylePreset)
            .filter(StylePreset.is_active.is_(True))
            .order_by(StylePreset.sort_order.asc(), StylePreset.title.asc())
            .all()
        )

    def find_active(self, preset_id: str) -> Optional[StylePreset]:
        return (
            self.db.query(StylePreset)
            .filter(StylePreset.id == preset_id, StylePreset.is_active.is_(True))
            .first()
        )

    def first_active(self) -> Optional[StylePreset]:
        return (
            self.db.query(StylePreset)
            .filter(StylePreset.is_active.is_(True))
            .order_by(StylePreset.sort_order.asc())
            .first()
        )

    def count_active(self) -> int:
        return self.db.query(StylePreset).filter(StylePreset.is_active.is_(True)).count()

    # --- Seeding ---
    def add_preset(self, record: dict) -> StylePreset:
        record.setdefault("id", f"sty_{uuid.uuid4().hex[:16]}")
        preset = StylePreset(**record)
        self.db.add(preset)
        self.db.commit()
        self.db.refresh(preset)
        return preset

    def seed_if_empty(self, seed_file: str) -> int:
        """
        Loads the catalog from a JSON array of presets, but only into an empty
        table. Returns how many presets were inserted.
        """
        if self.db.query(StylePreset).count() > 0:
            return 0

        with open(seed_file, "r", encoding="utf-8") as f:
            raw_entries = json.load(f)

        inserted = 0
        for raw in raw_entries:
            try:
                seed = StylePresetSeed.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping invalid style preset seed entry: {e}")
                continue
            self.db.add(StylePreset(id=f"sty_{uuid.uuid4().hex[:16]}", **seed.model_dump()))
            inserted += 1

        self.db.commit()
        logger.info(f"Seeded {inserted} style presets from {seed_file}")
        return inserted
