# /note-polish-backend/app/db/models/generation_models.py

"""
SQLAlchemy ORM models for the `Generation` lifecycle record and the
`StylePreset` catalog it snapshots its style from.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text

from ..base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Generation(Base):
    """
    One user-owned request to turn notes into a styled study sheet.

    `input_files` and `output_files` hold blob keys only. URLs are derived on
    read and never persisted, so switching storage backends or rotating
    credentials needs no data migration.
    """
    id = Column(String, primary_key=True, index=True)
    owner_id = Column(String, index=True, nullable=False)
    status = Column(String, index=True, nullable=False, default="pending")
    title = Column(String, nullable=True)

    input_text = Column(Text, nullable=True)
    input_files = Column(JSON, nullable=False, default=list)

    # Tagged union: {"mode": "preset"|"custom", ..., "snapshot_title", "snapshot_prompt"}
    style = Column(JSON, nullable=False)

    output_files = Column(JSON, nullable=True)
    preview_images = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)

    is_favourite = Column(Boolean, nullable=False, default=False)
    is_downloaded = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)


class StylePreset(Base):
    """
    Catalog entry for a style. `prompt` is private and must never reach an
    API consumer; only the public projection in `style_preset_model` is sent.
    """
    __tablename__ = "style_presets"

    id = Column(String, primary_key=True, index=True)
    key = Column(String, unique=True, index=True, nullable=False)
    title = Column(String, nullable=False)
    prompt = Column(Text, nullable=False)
    image_url = Column(String, nullable=False, default="")
    sort_order = Column(Integer, nullable=False, default=0, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
