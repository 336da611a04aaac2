# /note-polish-backend/app/db/models/blob_models.py

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, LargeBinary, String

from ..base_class import Base


class StoredBlob(Base):
    """Raw file content for the embedded (database) blob backend."""
    __tablename__ = "stored_blobs"

    key = Column(String(32), primary_key=True)
    content_type = Column(String, nullable=False, default="application/octet-stream")
    filename = Column(String, nullable=True)
    size = Column(Integer, nullable=False, default=0)
    data = Column(LargeBinary, nullable=False)  # bytes stored directly in the DB
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
