# /note-polish-backend/app/db/models/session_models.py

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from ..base_class import Base


class UserSession(Base):
    """
    Opaque session token issued by the login flow. The core only reads it to
    resolve the calling owner's id.
    """
    __tablename__ = "user_sessions"

    token = Column(String, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False)
