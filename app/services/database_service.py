# /note-polish-backend/app/services/database_service.py

from typing import Generator, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

# --- Core Database Setup ---
from app.db.database import get_db
from app.db.models.generation_models import StylePreset

# --- Repository Imports ---
from .database_helpers.generation_repository_sql import GenerationRepositorySQL
from .database_helpers.session_repository_sql import SessionRepositorySQL
from .database_helpers.style_preset_repository_sql import StylePresetRepositorySQL


class DatabaseService:
    def __init__(self, db_session: Session):
        """
        Bundles every SQL repository around ONE request-scoped session, so
        reads and writes made while serving a request share a unit of work.
        """
        self.session = db_session
        self.generation_repo = GenerationRepositorySQL(db_session)
        self.style_preset_repo = StylePresetRepositorySQL(db_session)
        self.session_repo = SessionRepositorySQL(db_session)

    # --- IDENTITY METHODS (DELEGATED) ---
    def resolve_owner_id(self, token: str) -> Optional[str]: return self.session_repo.resolve_owner_id(token)

    # --- STYLE CATALOG METHODS (DELEGATED) ---
    def list_active_presets(self) -> List[StylePreset]: return self.style_preset_repo.list_active()
    def count_active_presets(self) -> int: return self.style_preset_repo.count_active()
    def seed_presets_if_empty(self, seed_file: str) -> int: return self.style_preset_repo.seed_if_empty(seed_file)


# --- DEPENDENCY PROVIDER ---
def get_db_service(db: Session = Depends(get_db)) -> Generator[DatabaseService, None, None]:
    """
    FastAPI dependency that provides a DatabaseService bound to the request's session.
    """
    yield DatabaseService(db_session=db)
