# /tests/conftest.py

import os

# Keep the import-time engine in app.db.database away from any real database
# and make sure the object-storage backend is never selected by accident.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("GCS_BUCKET", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings, get_settings
from app.db.base import Base
from app.db.database import get_db
from app.main import app
from app.services.database_helpers.generation_repository_sql import GenerationRepositorySQL
from app.services.database_helpers.session_repository_sql import SessionRepositorySQL
from app.services.database_helpers.style_preset_repository_sql import StylePresetRepositorySQL
from app.services.generation_service import GenerationLifecycle
from app.services.ingestion_service import IngestionService
from app.services.storage_helpers.database_blob_store import DatabaseBlobStore
from app.services.storage_service import get_blob_store

OWNER_A = "user_a"
OWNER_B = "user_b"
TOKEN_A = "token-for-a"
TOKEN_B = "token-for-b"


# --- Database ---

@pytest.fixture
def engine():
    """A fresh in-memory SQLite database per test, shared by every session."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


# --- Services ---

@pytest.fixture
def settings():
    return Settings(_env_file=None, database_url="sqlite://")


@pytest.fixture
def blob_store(session_factory):
    return DatabaseBlobStore(session_factory)


@pytest.fixture
def repo(db_session):
    return GenerationRepositorySQL(db_session)


@pytest.fixture
def preset_repo(db_session):
    return StylePresetRepositorySQL(db_session)


@pytest.fixture
def presets(preset_repo):
    """
    Two active presets (sort order 1 and 2) plus an inactive one that would
    sort first if the active filter were ignored.
    """
    retired = preset_repo.add_preset(
        {"key": "retired", "title": "Retired", "prompt": "old prompt", "sort_order": 0, "is_active": False}
    )
    clean = preset_repo.add_preset(
        {"key": "readable_clean", "title": "Readable & Clean", "prompt": "make it clean", "sort_order": 1}
    )
    colorful = preset_repo.add_preset(
        {"key": "colorful_visual", "title": "Colorful & Visual", "prompt": "make it colorful", "sort_order": 2}
    )
    return {"retired": retired, "clean": clean, "colorful": colorful}


@pytest.fixture
def lifecycle(repo, preset_repo, blob_store):
    return GenerationLifecycle(repo, preset_repo, blob_store)


@pytest.fixture
def ingestion(repo, blob_store, settings):
    return IngestionService(repo, blob_store, settings)


# --- HTTP ---

@pytest.fixture
def sessions(db_session):
    """Logged-in sessions for two different owners."""
    session_repo = SessionRepositorySQL(db_session)
    session_repo.create_session(OWNER_A, TOKEN_A)
    session_repo.create_session(OWNER_B, TOKEN_B)
    return {OWNER_A: TOKEN_A, OWNER_B: TOKEN_B}


@pytest.fixture
def client(session_factory, blob_store, settings, presets, sessions):
    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
