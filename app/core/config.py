# /note-polish-backend/app/core/config.py

"""
Process-wide configuration.

All values come from environment variables (a local `.env` file is read too,
for development). pydantic-settings coerces and validates them; the settings
object is built once and cached for the lifetime of the process, and
everything that needs configuration receives it through `get_settings()` or
by explicit injection.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Immutable snapshot of the environment taken at startup."""

    # --- Database ---
    database_url: str = "sqlite:///./note_polish.db"

    # --- Blob storage ---
    # When `gcs_bucket` is set the object-storage backend is selected and the
    # remaining GCS values become mandatory. Otherwise blobs live in the database.
    gcs_bucket: Optional[str] = None
    gcs_credentials_file: Optional[str] = None
    gcs_key_prefix: str = "files"
    signed_url_ttl_minutes: int = Field(default=30, ge=1)

    # --- Upload limits ---
    max_file_bytes: int = Field(default=5 * 1024 * 1024, ge=1)
    max_files_per_generation: int = Field(default=3, ge=1)

    # --- File serving ---
    files_require_ownership: bool = False

    # --- Identity ---
    session_cookie_name: str = "np_session"

    # --- Worker ---
    worker_poll_seconds: float = Field(default=1.2, gt=0)
    worker_stale_minutes: int = Field(default=10, ge=1)
    # Dotted path "package.module:callable" of the opaque job processor.
    worker_processor: Optional[str] = None

    # --- Maintenance ---
    orphan_grace_minutes: int = Field(default=60, ge=0)
    style_presets_seed_file: Optional[str] = None

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Unset and empty variables both fall back to the defaults above.
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator("gcs_bucket", "gcs_credentials_file", "worker_processor", "style_presets_seed_file", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def uses_object_storage(self) -> bool:
        return bool(self.gcs_bucket)


@lru_cache
def get_settings() -> Settings:
    """Reads the environment and `.env` exactly once per process."""
    return Settings()
