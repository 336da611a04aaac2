# /note-polish-backend/app/db/base.py

# Central registry for all SQLAlchemy models.
# Importing them here guarantees `Base.metadata` knows every table, both for
# Alembic's autogenerate scan and for `create_all` at startup and in tests.

from .base_class import Base

from .models.generation_models import Generation, StylePreset
from .models.blob_models import StoredBlob
from .models.session_models import UserSession
