# /note-polish-backend/app/main.py

import logging
import os
from contextlib import asynccontextmanager

# --- Core FastAPI Imports ---
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# --- Core Application Imports ---
from .core.config import get_settings
from .core.exceptions import NotePolishError, note_polish_exception_handler
from .core.logging_config import configure_logging
from .db.base import Base
from .db.database import SessionLocal, engine

# --- Application-specific Router Imports ---
from .routers import (
    dashboard_router,
    files_router,
    generations_router,
    style_presets_router,
)

# --- Service Imports for Startup Logic ---
from .services.database_helpers.style_preset_repository_sql import StylePresetRepositorySQL
from .services.storage_service import get_blob_store

logger = logging.getLogger(__name__)

DEFAULT_SEED_FILE = os.path.join(os.path.dirname(__file__), "data", "style_presets.json")


def seed_style_presets(seed_file: str) -> None:
    if not os.path.exists(seed_file):
        logger.warning(f"Style preset seed file not found: {seed_file}")
        return
    session = SessionLocal()
    try:
        StylePresetRepositorySQL(session).seed_if_empty(seed_file)
    finally:
        session.close()


# --- Application Lifecycle Management ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # This code runs ONCE when the application starts up.
    settings = get_settings()
    configure_logging(settings.log_level)
    Base.metadata.create_all(bind=engine)
    seed_style_presets(settings.style_presets_seed_file or DEFAULT_SEED_FILE)
    # Select the blob backend once, before the first request needs it.
    get_blob_store()
    logger.info("Note Polish backend started")
    yield
    # This code runs ONCE when the application shuts down.
    logger.info("Note Polish backend stopped")


# --- FastAPI Application Instance Creation ---
app = FastAPI(
    title="Note Polish Backend API",
    description="Turns notes and uploaded pages into styled study sheets.",
    version="1.0.0",
    lifespan=lifespan,
)

# --- Middleware Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error Handling ---
app.add_exception_handler(NotePolishError, note_polish_exception_handler)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters are reported like every other validation failure."""
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Invalid input",
            "code": "VALIDATION_FAILED",
            "details": {"errors": [str(e.get("msg", "")) for e in exc.errors()]},
        },
    )


# --- API Router Inclusion ---
# Authenticated API routes under the /api prefix
app.include_router(generations_router.router, prefix="/api/generations", tags=["Generations"])
app.include_router(style_presets_router.router, prefix="/api/style-presets", tags=["Style Presets"])
app.include_router(dashboard_router.router, prefix="/api/dashboard", tags=["Dashboard"])

# Internal streaming route for the database blob backend
app.include_router(files_router.router, prefix="/files", tags=["Files"])


# --- Root / Health Check Endpoint ---
@app.get("/", tags=["Health Check"])
async def read_root():
    """A simple health check endpoint to confirm the API is online."""
    return {"status": "Note Polish Backend is running!", "version": app.version}
