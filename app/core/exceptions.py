# /note-polish-backend/app/core/exceptions.py

"""
Domain error taxonomy.

Services raise these; the exception handler registered in `app.main` turns
them into JSON responses. Routers never catch them. None of these errors are
retried automatically: the caller (UI or worker) decides what to do next.
"""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class NotePolishError(Exception):
    """Base class carrying the HTTP mapping alongside the message."""

    code = "NOTE_POLISH_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class Unauthorized(NotePolishError):
    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFound(NotePolishError):
    """Record absent, or present but owned by somebody else."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class InvalidState(NotePolishError):
    """A guarded transition was attempted outside its guard, or lost a race."""

    code = "INVALID_STATE"
    status_code = 409


class ValidationFailed(NotePolishError):
    code = "VALIDATION_FAILED"
    status_code = 400


class FileTooLarge(ValidationFailed):
    status_code = 413

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"File too large. Max is {limit} bytes per file.",
            details={"size": size, "max_bytes": limit},
        )


class StorageUnavailable(NotePolishError):
    """The selected blob backend is not configured well enough to be used."""

    code = "STORAGE_UNAVAILABLE"
    status_code = 503


class StorageFailure(NotePolishError):
    """The blob backend was reachable but an I/O operation failed."""

    code = "STORAGE_FAILURE"
    status_code = 502


# --- FastAPI Integration ---

async def note_polish_exception_handler(request: Request, exc: NotePolishError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)
