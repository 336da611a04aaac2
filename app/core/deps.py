# /note-polish-backend/app/core/deps.py

from typing import Optional

from fastapi import Depends, Request

from app.core.config import Settings, get_settings
from app.core.exceptions import Unauthorized
from app.services.database_service import DatabaseService, get_db_service


def _extract_token(request: Request, cookie_name: str) -> Optional[str]:
    token = request.cookies.get(cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def get_current_owner_id(
    request: Request,
    db: DatabaseService = Depends(get_db_service),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Resolves the caller from the session cookie (or a Bearer token carrying the
    same session token). Every route that touches generations depends on this.
    """
    token = _extract_token(request, settings.session_cookie_name)
    if not token:
        raise Unauthorized()
    owner_id = db.resolve_owner_id(token)
    if not owner_id:
        raise Unauthorized()
    return owner_id
