# /note-polish-backend/app/services/database_helpers/session_repository_sql.py

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.db.models.session_models import UserSession


class SessionRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def resolve_owner_id(self, token: str) -> Optional[str]:
        """Returns the user id behind an unexpired session token, else None."""
        if not token:
            return None
        now = datetime.now(timezone.utc)
        record = (
            self.db.query(UserSession)
            .filter(UserSession.token == token, UserSession.expires_at > now)
            .first()
        )
        return record.user_id if record else None

    def create_session(self, user_id: str, token: str, ttl: timedelta = timedelta(days=7)) -> UserSession:
        record = UserSession(token=token, user_id=user_id, expires_at=datetime.now(timezone.utc) + ttl)
        self.db.add(record)
        self.db.commit()
        return record
