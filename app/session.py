from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Session, select

from .models import StoredSession


@dataclass(frozen=True)
class UserSession:
    token: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None


class SessionStore:
    """Persisted session store, keyed by the browser session cookie.

    All reads go to the database at call time so a session cleared by one
    request is gone for every request that follows. Nothing else in the app
    talks to the underlying table.
    """

    def __init__(self, engine) -> None:
        self.engine = engine

    def _row(self, db: Session, sid: str) -> StoredSession | None:
        return db.exec(select(StoredSession).where(StoredSession.sid == sid)).first()

    def load(self, sid: str | None) -> UserSession | None:
        if not sid:
            return None
        with Session(self.engine) as db:
            row = self._row(db, sid)
            if not row or not row.token:
                return None
            return UserSession(
                token=row.token,
                user_id=row.user_id,
                user_name=row.user_name,
                user_email=row.user_email,
                user_role=row.user_role,
            )

    def token(self, sid: str | None) -> str | None:
        s = self.load(sid)
        return s.token if s else None

    def save(self, sid: str, session: UserSession) -> None:
        with Session(self.engine) as db:
            row = self._row(db, sid)
            if not row:
                row = StoredSession(sid=sid, token=session.token)
            row.token = session.token
            row.user_id = session.user_id
            row.user_name = session.user_name
            row.user_email = session.user_email
            row.user_role = session.user_role
            row.updated_at = datetime.now(timezone.utc)
            db.add(row)
            db.commit()

    def clear(self, sid: str | None) -> None:
        if not sid:
            return
        with Session(self.engine) as db:
            row = self._row(db, sid)
            if row:
                db.delete(row)
                db.commit()
