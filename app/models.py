from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field, UniqueConstraint


class StoredSession(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Browser session id (cookie value)
    sid: str = Field(index=True, nullable=False)

    token: str = Field(nullable=False)
    user_id: Optional[str] = Field(default=None)
    user_name: Optional[str] = Field(default=None)
    user_email: Optional[str] = Field(default=None)
    user_role: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    __table_args__ = (UniqueConstraint("sid"),)
