from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    api_url: str
    database_url: str
    session_cookie: str
    request_timeout: float
    redirect_delay: int
    notification_duration_ms: int
    log_level: str
    store_limit: int


def get_settings() -> Settings:
    api_url = os.getenv("API_URL", "http://localhost:3005").strip().rstrip("/")
    database_url = os.getenv("DATABASE_URL", "sqlite:///./course_portal.db").strip()
    session_cookie = os.getenv("SESSION_COOKIE", "portal_sid").strip() or "portal_sid"

    return Settings(
        api_url=api_url,
        database_url=database_url,
        session_cookie=session_cookie,
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "10")),
        redirect_delay=int(os.getenv("REDIRECT_DELAY", "2")),
        notification_duration_ms=int(os.getenv("NOTIFICATION_DURATION_MS", "5000")),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        store_limit=int(os.getenv("STORE_LIMIT", "1000")),
    )
