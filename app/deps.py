from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

import httpx
from fastapi import Depends, Request
from fastapi.templating import Jinja2Templates

from .api import ApiClient
from .auth_handler import handle_auth_error
from .config import Settings, get_settings
from .db import engine
from .session import SessionStore, UserSession
from .store import Store, StoreRegistry, make_store
from .store.ui import Notification, drain_notifications


SESSIONS = SessionStore(engine)
STORES = StoreRegistry(make_store, limit=get_settings().store_limit)


def get_sessions() -> SessionStore:
    return SESSIONS


def get_registry() -> StoreRegistry:
    return STORES


def get_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Outgoing transport for backend calls; tests swap in a mock."""
    return None


@dataclass
class Page:
    """Everything a route needs to fetch and render one view."""

    request: Request
    sid: str
    settings: Settings
    sessions: SessionStore
    registry: StoreRegistry
    api: ApiClient

    @property
    def store(self) -> Store:
        return self.registry.get(self.sid)

    @property
    def session(self) -> UserSession | None:
        return self.sessions.load(self.sid)

    @property
    def authenticated(self) -> bool:
        return self.session is not None

    @property
    def templates(self) -> Jinja2Templates:
        return self.request.app.state.templates

    def render(self, name: str, ctx: dict[str, Any] | None = None, status_code: int = 200):
        base = {
            "nav_user": self.session,
            "notifications": self.notifications(),
            "redirect": None,
        }
        return self.templates.TemplateResponse(self.request, name, {**base, **(ctx or {})}, status_code=status_code)

    def notifications(self) -> tuple[Notification, ...]:
        # Anonymous visits that never dispatched anything do not get a store.
        store = self.registry.peek(self.sid)
        return drain_notifications(store) if store else ()

    def reset_store(self) -> None:
        """Forget the client state of whoever used this browser before."""
        store = self.registry.peek(self.sid)
        if store:
            store.reset()

    def unauthenticated(self):
        return self.render("unauthenticated.html")

    def redirect_after(self, url: str) -> dict[str, Any]:
        return {"redirect": {"url": url, "delay": self.settings.redirect_delay}}


async def get_page(
    request: Request,
    sessions: SessionStore = Depends(get_sessions),
    registry: StoreRegistry = Depends(get_registry),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
) -> AsyncIterator[Page]:
    settings = get_settings()
    sid = request.state.sid

    def on_unauthorized() -> None:
        handle_auth_error(sessions, sid, registry.get(sid), settings.notification_duration_ms)

    async with httpx.AsyncClient(
        base_url=settings.api_url,
        timeout=settings.request_timeout,
        transport=transport,
    ) as http:
        api = ApiClient(http, sessions, sid, on_unauthorized=on_unauthorized)
        yield Page(request=request, sid=sid, settings=settings, sessions=sessions, registry=registry, api=api)
