from __future__ import annotations

import logging

from .session import SessionStore
from .store import Store
from .store.auth import logout
from .store.ui import add_notification


log = logging.getLogger(__name__)

SESSION_EXPIRED = "Your session has expired. Please log in again."


def handle_auth_error(sessions: SessionStore, sid: str | None, store: Store, duration_ms: int = 5000) -> None:
    """Shared reaction to a 401 from any endpoint.

    Clears the persisted session, resets every slice so nothing from this
    user carries over to the next login, and queues an error notification.
    The redirect to /login is issued by the app's AuthExpiredError handler.
    """
    log.warning("authentication expired (sid=%s)", sid)
    sessions.clear(sid)
    store.reset()
    store.dispatch(logout())
    store.dispatch(add_notification("error", SESSION_EXPIRED, duration_ms))
