from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from ..cancel import AbortSignal
from ..errors import ApiError, AuthExpiredError, NotAuthenticatedError
from ..session import SessionStore


log = logging.getLogger(__name__)


class ApiClient:
    """Thin JSON client for the course backend.

    - The bearer token is read from the session store on every call.
    - A 401 runs ``on_unauthorized`` once, then raises ``AuthExpiredError``.
    - Any other non-2xx raises ``ApiError`` carrying the body's ``message``.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        sessions: SessionStore,
        sid: str | None,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> None:
        self.http = http
        self.sessions = sessions
        self.sid = sid
        self.on_unauthorized = on_unauthorized

    def token(self) -> str:
        token = self.sessions.token(self.sid)
        if not token:
            raise NotAuthenticatedError()
        return token

    @property
    def authenticated(self) -> bool:
        return self.sessions.token(self.sid) is not None

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        auth: bool = True,
        fallback: str = "Request failed",
        signal: AbortSignal | None = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        if auth:
            headers["Authorization"] = f"Bearer {self.token()}"

        if signal:
            signal.raise_if_aborted()

        r = await self.http.request(method, path, json=json, headers=headers)

        if signal:
            signal.raise_if_aborted()

        if r.status_code == 401 and auth:
            log.warning("401 from %s %s, clearing session", method, path)
            if self.on_unauthorized:
                self.on_unauthorized()
            raise AuthExpiredError(_message(r) or "Session expired")

        if r.is_error:
            raise ApiError(r.status_code, _message(r) or fallback)

        if not r.content:
            return {}
        return r.json()

    async def get(self, path: str, **kw: Any) -> Any:
        return await self.request("GET", path, **kw)

    async def post(self, path: str, json: Any = None, **kw: Any) -> Any:
        return await self.request("POST", path, json=json, **kw)


def _message(r: httpx.Response) -> str | None:
    try:
        data = r.json()
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return None
