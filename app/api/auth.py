from __future__ import annotations

from typing import Any

from ..schemas import LoginResponse, RegisterResponse, User
from .client import ApiClient


async def login(api: ApiClient, email: str, password: str) -> LoginResponse:
    data = await api.post(
        "/auth/login",
        {"email": email, "password": password},
        auth=False,
        fallback="Login failed",
    )
    return LoginResponse.model_validate(data)


async def register(api: ApiClient, payload: dict[str, Any]) -> RegisterResponse:
    data = await api.post("/auth/register", payload, auth=False, fallback="Registration failed")
    return RegisterResponse.model_validate(data)


async def current_user(api: ApiClient, **kw: Any) -> User:
    data = await api.get("/user/me", fallback="Failed to fetch user data", **kw)
    # Some deployments wrap the profile in {"user": {...}}.
    if isinstance(data, dict) and isinstance(data.get("user"), dict):
        data = data["user"]
    return User.model_validate(data)
