from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from ..api import auth as auth_api
from ..schemas import User
from .core import Action, AsyncThunk, Slice


@dataclass(frozen=True)
class AuthState:
    user: Optional[User] = None
    is_authenticated: bool = False
    loading: bool = False
    error: Optional[str] = None


auth_slice: Slice[AuthState] = Slice("auth", AuthState)

login_start = auth_slice.action("login_start")
login_success = auth_slice.action("login_success")
login_failure = auth_slice.action("login_failure")
logout = auth_slice.action("logout")

fetch_current_user = AsyncThunk("auth/fetch_current_user", auth_api.current_user)


@auth_slice.case(login_start.type)
def _login_start(state: AuthState, action: Action) -> AuthState:
    return replace(state, loading=True, error=None)


@auth_slice.case(login_success.type)
def _login_success(state: AuthState, action: Action) -> AuthState:
    return AuthState(user=action.payload, is_authenticated=True)


@auth_slice.case(login_failure.type)
def _login_failure(state: AuthState, action: Action) -> AuthState:
    return AuthState(error=action.payload)


@auth_slice.case(logout.type)
def _logout(state: AuthState, action: Action) -> AuthState:
    return AuthState()


@auth_slice.case(fetch_current_user.pending)
def _user_pending(state: AuthState, action: Action) -> AuthState:
    return replace(state, loading=True, error=None)


@auth_slice.case(fetch_current_user.fulfilled)
def _user_loaded(state: AuthState, action: Action) -> AuthState:
    return AuthState(user=action.payload, is_authenticated=True)


@auth_slice.case(fetch_current_user.rejected)
def _user_rejected(state: AuthState, action: Action) -> AuthState:
    return replace(state, loading=False, error=action.payload)


def select_is_authenticated(state) -> bool:
    return state.auth.is_authenticated
