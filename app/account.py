from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from .api import auth as auth_api
from .cancel import page_scope
from .deps import Page
from .errors import ApiError, AuthExpiredError, display_message
from .session import UserSession
from .store.assignment import fetch_user_submissions
from .store.auth import fetch_current_user, login_failure, login_start, login_success, logout
from .store.courses import fetch_enrolled_courses, select_enrolled_courses
from .store.quiz import fetch_quiz_results, fetch_user_quiz_results
from .store.ui import add_notification
from .utils import RESULT_FILTERS, filter_results


log = logging.getLogger(__name__)

LOGIN_FAILED = "Login failed. Please try again."
REGISTER_FAILED = "Registration failed. Please try again."
REGISTERED = "Account created! Redirecting you to the login page..."

GRADES = {
    "FIRST_SECONDARY": "First secondary",
    "SECOND_SECONDARY": "Second secondary",
    "THIRD_SECONDARY": "Third secondary",
}

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class RegisterForm(BaseModel):
    first_name: str
    last_name: str
    phone: str
    password: str
    confirm_password: str
    grade: str
    email: Optional[str] = None

    @field_validator("first_name", "last_name", "phone", "grade", "email", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("first_name")
    @classmethod
    def _first(cls, v: str) -> str:
        if len(v) < 2:
            raise ValueError("First name must be at least 2 characters")
        return v

    @field_validator("last_name")
    @classmethod
    def _last(cls, v: str) -> str:
        if len(v) < 2:
            raise ValueError("Last name must be at least 2 characters")
        return v

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        if len(v) < 11:
            raise ValueError("Phone number must be at least 11 digits")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v

    @field_validator("grade")
    @classmethod
    def _grade(cls, v: str) -> str:
        if v not in GRADES:
            raise ValueError("Please choose your grade")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if not _EMAIL.match(v):
            raise ValueError("Please enter a valid email address")
        return v

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self

    def payload(self) -> dict[str, Any]:
        return {
            "name": f"{self.first_name} {self.last_name}",
            "email": self.email or "",
            "phoneNumber": self.phone,
            "grade": self.grade,
            "password": self.password,
        }


def form_errors(exc: ValidationError) -> dict[str, str]:
    """Field name -> first message; model-level errors land on confirm_password."""
    out: dict[str, str] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "confirm_password"
        ctx_err = (err.get("ctx") or {}).get("error")
        out.setdefault(field, str(ctx_err) if ctx_err else err["msg"])
    return out


def build_account_router(*, get_page_dep: Callable[..., Any]) -> APIRouter:
    """Login/registration plus the learner's own pages under /me/user."""

    r = APIRouter()

    # --- auth ---------------------------------------------------------------

    @r.get("/login", response_class=HTMLResponse)
    async def login_page(page: Page = Depends(get_page_dep)):
        if page.authenticated:
            return RedirectResponse(url="/", status_code=303)
        return page.render("login.html", {"email": "", "error": None})

    @r.post("/login", response_class=HTMLResponse)
    async def login_submit(
        page: Page = Depends(get_page_dep),
        email: str = Form(""),
        password: str = Form(""),
    ):
        def failed(message: str):
            page.store.dispatch(login_failure(message))
            page.store.dispatch(add_notification("error", message, page.settings.notification_duration_ms))
            return page.render("login.html", {"email": email, "error": message})

        page.reset_store()
        page.store.dispatch(login_start())
        try:
            resp = await auth_api.login(page.api, email.strip(), password)
        except (ApiError, httpx.HTTPError) as e:
            return failed(display_message(e, LOGIN_FAILED))
        if not resp.refresh_token:
            return failed(resp.message or LOGIN_FAILED)

        user = resp.user
        page.sessions.save(
            page.sid,
            UserSession(
                token=resp.refresh_token,
                user_id=user.id if user else None,
                user_name=user.name if user else None,
                user_email=user.email if user else None,
                user_role=user.role if user else None,
            ),
        )
        log.info("login ok (user=%s)", user.id if user else "?")
        page.store.dispatch(login_success(user))
        page.store.dispatch(add_notification("success", "Logged in successfully!", 3000))
        return RedirectResponse(url="/", status_code=303)

    @r.get("/register", response_class=HTMLResponse)
    async def register_page(page: Page = Depends(get_page_dep)):
        return page.render("register.html", {"grades": GRADES, "values": {}, "errors": {}, "success": False})

    @r.post("/register", response_class=HTMLResponse)
    async def register_submit(
        page: Page = Depends(get_page_dep),
        first_name: str = Form(""),
        last_name: str = Form(""),
        phone: str = Form(""),
        email: str = Form(""),
        grade: str = Form(""),
        password: str = Form(""),
        confirm_password: str = Form(""),
    ):
        values = {
            "first_name": first_name,
            "last_name": last_name,
            "phone": phone,
            "email": email,
            "grade": grade,
        }
        ctx: dict[str, Any] = {"grades": GRADES, "values": values, "errors": {}, "success": False}
        try:
            form = RegisterForm(**values, password=password, confirm_password=confirm_password)
        except ValidationError as e:
            ctx["errors"] = form_errors(e)
            return page.render("register.html", ctx)

        try:
            await auth_api.register(page.api, form.payload())
        except (ApiError, httpx.HTTPError) as e:
            page.store.dispatch(
                add_notification("error", display_message(e, REGISTER_FAILED), page.settings.notification_duration_ms)
            )
            return page.render("register.html", ctx)

        log.info("registered %s", form.phone)
        page.store.dispatch(add_notification("success", REGISTERED, page.settings.notification_duration_ms))
        return page.render("register.html", {**ctx, "success": True, **page.redirect_after("/login")})

    @r.api_route("/logout", methods=["GET", "POST"])
    async def logout_route(page: Page = Depends(get_page_dep)):
        s = page.session
        page.sessions.clear(page.sid)
        page.reset_store()
        if s:
            log.info("logout (user=%s)", s.user_id)
            page.store.dispatch(logout())
            page.store.dispatch(add_notification("info", "You have been logged out", 3000))
        return RedirectResponse(url="/login", status_code=303)

    # --- learner pages ------------------------------------------------------

    @r.get("/me/user", response_class=HTMLResponse)
    async def profile(page: Page = Depends(get_page_dep)):
        if not page.authenticated:
            return page.unauthenticated()
        try:
            user = await fetch_current_user(page.store, page.api)
        except AuthExpiredError:
            raise
        except (ApiError, httpx.HTTPError) as e:
            return page.render("profile.html", {"user": None, "error": display_message(e, "Failed to fetch user data")})
        return page.render("profile.html", {"user": user, "grade": GRADES.get(user.grade or ""), "error": None})

    @r.get("/me/user/courses", response_class=HTMLResponse)
    async def my_courses(page: Page = Depends(get_page_dep)):
        if not page.authenticated:
            return page.unauthenticated()
        error = None
        try:
            await fetch_enrolled_courses(page.store, page.api)
        except AuthExpiredError:
            raise
        except (ApiError, httpx.HTTPError) as e:
            error = display_message(e, "Failed to fetch enrolled courses")
        return page.render("my_courses.html", {"courses": page.store.select(select_enrolled_courses), "error": error})

    @r.get("/me/user/exam-results", response_class=HTMLResponse)
    async def exam_result(quizId: Optional[int] = None, page: Page = Depends(get_page_dep)):
        if not page.authenticated:
            return page.unauthenticated()
        if quizId is None:
            return page.render("exam_results.html", {"result": None, "error": "No quiz selected"})
        try:
            result = await fetch_quiz_results(page.store, page.api, quizId)
        except AuthExpiredError:
            raise
        except (ApiError, httpx.HTTPError) as e:
            return page.render(
                "exam_results.html", {"result": None, "error": display_message(e, "Failed to fetch quiz results")}
            )
        return page.render("exam_results.html", {"result": result, "error": None})

    @r.get("/me/user/all-exam-results", response_class=HTMLResponse)
    async def all_exam_results(
        q: Optional[str] = None,
        filter_: str = Query("all", alias="filter"),
        page: Page = Depends(get_page_dep),
    ):
        if not page.authenticated:
            return page.unauthenticated()
        kind = filter_ if filter_ in RESULT_FILTERS else "all"
        error = None
        try:
            await fetch_user_quiz_results(page.store, page.api)
        except AuthExpiredError:
            raise
        except (ApiError, httpx.HTTPError) as e:
            error = display_message(e, "Failed to fetch quiz results")

        results = page.store.state.quiz.user_results
        passed = sum(1 for r in results if r.passed)
        stats = {
            "total": len(results),
            "passed": passed,
            "failed": len(results) - passed,
            "average": round(sum(r.score for r in results) / len(results)) if results else 0,
        }
        return page.render(
            "all_exam_results.html",
            {
                "results": filter_results(results, q, kind),
                "stats": stats,
                "q": q or "",
                "filter": kind,
                "filters": RESULT_FILTERS,
                "error": error,
            },
        )

    @r.get("/me/user/assignments", response_class=HTMLResponse)
    async def submissions(page: Page = Depends(get_page_dep)):
        if not page.authenticated:
            return page.unauthenticated()
        error = None
        async with page_scope() as signal:
            try:
                await fetch_user_submissions(page.store, page.api, signal=signal)
            except AuthExpiredError:
                raise
            except (ApiError, httpx.HTTPError) as e:
                error = display_message(e, "Failed to fetch submitted assignments")
        state = page.store.state.assignment
        return page.render("submissions.html", {"submissions": state.submissions, "error": error})

    return r
