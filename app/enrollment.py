from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse

from .cancel import page_scope
from .deps import Page
from .errors import ApiError, AuthExpiredError, display_message, reraise_auth
from .gating import format_duration
from .schemas import Course
from .store.courses import check_enrollment, enroll, fetch_course
from .store.ui import add_notification


log = logging.getLogger(__name__)

ENROLL_FAILED = "Failed to enroll in course"
ALREADY_ENROLLED = "You are already enrolled in this course"
ENROLLED = "Enrolled successfully"
LOGIN_FIRST = "Please log in first"


def join_label(course: Course) -> str:
    return "Join for free" if course.is_free else "Subscribe now"


async def _course_and_enrollment(page: Page, course_id: int) -> tuple[Course, bool]:
    """Fetch the course and a fresh enrollment flag side by side.

    Enrollment failures degrade to "not enrolled"; course failures raise.
    """
    s = page.session
    async with page_scope() as signal:
        fetches = [fetch_course(page.store, page.api, course_id, signal=signal)]
        if s and s.user_id:
            fetches.append(check_enrollment(page.store, page.api, s.user_id, course_id, signal=signal))
        course, *status = await asyncio.gather(*fetches, return_exceptions=True)
    reraise_auth(course, *status)
    if isinstance(course, Exception):
        raise course

    enrolled = False
    if status and not isinstance(status[0], Exception):
        enrolled = status[0].enrolled
    elif status:
        log.warning("enrollment check failed (course=%s): %s", course_id, status[0])
    return course, enrolled


def build_enrollment_router(*, get_page_dep: Callable[..., Any]) -> APIRouter:
    """Invoice page: review a course and enroll in it."""

    r = APIRouter()

    def invoice_ctx(course: Course, enrolled: bool, **extra: Any) -> dict[str, Any]:
        return {
            "course": course,
            "enrolled": enrolled,
            "label": join_label(course),
            "total_duration": course.duration or format_duration(course.total_duration_seconds),
            "error": None,
            "success": False,
            **extra,
        }

    @r.get("/course/{course_id}/subscribe/invoice", response_class=HTMLResponse)
    async def invoice(course_id: int, page: Page = Depends(get_page_dep)):
        if not page.authenticated:
            return page.unauthenticated()
        try:
            course, enrolled = await _course_and_enrollment(page, course_id)
        except AuthExpiredError:
            raise
        except (ApiError, httpx.HTTPError) as e:
            return page.render("invoice.html", {"course": None, "error": display_message(e, "Failed to fetch course data")})
        return page.render("invoice.html", invoice_ctx(course, enrolled))

    @r.post("/course/{course_id}/subscribe/invoice", response_class=HTMLResponse)
    async def subscribe(course_id: int, page: Page = Depends(get_page_dep)):
        if not page.authenticated:
            return page.unauthenticated()
        try:
            course, enrolled = await _course_and_enrollment(page, course_id)
        except AuthExpiredError:
            raise
        except (ApiError, httpx.HTTPError) as e:
            return page.render("invoice.html", {"course": None, "error": display_message(e, "Failed to fetch course data")})

        user_id = page.session.user_id
        if not user_id:
            return page.render("invoice.html", invoice_ctx(course, enrolled, error=LOGIN_FIRST))

        if enrolled:
            page.store.dispatch(add_notification("info", ALREADY_ENROLLED, page.settings.notification_duration_ms))
            return RedirectResponse(url=f"/course/{course_id}", status_code=303)

        try:
            await enroll(page.store, page.api, user_id, course_id)
        except AuthExpiredError:
            raise
        except (ApiError, httpx.HTTPError) as e:
            return page.render("invoice.html", invoice_ctx(course, False, error=display_message(e, ENROLL_FAILED)))

        log.info("user %s enrolled in course %s", user_id, course_id)
        page.store.dispatch(add_notification("success", ENROLLED, page.settings.notification_duration_ms))
        return page.render(
            "invoice.html",
            invoice_ctx(course, True, success=True, **page.redirect_after(f"/course/{course_id}")),
        )

    return r
