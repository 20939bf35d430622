from __future__ import annotations

import asyncio
import logging
import secrets
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from .account import build_account_router
from .api import courses as courses_api
from .cancel import AbortSignal, page_scope
from .components import course_outline, enrollment_card
from .config import get_settings
from .db import init_db
from .deps import Page, get_page
from .enrollment import build_enrollment_router
from .errors import ApiError, AuthExpiredError, NotAuthenticatedError, display_message, reraise_auth
from .gating import (
    PREVIOUS_VIDEO_MESSAGE,
    format_duration,
    is_link_enabled,
    is_previous_video_blocked,
    mark_complete_disabled,
    video_embed,
)
from .learning import build_learning_router
from .schemas import Course
from .store.assignment import fetch_assignments_by_course, fetch_assignments_by_video, select_assignments_for_video
from .store.courses import check_enrollment, fetch_course, fetch_courses, select_all_courses
from .store.quiz import (
    complete_video,
    fetch_quizzes_by_course,
    fetch_video_progress,
    select_quiz_for_video,
    select_video_completion,
    set_video_completed,
)
from .store.ui import add_notification
from .utils import search_courses


log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    init_db()
    log.info("course portal up (backend=%s)", settings.api_url)
    yield


app = FastAPI(title="Course-Portal", lifespan=lifespan)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.filters["duration"] = format_duration
app.state.templates = templates


@app.middleware("http")
async def session_cookie(request: Request, call_next):
    """Give every browser a stable session id; the session store is keyed by it."""
    cookie = get_settings().session_cookie
    sid = request.cookies.get(cookie)
    issued = not sid
    if issued:
        sid = secrets.token_urlsafe(24)
    request.state.sid = sid

    response = await call_next(request)
    if issued:
        response.set_cookie(cookie, sid, httponly=True, samesite="lax")
    return response


@app.exception_handler(AuthExpiredError)
async def auth_expired(request: Request, exc: AuthExpiredError):
    # Session is already cleared by the client's 401 hook.
    return RedirectResponse(url="/login", status_code=303)


@app.exception_handler(NotAuthenticatedError)
async def not_authenticated(request: Request, exc: NotAuthenticatedError):
    return templates.TemplateResponse(
        request, "unauthenticated.html", {"nav_user": None, "notifications": [], "redirect": None}
    )


app.include_router(build_account_router(get_page_dep=get_page))
app.include_router(build_enrollment_router(get_page_dep=get_page))
app.include_router(build_learning_router(get_page_dep=get_page))


@app.get("/", response_class=HTMLResponse)
async def home(q: str | None = None, page: Page = Depends(get_page)):
    """Course list page."""
    if not page.authenticated:
        return page.render("home.html", {"courses": [], "q": q or "", "error": None})

    error = None
    try:
        await fetch_courses(page.store, page.api)
    except AuthExpiredError:
        raise
    except (ApiError, httpx.HTTPError) as e:
        error = display_message(e, "Failed to fetch courses")

    courses = search_courses(page.store.select(select_all_courses), q)
    return page.render("home.html", {"courses": courses, "q": q or "", "error": error})


async def _is_enrolled(page: Page, course_id: int, signal: AbortSignal) -> bool:
    s = page.session
    if not s or not s.user_id:
        return False
    status = await check_enrollment(page.store, page.api, s.user_id, course_id, signal=signal)
    return status.enrolled


async def _load_outline(page: Page, course: Course, signal: AbortSignal) -> None:
    results = await asyncio.gather(
        fetch_quizzes_by_course(page.store, page.api, course.id, signal=signal),
        fetch_assignments_by_course(page.store, page.api, course.id, signal=signal),
        *(fetch_video_progress(page.store, page.api, v.id, signal=signal) for v in course.videos),
        return_exceptions=True,
    )
    reraise_auth(*results)
    for r in results:
        if isinstance(r, Exception):
            log.warning("course outline partially loaded (course=%s): %s", course.id, r)


@app.get("/course/{course_id}", response_class=HTMLResponse)
async def course_detail(course_id: int, page: Page = Depends(get_page)):
    if not page.authenticated:
        return page.unauthenticated()

    async with page_scope() as signal:
        # Course data and enrollment race; either may land first.
        course, enrolled = await asyncio.gather(
            fetch_course(page.store, page.api, course_id, signal=signal),
            _is_enrolled(page, course_id, signal),
            return_exceptions=True,
        )
        reraise_auth(course, enrolled)

        if isinstance(course, Exception):
            return page.render(
                "course.html",
                {"course": None, "error": display_message(course, "Failed to fetch course data")},
            )
        if isinstance(enrolled, Exception):
            log.warning("enrollment check failed (course=%s): %s", course_id, enrolled)
            enrolled = False

        if enrolled:
            await _load_outline(page, course, signal)
        card = await enrollment_card(page, course, enrolled, signal=signal)

    return page.render(
        "course.html",
        {
            "course": course,
            "enrolled": enrolled,
            "card": card,
            "outline": course_outline(page, course) if enrolled else [],
            "error": None,
        },
    )


@app.get("/course/{course_id}/video/{video_id}", response_class=HTMLResponse)
async def video_player(course_id: int, video_id: int, page: Page = Depends(get_page)):
    if not page.authenticated:
        return page.unauthenticated()

    async with page_scope() as signal:
        stream, *rest = await asyncio.gather(
            courses_api.video_stream(page.api, video_id, signal=signal),
            fetch_video_progress(page.store, page.api, video_id, signal=signal),
            fetch_quizzes_by_course(page.store, page.api, course_id, signal=signal),
            fetch_assignments_by_video(page.store, page.api, video_id, signal=signal),
            return_exceptions=True,
        )
    reraise_auth(stream, *rest)

    ctx = {"course_id": course_id, "video_id": video_id, "blocked": None, "error": None, "stream": None}
    if isinstance(stream, Exception):
        if is_previous_video_blocked(stream):
            ctx["blocked"] = PREVIOUS_VIDEO_MESSAGE
            return page.render("video.html", ctx)
        ctx["error"] = display_message(stream, "An error occurred while loading the video")
    else:
        ctx["stream"] = stream
        ctx["embed"] = video_embed(stream)

    state = page.store.state
    local, server = select_video_completion(video_id)(state)
    ctx.update(
        completed=mark_complete_disabled(local, server),
        complete_disabled=mark_complete_disabled(local, server) or state.quiz.progress_loading,
        unlocked=is_link_enabled(local, server),
        quiz=select_quiz_for_video(video_id)(state),
        assignments=select_assignments_for_video(video_id)(state),
    )
    return page.render("video.html", ctx)


@app.post("/course/{course_id}/video/{video_id}/complete")
async def mark_video_complete(course_id: int, video_id: int, page: Page = Depends(get_page)):
    if not page.authenticated:
        return page.unauthenticated()

    # Optimistic: the button locks now, links unlock once the server confirms.
    page.store.dispatch(set_video_completed((video_id, True)))
    try:
        await complete_video(page.store, page.api, video_id)
    except AuthExpiredError:
        raise
    except (ApiError, httpx.HTTPError) as e:
        page.store.dispatch(set_video_completed((video_id, False)))
        page.store.dispatch(add_notification("error", display_message(e, "Failed to mark video as completed")))
    else:
        page.store.dispatch(add_notification("success", "Video marked as completed"))

    return RedirectResponse(url=f"/course/{course_id}/video/{video_id}", status_code=303)
