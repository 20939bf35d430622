"""Quiz and assignment pages under a video."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from .cancel import page_scope
from .deps import Page
from .errors import ApiError, AuthExpiredError, ValidationBlocked, display_message, reraise_auth
from .gating import (
    ALREADY_PASSED_QUIZ,
    ALREADY_SUBMITTED_ASSIGNMENT,
    is_link_enabled,
    require_answers,
    submit_error_message,
)
from .schemas import Question
from .store.assignment import (
    fetch_assignment,
    fetch_assignment_status,
    reset_assignment_state,
    select_assignment_status,
    submit_assignment,
)
from .store.assignment import reset_submit_state as reset_assignment_submit
from .store.assignment import select_selected_answers as select_assignment_answers
from .store.assignment import set_selected_answer as set_assignment_answer
from .store.quiz import (
    fetch_quiz,
    fetch_video_progress,
    reset_quiz_state,
    reset_submit_state,
    select_selected_answers,
    select_video_completion,
    set_selected_answer,
    submit_quiz,
)


log = logging.getLogger(__name__)

LOCKED = "Complete the video first to unlock this."
CONTENT_REQUIRED = "Please enter content or a file link for the assignment"


def parse_answers(form: Mapping[str, Any], questions: Iterable[Question]) -> dict[int, int]:
    """Read ``q-<questionId>`` radio values; anything unparsable is unanswered."""
    out = {}
    for q in questions:
        raw = form.get(f"q-{q.id}")
        if raw in (None, ""):
            continue
        try:
            out[q.id] = int(raw)
        except (TypeError, ValueError):
            continue
    return out


def assignment_payload(page: Page, assignment, form: Mapping[str, Any]) -> dict[str, Any]:
    """Submission body for an assignment form; raises ValidationBlocked when incomplete."""
    if assignment.is_mcq:
        for qid, opt in parse_answers(form, assignment.questions).items():
            page.store.dispatch(set_assignment_answer((qid, opt)))
        selected = page.store.select(select_assignment_answers)
        require_answers(assignment.questions, selected)
        return {"answers": dict(selected)}

    content = str(form.get("content") or "").strip()
    file_url = str(form.get("file_url") or "").strip()
    if not content and not file_url:
        raise ValidationBlocked(CONTENT_REQUIRED)
    return {"content": content, "file_url": file_url or None}


def build_learning_router(*, get_page_dep: Callable[..., Any]) -> APIRouter:
    r = APIRouter()

    def unlocked(page: Page, video_id: int) -> bool:
        local, server = select_video_completion(video_id)(page.store.state)
        return is_link_enabled(local, server)

    async def load_quiz(page: Page, quiz_id: int, video_id: int):
        async with page_scope() as signal:
            quiz, progress = await asyncio.gather(
                fetch_quiz(page.store, page.api, quiz_id, signal=signal),
                fetch_video_progress(page.store, page.api, video_id, signal=signal),
                return_exceptions=True,
            )
        reraise_auth(quiz, progress)
        if isinstance(progress, Exception):
            log.warning("progress unavailable (video=%s): %s", video_id, progress)
        return quiz

    def quiz_ctx(page: Page, course_id: int, video_id: int, quiz, **extra: Any) -> dict[str, Any]:
        state = page.store.state.quiz
        return {
            "course_id": course_id,
            "video_id": video_id,
            "quiz": quiz,
            "selected": page.store.select(select_selected_answers),
            "submitting": state.submitting,
            "locked": not unlocked(page, video_id),
            "result": None,
            "error": None,
            **extra,
        }

    @r.get("/course/{course_id}/video/{video_id}/quiz/{quiz_id}", response_class=HTMLResponse)
    async def quiz_page(course_id: int, video_id: int, quiz_id: int, page: Page = Depends(get_page_dep)):
        if not page.authenticated:
            return page.unauthenticated()

        page.store.dispatch(reset_quiz_state())
        quiz = await load_quiz(page, quiz_id, video_id)
        if isinstance(quiz, Exception):
            err = display_message(quiz, "An error occurred while loading the quiz")
            return page.render("quiz.html", quiz_ctx(page, course_id, video_id, None, error=err))
        return page.render("quiz.html", quiz_ctx(page, course_id, video_id, quiz))

    @r.post("/course/{course_id}/video/{video_id}/quiz/{quiz_id}", response_class=HTMLResponse)
    async def quiz_submit(course_id: int, video_id: int, quiz_id: int, page: Page = Depends(get_page_dep)):
        if not page.authenticated:
            return page.unauthenticated()

        form = await page.request.form()
        quiz = await load_quiz(page, quiz_id, video_id)
        if isinstance(quiz, Exception):
            err = display_message(quiz, "An error occurred while loading the quiz")
            return page.render("quiz.html", quiz_ctx(page, course_id, video_id, None, error=err))

        page.store.dispatch(reset_submit_state())
        for qid, opt in parse_answers(form, quiz.questions).items():
            page.store.dispatch(set_selected_answer((qid, opt)))
        selected = page.store.select(select_selected_answers)

        if not unlocked(page, video_id):
            return page.render("quiz.html", quiz_ctx(page, course_id, video_id, quiz, error=LOCKED))

        try:
            require_answers(quiz.questions, selected)
        except ValidationBlocked as e:
            return page.render("quiz.html", quiz_ctx(page, course_id, video_id, quiz, error=e.message))

        try:
            result = await submit_quiz(page.store, page.api, quiz_id, dict(selected))
        except AuthExpiredError:
            raise
        except (ApiError, httpx.HTTPError) as e:
            err = submit_error_message(e, ALREADY_PASSED_QUIZ, "Failed to submit quiz answers")
            return page.render("quiz.html", quiz_ctx(page, course_id, video_id, quiz, error=err))

        log.info("quiz %s submitted (score=%s, passed=%s)", quiz_id, result.score, result.passed)
        return page.render("quiz.html", quiz_ctx(page, course_id, video_id, quiz, result=result))

    async def load_assignment(page: Page, assignment_id: int, video_id: int):
        async with page_scope() as signal:
            assignment, *rest = await asyncio.gather(
                fetch_assignment(page.store, page.api, assignment_id, signal=signal),
                fetch_assignment_status(page.store, page.api, assignment_id, signal=signal),
                fetch_video_progress(page.store, page.api, video_id, signal=signal),
                return_exceptions=True,
            )
        reraise_auth(assignment, *rest)
        for e in rest:
            if isinstance(e, Exception):
                log.warning("assignment page partially loaded (assignment=%s): %s", assignment_id, e)
        return assignment

    def assignment_ctx(page: Page, course_id: int, video_id: int, assignment, **extra: Any) -> dict[str, Any]:
        state = page.store.state.assignment
        status = select_assignment_status(assignment.id)(page.store.state) if assignment else None
        submitted = bool(assignment and (assignment.has_submitted or (status and status.submitted)))
        return {
            "course_id": course_id,
            "video_id": video_id,
            "assignment": assignment,
            "status": status,
            "selected": page.store.select(select_assignment_answers),
            "submitting": state.submitting,
            "already_submitted": submitted,
            # Free-form work can only be handed in once; MCQ may be retaken.
            "disabled": submitted and not assignment.is_mcq,
            "past_due": bool(assignment and assignment.is_past_due()),
            "locked": not unlocked(page, video_id),
            "content": "",
            "file_url": "",
            "result": None,
            "error": None,
            **extra,
        }

    @r.get(
        "/course/{course_id}/video/{video_id}/assignment/{assignment_id}",
        response_class=HTMLResponse,
    )
    async def assignment_page(
        course_id: int, video_id: int, assignment_id: int, page: Page = Depends(get_page_dep)
    ):
        if not page.authenticated:
            return page.unauthenticated()

        page.store.dispatch(reset_assignment_state())
        assignment = await load_assignment(page, assignment_id, video_id)
        if isinstance(assignment, Exception):
            err = display_message(assignment, "An error occurred while loading the assignment")
            return page.render("assignment.html", assignment_ctx(page, course_id, video_id, None, error=err))
        return page.render("assignment.html", assignment_ctx(page, course_id, video_id, assignment))

    @r.post(
        "/course/{course_id}/video/{video_id}/assignment/{assignment_id}",
        response_class=HTMLResponse,
    )
    async def assignment_submit(
        course_id: int, video_id: int, assignment_id: int, page: Page = Depends(get_page_dep)
    ):
        if not page.authenticated:
            return page.unauthenticated()

        form = await page.request.form()
        assignment = await load_assignment(page, assignment_id, video_id)
        if isinstance(assignment, Exception):
            err = display_message(assignment, "An error occurred while loading the assignment")
            return page.render("assignment.html", assignment_ctx(page, course_id, video_id, None, error=err))

        def fail(message: str, **extra: Any):
            ctx = assignment_ctx(page, course_id, video_id, assignment, error=message, **extra)
            return page.render("assignment.html", ctx)

        if not unlocked(page, video_id):
            return fail(LOCKED)

        page.store.dispatch(reset_assignment_submit())
        try:
            kwargs = assignment_payload(page, assignment, form)
        except ValidationBlocked as e:
            return fail(e.message)

        try:
            result = await submit_assignment(page.store, page.api, assignment_id, **kwargs)
        except AuthExpiredError:
            raise
        except (ApiError, httpx.HTTPError) as e:
            err = submit_error_message(e, ALREADY_SUBMITTED_ASSIGNMENT, "Failed to submit assignment")
            return fail(err, content=kwargs.get("content") or "", file_url=kwargs.get("file_url") or "")

        log.info("assignment %s submitted (status=%s)", assignment_id, result.status)
        ctx = assignment_ctx(page, course_id, video_id, assignment, result=result)
        return page.render("assignment.html", ctx)

    return r
