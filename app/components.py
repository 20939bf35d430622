"""View models for the widgets shared between pages."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .cancel import AbortSignal
from .deps import Page
from .errors import AuthExpiredError, RequestAborted
from .gating import format_duration, is_link_enabled, is_video_completed
from .schemas import Assignment, Course, Quiz, QuizStatus, Video
from .store.assignment import select_assignments_for_video
from .store.courses import check_enrollment
from .store.quiz import select_quiz_for_video, select_quiz_status, select_video_completion


log = logging.getLogger(__name__)


@dataclass
class EnrollmentCard:
    course_id: int
    title: str
    price: float
    duration: str
    questions_count: Optional[int]
    enrolled: bool

    @property
    def price_label(self) -> str:
        return "Free" if self.price == 0 else f"{self.price:g} EGP"

    @property
    def action_label(self) -> str:
        return "Go to course" if self.enrolled else "Enroll now"


async def enrollment_card(
    page: Page,
    course: Course,
    is_enrolled: bool,
    signal: AbortSignal | None = None,
) -> EnrollmentCard:
    """Build the card, re-checking enrollment rather than trusting the page.

    A failed re-check keeps the value handed in by the page.
    """
    enrolled = is_enrolled
    s = page.session
    if s and s.user_id:
        try:
            status = await check_enrollment(page.store, page.api, s.user_id, course.id, signal=signal)
            enrolled = status.enrolled
        except (AuthExpiredError, RequestAborted):
            raise
        except Exception:
            log.exception("enrollment re-check failed (course=%s)", course.id)

    return EnrollmentCard(
        course_id=course.id,
        title=course.title,
        price=course.price,
        duration=course.duration or format_duration(course.total_duration_seconds),
        questions_count=course.questions_count,
        enrolled=enrolled,
    )


@dataclass
class OutlineRow:
    index: int
    video: Video
    completed: bool
    unlocked: bool
    quiz: Optional[Quiz] = None
    quiz_status: QuizStatus = field(default_factory=QuizStatus)
    assignments: tuple[Assignment, ...] = ()


def course_outline(page: Page, course: Course) -> list[OutlineRow]:
    """One row per video, with its quiz/assignments and whether they are open."""
    state = page.store.state
    rows = []
    for i, video in enumerate(course.videos, start=1):
        local, server = select_video_completion(video.id)(state)
        quiz = select_quiz_for_video(video.id)(state)
        rows.append(
            OutlineRow(
                index=i,
                video=video,
                completed=is_video_completed(local, server),
                unlocked=is_link_enabled(local, server),
                quiz=quiz,
                quiz_status=select_quiz_status(quiz.id)(state) if quiz else QuizStatus(),
                assignments=select_assignments_for_video(video.id)(state),
            )
        )
    return rows
