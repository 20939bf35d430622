from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from ..api import courses as courses_api
from ..schemas import Course
from .core import Action, AsyncThunk, Slice


@dataclass(frozen=True)
class CourseState:
    courses: tuple[Course, ...] = field(default_factory=tuple)
    current_course: Optional[Course] = None
    enrolled_courses: tuple[Course, ...] = field(default_factory=tuple)
    enrollments: dict[int, bool] = field(default_factory=dict)
    loading: bool = False
    error: Optional[str] = None
    enrolling: bool = False
    enrollment_error: Optional[str] = None


course_slice: Slice[CourseState] = Slice("courses", CourseState)

fetch_courses = AsyncThunk("courses/fetch_courses", courses_api.list_courses)
fetch_course = AsyncThunk("courses/fetch_course", courses_api.get_course)
fetch_enrolled_courses = AsyncThunk("courses/fetch_enrolled_courses", courses_api.enrolled_courses)
check_enrollment = AsyncThunk("courses/check_enrollment", courses_api.enrollment_status)
enroll = AsyncThunk("courses/enroll", courses_api.enroll)


def _with_enrollment(state: CourseState, course_id: int, enrolled: bool) -> CourseState:
    return replace(state, enrollments={**state.enrollments, int(course_id): enrolled})


@course_slice.case(fetch_courses.pending, fetch_course.pending, fetch_enrolled_courses.pending)
def _courses_pending(state: CourseState, action: Action) -> CourseState:
    return replace(state, loading=True, error=None)


@course_slice.case(fetch_courses.rejected, fetch_course.rejected, fetch_enrolled_courses.rejected)
def _courses_rejected(state: CourseState, action: Action) -> CourseState:
    # Keep whatever was already loaded.
    return replace(state, loading=False, error=action.payload)


@course_slice.case(fetch_courses.fulfilled)
def _courses_loaded(state: CourseState, action: Action) -> CourseState:
    return replace(state, loading=False, courses=tuple(action.payload))


@course_slice.case(fetch_course.fulfilled)
def _course_loaded(state: CourseState, action: Action) -> CourseState:
    return replace(state, loading=False, current_course=action.payload)


@course_slice.case(fetch_enrolled_courses.fulfilled)
def _enrolled_loaded(state: CourseState, action: Action) -> CourseState:
    courses = tuple(action.payload)
    state = replace(state, loading=False, enrolled_courses=courses)
    for c in courses:
        state = _with_enrollment(state, c.id, True)
    return state


@course_slice.case(check_enrollment.fulfilled)
def _enrollment_checked(state: CourseState, action: Action) -> CourseState:
    return _with_enrollment(state, action.payload.course_id, action.payload.enrolled)


@course_slice.case(enroll.pending)
def _enroll_pending(state: CourseState, action: Action) -> CourseState:
    return replace(state, enrolling=True, enrollment_error=None)


@course_slice.case(enroll.fulfilled)
def _enrolled(state: CourseState, action: Action) -> CourseState:
    _user_id, course_id = action.meta
    return replace(_with_enrollment(state, course_id, True), enrolling=False)


@course_slice.case(enroll.rejected)
def _enroll_rejected(state: CourseState, action: Action) -> CourseState:
    return replace(state, enrolling=False, enrollment_error=action.payload)


def select_all_courses(state) -> tuple[Course, ...]:
    return state.courses.courses


def select_enrolled_courses(state) -> tuple[Course, ...]:
    return state.courses.enrolled_courses


def select_enrollment_status(course_id: int):
    def selector(state) -> bool:
        return state.courses.enrollments.get(int(course_id), False)

    return selector
