from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from ..api import assignments as assignments_api
from ..schemas import Assignment, AssignmentResult, AssignmentStatus, Submission
from .core import Action, AsyncThunk, Slice


@dataclass(frozen=True)
class AssignmentState:
    assignments: tuple[Assignment, ...] = field(default_factory=tuple)
    current_assignment: Optional[Assignment] = None
    assignment_results: Optional[AssignmentResult] = None
    assignment_statuses: dict[int, AssignmentStatus] = field(default_factory=dict)
    loading: bool = False
    error: Optional[str] = None

    submissions: tuple[Submission, ...] = field(default_factory=tuple)
    submissions_loading: bool = False
    submissions_error: Optional[str] = None

    selected_answers: dict[int, int] = field(default_factory=dict)
    submitting: bool = False
    submit_success: bool = False
    submit_error: Optional[str] = None


assignment_slice: Slice[AssignmentState] = Slice("assignment", AssignmentState)

set_selected_answer = assignment_slice.action("set_selected_answer")
reset_assignment_state = assignment_slice.action("reset_assignment_state")
reset_submit_state = assignment_slice.action("reset_submit_state")

fetch_assignments_by_video = AsyncThunk(
    "assignment/fetch_assignments_by_video", assignments_api.assignments_by_video
)
fetch_assignments_by_course = AsyncThunk(
    "assignment/fetch_assignments_by_course", assignments_api.assignments_by_course
)
fetch_assignment = AsyncThunk("assignment/fetch_assignment", assignments_api.get_assignment)
fetch_assignment_status = AsyncThunk("assignment/fetch_assignment_status", assignments_api.assignment_status)
submit_assignment = AsyncThunk("assignment/submit_assignment", assignments_api.submit_assignment)
fetch_user_submissions = AsyncThunk("assignment/fetch_user_submissions", assignments_api.user_submissions)


@assignment_slice.case(set_selected_answer.type)
def _set_selected_answer(state: AssignmentState, action: Action) -> AssignmentState:
    question_id, option_id = action.payload
    return replace(state, selected_answers={**state.selected_answers, int(question_id): int(option_id)})


@assignment_slice.case(reset_assignment_state.type)
def _reset(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(
        state,
        current_assignment=None,
        assignment_results=None,
        selected_answers={},
        submitting=False,
        submit_success=False,
        submit_error=None,
    )


@assignment_slice.case(reset_submit_state.type)
def _reset_submit(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(state, submitting=False, submit_success=False)


@assignment_slice.case(
    fetch_assignments_by_video.pending, fetch_assignments_by_course.pending, fetch_assignment.pending
)
def _pending(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(state, loading=True, error=None)


@assignment_slice.case(
    fetch_assignments_by_video.rejected, fetch_assignments_by_course.rejected, fetch_assignment.rejected
)
def _rejected(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(state, loading=False, error=action.payload)


@assignment_slice.case(fetch_assignments_by_video.fulfilled, fetch_assignments_by_course.fulfilled)
def _list_loaded(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(state, loading=False, assignments=tuple(action.payload))


@assignment_slice.case(fetch_assignment.fulfilled)
def _loaded(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(state, loading=False, current_assignment=action.payload)


@assignment_slice.case(fetch_assignment_status.fulfilled)
def _status_loaded(state: AssignmentState, action: Action) -> AssignmentState:
    s: AssignmentStatus = action.payload
    return replace(state, assignment_statuses={**state.assignment_statuses, s.assignment_id: s})


@assignment_slice.case(submit_assignment.pending)
def _submit_pending(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(state, submitting=True, submit_success=False, submit_error=None)


@assignment_slice.case(submit_assignment.fulfilled)
def _submitted(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(
        state,
        submitting=False,
        submit_success=True,
        assignment_results=action.payload,
        selected_answers={},
    )


@assignment_slice.case(submit_assignment.rejected)
def _submit_rejected(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(state, submitting=False, submit_error=action.payload)


@assignment_slice.case(fetch_user_submissions.pending)
def _submissions_pending(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(state, submissions_loading=True, submissions_error=None)


@assignment_slice.case(fetch_user_submissions.fulfilled)
def _submissions_loaded(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(state, submissions_loading=False, submissions=tuple(action.payload.submissions))


@assignment_slice.case(fetch_user_submissions.rejected)
def _submissions_rejected(state: AssignmentState, action: Action) -> AssignmentState:
    return replace(state, submissions_loading=False, submissions_error=action.payload)


def select_selected_answers(state) -> dict[int, int]:
    return state.assignment.selected_answers


def select_assignments_for_video(video_id: int):
    def selector(state) -> tuple[Assignment, ...]:
        return tuple(a for a in state.assignment.assignments if a.video_id == int(video_id))

    return selector


def select_assignment_status(assignment_id: int):
    def selector(state) -> Optional[AssignmentStatus]:
        return state.assignment.assignment_statuses.get(int(assignment_id))

    return selector
