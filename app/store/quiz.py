from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from ..api import courses as courses_api
from ..api import quizzes as quizzes_api
from ..schemas import Quiz, QuizResult, QuizStatus, UserQuizResult, VideoProgress
from .core import Action, AsyncThunk, Slice


@dataclass(frozen=True)
class QuizState:
    quizzes: tuple[Quiz, ...] = field(default_factory=tuple)
    current_quiz: Optional[Quiz] = None
    quiz_results: Optional[QuizResult] = None
    quiz_statuses: dict[int, QuizStatus] = field(default_factory=dict)
    user_results: tuple[UserQuizResult, ...] = field(default_factory=tuple)
    loading: bool = False
    error: Optional[str] = None

    # Local optimistic completion, reconciled against video_progress.
    video_completed: dict[int, bool] = field(default_factory=dict)
    video_progress: dict[int, VideoProgress] = field(default_factory=dict)
    progress_loading: bool = False
    progress_error: Optional[str] = None

    selected_answers: dict[int, int] = field(default_factory=dict)
    submitting: bool = False
    submit_success: bool = False
    submit_error: Optional[str] = None


quiz_slice: Slice[QuizState] = Slice("quiz", QuizState)

set_video_completed = quiz_slice.action("set_video_completed")
set_selected_answer = quiz_slice.action("set_selected_answer")
reset_quiz_state = quiz_slice.action("reset_quiz_state")
reset_submit_state = quiz_slice.action("reset_submit_state")

fetch_quizzes_by_course = AsyncThunk("quiz/fetch_quizzes_by_course", quizzes_api.quizzes_by_course)
fetch_quiz = AsyncThunk("quiz/fetch_quiz", quizzes_api.get_quiz)
fetch_quiz_results = AsyncThunk("quiz/fetch_quiz_results", quizzes_api.quiz_results)
fetch_user_quiz_results = AsyncThunk("quiz/fetch_user_quiz_results", quizzes_api.user_quiz_results)
fetch_video_progress = AsyncThunk("quiz/fetch_video_progress", courses_api.video_progress)
complete_video = AsyncThunk("quiz/complete_video", courses_api.complete_video)
submit_quiz = AsyncThunk("quiz/submit_quiz", quizzes_api.submit_quiz)


@quiz_slice.case(set_video_completed.type)
def _set_video_completed(state: QuizState, action: Action) -> QuizState:
    video_id, completed = action.payload
    return replace(state, video_completed={**state.video_completed, int(video_id): bool(completed)})


@quiz_slice.case(set_selected_answer.type)
def _set_selected_answer(state: QuizState, action: Action) -> QuizState:
    question_id, option_id = action.payload
    return replace(state, selected_answers={**state.selected_answers, int(question_id): int(option_id)})


@quiz_slice.case(reset_quiz_state.type)
def _reset_quiz(state: QuizState, action: Action) -> QuizState:
    return replace(
        state,
        current_quiz=None,
        quiz_results=None,
        selected_answers={},
        submitting=False,
        submit_success=False,
        submit_error=None,
    )


@quiz_slice.case(reset_submit_state.type)
def _reset_submit(state: QuizState, action: Action) -> QuizState:
    return replace(state, submitting=False, submit_success=False)


@quiz_slice.case(
    fetch_quizzes_by_course.pending,
    fetch_quiz.pending,
    fetch_quiz_results.pending,
    fetch_user_quiz_results.pending,
)
def _quiz_pending(state: QuizState, action: Action) -> QuizState:
    return replace(state, loading=True, error=None)


@quiz_slice.case(
    fetch_quizzes_by_course.rejected,
    fetch_quiz.rejected,
    fetch_quiz_results.rejected,
    fetch_user_quiz_results.rejected,
)
def _quiz_rejected(state: QuizState, action: Action) -> QuizState:
    return replace(state, loading=False, error=action.payload)


@quiz_slice.case(fetch_quizzes_by_course.fulfilled)
def _quizzes_loaded(state: QuizState, action: Action) -> QuizState:
    quizzes = tuple(action.payload)
    statuses = dict(state.quiz_statuses)
    for q in quizzes:
        if q.status is not None:
            statuses[q.id] = q.status
    return replace(state, loading=False, quizzes=quizzes, quiz_statuses=statuses)


@quiz_slice.case(fetch_quiz.fulfilled)
def _quiz_loaded(state: QuizState, action: Action) -> QuizState:
    return replace(state, loading=False, current_quiz=action.payload)


@quiz_slice.case(fetch_quiz_results.fulfilled)
def _results_loaded(state: QuizState, action: Action) -> QuizState:
    result: QuizResult = action.payload
    return replace(
        state,
        loading=False,
        quiz_results=result,
        quiz_statuses={**state.quiz_statuses, result.quiz_id: result.status},
    )


@quiz_slice.case(fetch_user_quiz_results.fulfilled)
def _user_results_loaded(state: QuizState, action: Action) -> QuizState:
    return replace(state, loading=False, user_results=tuple(action.payload.results))


@quiz_slice.case(fetch_video_progress.pending, complete_video.pending)
def _progress_pending(state: QuizState, action: Action) -> QuizState:
    return replace(state, progress_loading=True, progress_error=None)


@quiz_slice.case(fetch_video_progress.rejected, complete_video.rejected)
def _progress_rejected(state: QuizState, action: Action) -> QuizState:
    return replace(state, progress_loading=False, progress_error=action.payload)


@quiz_slice.case(fetch_video_progress.fulfilled)
def _progress_loaded(state: QuizState, action: Action) -> QuizState:
    p: VideoProgress = action.payload
    return replace(state, progress_loading=False, video_progress={**state.video_progress, p.video_id: p})


@quiz_slice.case(complete_video.fulfilled)
def _video_completed(state: QuizState, action: Action) -> QuizState:
    p: VideoProgress = action.payload
    return replace(
        state,
        progress_loading=False,
        video_progress={**state.video_progress, p.video_id: p},
        video_completed={**state.video_completed, p.video_id: True},
    )


@quiz_slice.case(submit_quiz.pending)
def _submit_pending(state: QuizState, action: Action) -> QuizState:
    return replace(state, submitting=True, submit_success=False, submit_error=None)


@quiz_slice.case(submit_quiz.fulfilled)
def _submitted(state: QuizState, action: Action) -> QuizState:
    result: QuizResult = action.payload
    return replace(
        state,
        submitting=False,
        submit_success=True,
        quiz_results=result,
        quiz_statuses={**state.quiz_statuses, result.quiz_id: result.status},
        selected_answers={},
    )


@quiz_slice.case(submit_quiz.rejected)
def _submit_rejected(state: QuizState, action: Action) -> QuizState:
    return replace(state, submitting=False, submit_error=action.payload)


def select_selected_answers(state) -> dict[int, int]:
    return state.quiz.selected_answers


def select_quiz_for_video(video_id: int):
    def selector(state) -> Optional[Quiz]:
        return next((q for q in state.quiz.quizzes if q.video_id == int(video_id)), None)

    return selector


def select_quiz_status(quiz_id: int):
    def selector(state) -> QuizStatus:
        return state.quiz.quiz_statuses.get(int(quiz_id)) or QuizStatus()

    return selector


def select_video_completion(video_id: int):
    """(local optimistic flag, server progress record) for one video."""

    def selector(state) -> tuple[Optional[bool], Optional[VideoProgress]]:
        vid = int(video_id)
        return state.quiz.video_completed.get(vid), state.quiz.video_progress.get(vid)

    return selector
