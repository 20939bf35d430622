from __future__ import annotations

from typing import Any

from ..errors import ApiError
from ..schemas import Quiz, QuizResult, UserQuizResults
from .client import ApiClient


NO_RESULTS = "No quiz results found"


async def quizzes_by_course(api: ApiClient, course_id: int, **kw: Any) -> list[Quiz]:
    data = await api.get(f"/quizzes/course/{course_id}", fallback="Failed to fetch quizzes", **kw)
    if isinstance(data, dict):
        data = data.get("quizzes") or []
    return [Quiz.model_validate(q) for q in data]


async def get_quiz(api: ApiClient, quiz_id: int, **kw: Any) -> Quiz:
    data = await api.get(f"/quizzes/{quiz_id}", fallback="Failed to fetch quiz", **kw)
    return Quiz.model_validate(data)


async def submit_quiz(api: ApiClient, quiz_id: int, answers: dict[int, int], **kw: Any) -> QuizResult:
    body = {
        "quizId": quiz_id,
        "answers": [{"questionId": q, "selectedOption": o} for q, o in answers.items()],
    }
    data = await api.post("/quizzes/submit", body, fallback="Failed to submit quiz answers", **kw)
    return QuizResult.model_validate({"quizId": quiz_id, **data})


async def quiz_results(api: ApiClient, quiz_id: int, **kw: Any) -> QuizResult:
    data = await api.get(f"/quizzes/{quiz_id}/results", fallback="Failed to fetch quiz results", **kw)
    return QuizResult.model_validate({"quizId": quiz_id, **data})


async def user_quiz_results(api: ApiClient, **kw: Any) -> UserQuizResults:
    try:
        data = await api.get("/quizzes/user/results", fallback="Failed to fetch quiz results", **kw)
    except ApiError as e:
        # A learner with no attempts gets a 404, which is not an error for us.
        if e.status == 404 and e.message == NO_RESULTS:
            return UserQuizResults(message=NO_RESULTS)
        raise
    return UserQuizResults.model_validate(data)
