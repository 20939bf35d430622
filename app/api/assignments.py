from __future__ import annotations

from typing import Any, Optional

from ..schemas import Assignment, AssignmentList, AssignmentResult, AssignmentStatus, SubmissionList
from .client import ApiClient


async def assignments_by_video(api: ApiClient, video_id: int, **kw: Any) -> list[Assignment]:
    data = await api.get(f"/assignments/video/{video_id}", fallback="Failed to fetch assignments", **kw)
    return AssignmentList.model_validate(data).assignments


async def assignments_by_course(api: ApiClient, course_id: int, **kw: Any) -> list[Assignment]:
    # Response is {"course": {...}, "assignments": [...]}.
    data = await api.get(f"/assignments/course/{course_id}", fallback="Failed to fetch assignments", **kw)
    return AssignmentList.model_validate(data).assignments


async def get_assignment(api: ApiClient, assignment_id: int, **kw: Any) -> Assignment:
    data = await api.get(f"/assignments/{assignment_id}", fallback="Failed to fetch assignment", **kw)
    return Assignment.model_validate(data)


async def assignment_status(api: ApiClient, assignment_id: int, **kw: Any) -> AssignmentStatus:
    data = await api.get(
        f"/assignments/{assignment_id}/status", fallback="Failed to fetch assignment status", **kw
    )
    return AssignmentStatus.model_validate({"assignmentId": assignment_id, **data})


async def submit_assignment(
    api: ApiClient,
    assignment_id: int,
    *,
    answers: Optional[dict[int, int]] = None,
    content: Optional[str] = None,
    file_url: Optional[str] = None,
    **kw: Any,
) -> AssignmentResult:
    body: dict[str, Any] = {"assignmentId": assignment_id}
    if answers is not None:
        body["answers"] = [{"questionId": q, "selectedOption": o} for q, o in answers.items()]
    else:
        body["content"] = content
        if file_url:
            body["fileUrl"] = file_url

    data = await api.post("/assignments/submit", body, fallback="Failed to submit assignment", **kw)
    return AssignmentResult.model_validate({"assignmentId": assignment_id, **data})


async def user_submissions(api: ApiClient, **kw: Any) -> SubmissionList:
    data = await api.get(
        "/assignments/user/submissions", fallback="Failed to fetch submitted assignments", **kw
    )
    return SubmissionList.model_validate(data)
