from __future__ import annotations

from typing import Any

from ..schemas import Course, EnrollmentStatus, EnrollResponse, VideoProgress, VideoStream
from .client import ApiClient


async def list_courses(api: ApiClient, **kw: Any) -> list[Course]:
    data = await api.get("/courses", fallback="Failed to fetch courses", **kw)
    if isinstance(data, dict):
        data = data.get("courses") or []
    return [Course.model_validate(c) for c in data]


async def get_course(api: ApiClient, course_id: int, **kw: Any) -> Course:
    data = await api.get(f"/courses/{course_id}", fallback="Failed to fetch course data", **kw)
    return Course.model_validate(data)


async def enrolled_courses(api: ApiClient, **kw: Any) -> list[Course]:
    data = await api.get("/courses/enrolled", fallback="Failed to fetch enrolled courses", **kw)
    if isinstance(data, dict):
        data = data.get("courses") or []
    return [Course.model_validate(c) for c in data]


async def enrollment_status(api: ApiClient, user_id: str, course_id: int, **kw: Any) -> EnrollmentStatus:
    data = await api.post(
        "/enroll/api/enrollment-status",
        {"userId": user_id, "courseId": course_id},
        fallback="Failed to check enrollment status",
        **kw,
    )
    return EnrollmentStatus(course_id=course_id, enrolled=bool(data.get("enrolled")))


async def enroll(api: ApiClient, user_id: str, course_id: int, **kw: Any) -> EnrollResponse:
    data = await api.post(
        "/enroll/api/enroll",
        {"userId": user_id, "courseId": course_id, "isPaid": True},
        fallback="Failed to enroll in course",
        **kw,
    )
    return EnrollResponse.model_validate(data)


async def video_stream(api: ApiClient, video_id: int, **kw: Any) -> VideoStream:
    data = await api.get(f"/stream/video/{video_id}/url", fallback="Failed to load video", **kw)
    return VideoStream.model_validate(data)


async def video_progress(api: ApiClient, video_id: int, **kw: Any) -> VideoProgress:
    data = await api.get(f"/progress/{video_id}", fallback="Failed to fetch video progress", **kw)
    data = {"videoId": video_id, **(data or {})}
    return VideoProgress.model_validate(data)


async def complete_video(api: ApiClient, video_id: int, **kw: Any) -> VideoProgress:
    data = await api.post(
        "/progress/complete",
        {"videoId": int(video_id)},
        fallback="Failed to mark video as completed",
        **kw,
    )
    # The server confirms completion; trust it even if the body is sparse.
    data = {"videoId": video_id, **(data or {}), "completed": True}
    return VideoProgress.model_validate(data)
