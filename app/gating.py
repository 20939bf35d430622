"""What a learner may do next: video completion, quiz/assignment unlocks,
and the pre-submit answer check."""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Optional

from .errors import ApiError, ValidationBlocked
from .schemas import Question, VideoProgress, VideoStream


PREVIOUS_VIDEO_STATUS = 403
PREVIOUS_VIDEO_MESSAGE = "Finish the previous video first."
ALREADY_PASSED_QUIZ = "You have already passed this quiz"
ALREADY_SUBMITTED_ASSIGNMENT = "You have already submitted this assignment"


def is_video_completed(local: Optional[bool], server: Optional[VideoProgress]) -> bool:
    # A server record always wins over the local optimistic flag.
    if server is not None:
        return server.completed
    return bool(local)


def mark_complete_disabled(local: Optional[bool], server: Optional[VideoProgress]) -> bool:
    return bool(local) or (server is not None and server.completed)


def is_link_enabled(local: Optional[bool], server: Optional[VideoProgress]) -> bool:
    return is_video_completed(local, server)


def unanswered_questions(questions: Iterable[Question], selected: Mapping[int, Optional[int]]) -> list[Question]:
    return [q for q in questions if selected.get(q.id) is None]


def unanswered_message(count: int) -> str:
    return f"Please answer all questions. ({count} remaining)"


def require_answers(questions: Iterable[Question], selected: Mapping[int, Optional[int]]) -> None:
    """Stop a submit locally while any question is still open."""
    missing = unanswered_questions(questions, selected)
    if missing:
        raise ValidationBlocked(unanswered_message(len(missing)))


def is_previous_video_blocked(exc: BaseException) -> bool:
    return isinstance(exc, ApiError) and exc.has_status(PREVIOUS_VIDEO_STATUS)


def submit_error_message(exc: BaseException, already: str, fallback: str) -> str:
    """Translate a submit failure; a STATUS_400 means it was already done."""
    if isinstance(exc, ApiError):
        if exc.has_status(400):
            return already
        return exc.message or fallback
    return fallback


@dataclass(frozen=True)
class Embed:
    kind: str  # youtube | stream | none
    src: Optional[str] = None


_YT_URL = (re.compile(r"[?&]v=([^&#]+)"), re.compile(r"youtu\.be/([^?&#]+)"))
_YT_EMBED = (re.compile(r"embed/(.*?)\?"), re.compile(r'embed/(.*?)"'))


def youtube_id(stream: VideoStream) -> Optional[str]:
    if stream.url:
        for rx in _YT_URL:
            m = rx.search(stream.url)
            if m:
                return m.group(1)
    if stream.embed_html:
        for rx in _YT_EMBED:
            m = rx.search(stream.embed_html)
            if m:
                return m.group(1)
    return None


def video_embed(stream: VideoStream) -> Embed:
    if stream.is_youtube:
        yid = youtube_id(stream)
        if yid:
            return Embed(
                "youtube",
                f"https://www.youtube.com/embed/{yid}?rel=0&modestbranding=1&controls=1&playsinline=1",
            )
    if stream.stream_url:
        return Embed("stream", stream.stream_url)
    if stream.url:
        return Embed("stream", stream.url)
    return Embed("none")


def format_duration(seconds: int) -> str:
    h, rem = divmod(max(0, int(seconds)), 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}h {m:02d}m"
    return f"{m}m {s:02d}s"
