from datetime import datetime, timedelta, timezone

import pytest

from app.errors import ApiError, ValidationBlocked
from app.gating import (
    format_duration,
    is_link_enabled,
    is_previous_video_blocked,
    is_video_completed,
    mark_complete_disabled,
    require_answers,
    submit_error_message,
    unanswered_message,
    unanswered_questions,
    video_embed,
)
from app.schemas import Assignment, Course, Question, UserQuizResult, VideoProgress, VideoStream
from app.utils import filter_results, search_courses


DONE = VideoProgress(video_id=1, completed=True)
NOT_DONE = VideoProgress(video_id=1, completed=False)


def test_server_record_overrides_local_flag():
    assert is_video_completed(True, NOT_DONE) is False
    assert is_video_completed(False, DONE) is True
    assert is_video_completed(True, None) is True
    assert is_video_completed(None, None) is False


def test_mark_complete_locks_on_either_source():
    assert mark_complete_disabled(True, NOT_DONE)
    assert mark_complete_disabled(None, DONE)
    assert not mark_complete_disabled(None, NOT_DONE)


def test_links_only_open_once_completion_is_confirmed():
    assert not is_link_enabled(None, None)
    assert not is_link_enabled(True, NOT_DONE)
    assert is_link_enabled(None, DONE)


def test_unanswered_count():
    questions = [Question(id=i) for i in (1, 2, 3, 4)]
    missing = unanswered_questions(questions, {1: 0, 3: 2})
    assert [q.id for q in missing] == [2, 4]
    assert unanswered_message(len(missing)) == "Please answer all questions. (2 remaining)"


def test_option_zero_counts_as_answered():
    assert unanswered_questions([Question(id=1)], {1: 0}) == []


def test_require_answers_blocks_before_any_request():
    with pytest.raises(ValidationBlocked) as exc:
        require_answers([Question(id=1), Question(id=2)], {2: 1})
    assert exc.value.message == "Please answer all questions. (1 remaining)"
    require_answers([Question(id=1)], {1: 0})


def test_previous_video_block_is_a_403():
    assert is_previous_video_blocked(ApiError(403, "Complete the previous video"))
    assert not is_previous_video_blocked(ApiError(404, "Not found"))
    assert not is_previous_video_blocked(ValueError("x"))


def test_submit_error_translation():
    already = "You have already passed this quiz"
    assert submit_error_message(ApiError(400, "dup"), already, "generic") == already
    assert submit_error_message(ApiError(500, "Server exploded"), already, "generic") == "Server exploded"
    assert submit_error_message(ConnectionError(), already, "generic") == "generic"


def test_youtube_embed_from_url_and_html():
    s = VideoStream(is_youtube=True, url="https://www.youtube.com/watch?v=abc123&t=4")
    assert video_embed(s).src.startswith("https://www.youtube.com/embed/abc123?")

    s = VideoStream(is_youtube=True, embed_html='<iframe src="https://youtube.com/embed/xyz?rel=0">')
    assert "embed/xyz?" in video_embed(s).src


def test_stream_embed_falls_back_to_url():
    assert video_embed(VideoStream(stream_url="https://cdn/v.m3u8", url="https://x")).src == "https://cdn/v.m3u8"
    assert video_embed(VideoStream(url="https://x/v.mp4")).kind == "stream"
    assert video_embed(VideoStream()).kind == "none"


def test_format_duration():
    assert format_duration(1500) == "25m 00s"
    assert format_duration(3 * 3600 + 5 * 60) == "3h 05m"


def test_past_due():
    now = datetime(2026, 1, 10, tzinfo=timezone.utc)
    a = Assignment(id=1, due_date=now - timedelta(days=1))
    assert a.is_past_due(now)
    assert not Assignment(id=2).is_past_due(now)


def test_search_is_fuzzy_and_naturally_sorted():
    courses = [Course(id=i, title=t) for i, t in enumerate(["Algebra 10", "Algebra 2", "Chemistry"])]
    assert [c.title for c in search_courses(courses, "algebra")] == ["Algebra 2", "Algebra 10"]
    assert [c.title for c in search_courses(courses, "chemstry")] == ["Chemistry"]
    assert len(search_courses(courses, "")) == 3


def test_result_filters():
    results = [
        UserQuizResult(quiz_id=1, title="Unit 1", course_title="Algebra", passed=True),
        UserQuizResult(quiz_id=2, title="Unit 2", course_title="Algebra", passed=False),
        UserQuizResult(quiz_id=3, title="Final", course_title="Physics", passed=True, is_final=True),
    ]
    assert [r.quiz_id for r in filter_results(results, None, "passed")] == [1, 3]
    assert [r.quiz_id for r in filter_results(results, None, "failed")] == [2]
    assert [r.quiz_id for r in filter_results(results, None, "final")] == [3]
    assert [r.quiz_id for r in filter_results(results, "physics", "all")] == [3]
