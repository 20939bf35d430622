"""Response contracts for the backend endpoints.

Every payload is validated into one of these models at the API-client
boundary. The backend speaks camelCase (with a few snake_case leftovers on
courses), so models accept both.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Contract(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


# --- auth -------------------------------------------------------------------


class User(Contract):
    id: str
    name: str = ""
    email: str = ""
    role: str = "student"
    phone_number: Optional[str] = None
    grade: Optional[str] = None


class LoginResponse(Contract):
    refresh_token: Optional[str] = None
    user: Optional[User] = None
    message: Optional[str] = None


class RegisterResponse(Contract):
    message: Optional[str] = None
    user: Optional[User] = None


# --- courses ----------------------------------------------------------------


class Video(Contract):
    id: int
    title: str = ""
    description: Optional[str] = None
    duration_seconds: int = Field(
        default=0, validation_alias=AliasChoices("durationSeconds", "duration", "duration_seconds")
    )
    url: Optional[str] = None

    @field_validator("duration_seconds", mode="before")
    @classmethod
    def _seconds_or_zero(cls, v):
        try:
            return int(v or 0)
        except (TypeError, ValueError):
            return 0


class Course(Contract):
    id: int
    title: str = ""
    description: Optional[str] = None
    price: float = 0
    duration: Optional[str] = None
    files_count: int = Field(default=0, validation_alias=AliasChoices("filesCount", "files_count"))
    questions_count: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("questionsCount", "questions_count")
    )
    thumbnail: Optional[str] = None
    videos: list[Video] = Field(default_factory=list)

    @field_validator("price", mode="before")
    @classmethod
    def _free_when_blank(cls, v):
        return v or 0

    @field_validator("videos", mode="before")
    @classmethod
    def _no_null_videos(cls, v):
        return v or []

    @property
    def is_free(self) -> bool:
        return self.price == 0

    @property
    def total_duration_seconds(self) -> int:
        return sum(v.duration_seconds for v in self.videos)


class EnrollmentStatus(Contract):
    course_id: int
    enrolled: bool = False


class EnrollResponse(Contract):
    message: Optional[str] = None
    enrolled: bool = True


class VideoStream(Contract):
    id: Optional[int] = None
    title: Optional[str] = None
    url: Optional[str] = None
    stream_url: Optional[str] = None
    is_youtube: bool = False
    embed_html: Optional[str] = None
    date: Optional[str] = None
    views: Optional[int] = None


class VideoProgress(Contract):
    video_id: int
    completed: bool = False
    watched_at: Optional[datetime] = None


# --- quizzes ----------------------------------------------------------------


class Option(Contract):
    id: int
    text: str


class Question(Contract):
    id: int
    text: str = ""
    options: list[Option] = Field(default_factory=list)
    points: int = 1

    @field_validator("options", mode="before")
    @classmethod
    def _index_plain_options(cls, v):
        # Plain string options are identified by their position.
        if not v:
            return []
        return [{"id": i, "text": o} if isinstance(o, str) else o for i, o in enumerate(v)]


class QuizStatus(Contract):
    taken: bool = False
    passed: Optional[bool] = None
    score: Optional[float] = None
    submitted_at: Optional[datetime] = None


class Quiz(Contract):
    id: int
    title: str = ""
    description: Optional[str] = None
    is_final: bool = False
    passing_score: float = 0
    video_id: Optional[int] = None
    video_title: Optional[str] = None
    question_count: int = 0
    status: Optional[QuizStatus] = None
    questions: list[Question] = Field(default_factory=list)


class AnswerResult(Contract):
    question_id: int
    question_text: str = ""
    selected_option: Optional[int] = None
    correct_option: Optional[int] = None
    is_correct: bool = False
    points: int = 0
    explanation: Optional[str] = None


class QuizResult(Contract):
    quiz_id: int
    title: str = ""
    correct_answers: int = 0
    total_questions: int = 0
    score: float = 0
    passing_score: float = 0
    passed: bool = False
    submitted_at: Optional[datetime] = None
    results: list[AnswerResult] = Field(
        default_factory=list, validation_alias=AliasChoices("results", "answers")
    )

    @property
    def status(self) -> QuizStatus:
        return QuizStatus(taken=True, passed=self.passed, score=self.score, submitted_at=self.submitted_at)


class UserQuizResult(QuizResult):
    description: Optional[str] = None
    is_final: bool = False
    course_id: Optional[int] = None
    course_title: str = ""
    video_id: Optional[int] = None
    video_title: Optional[str] = None
    earned_points: int = 0
    total_points: int = 0


class UserQuizResults(Contract):
    message: Optional[str] = None
    count: int = 0
    results: list[UserQuizResult] = Field(default_factory=list)


# --- assignments ------------------------------------------------------------


class AssignmentSummary(Contract):
    id: int
    title: str = ""
    description: Optional[str] = None
    is_mcq: bool = Field(default=False, validation_alias=AliasChoices("isMCQ", "isMcq", "is_mcq"))
    passing_score: float = 0


class Submission(Contract):
    id: Optional[int] = None
    assignment_id: Optional[int] = None
    status: Literal["PENDING", "GRADED"] = "PENDING"
    grade: Optional[float] = None
    feedback: Optional[str] = None
    content: Optional[str] = None
    file_url: Optional[str] = None
    mcq_score: Optional[float] = None
    submitted_at: Optional[datetime] = None
    graded_at: Optional[datetime] = None
    assignment: Optional[AssignmentSummary] = None

    @property
    def passed(self) -> Optional[bool]:
        if self.status != "GRADED" or self.grade is None or not self.assignment:
            return None
        return self.grade >= self.assignment.passing_score


class Assignment(Contract):
    id: int
    title: str = ""
    description: Optional[str] = None
    video_id: Optional[int] = None
    due_date: Optional[datetime] = None
    is_mcq: bool = Field(default=False, validation_alias=AliasChoices("isMCQ", "isMcq", "is_mcq"))
    passing_score: float = 0
    has_submitted: bool = False
    submission: Optional[Submission] = None
    questions: list[Question] = Field(
        default_factory=list, validation_alias=AliasChoices("questions", "AssignmentQuestion")
    )

    def is_past_due(self, now: datetime | None = None) -> bool:
        if self.due_date is None:
            return False
        due = self.due_date
        if due.tzinfo is None:
            due = due.replace(tzinfo=timezone.utc)
        return due < (now or datetime.now(timezone.utc))


class AssignmentList(Contract):
    assignments: list[Assignment] = Field(default_factory=list)


class AssignmentStatus(Contract):
    assignment_id: int
    title: str = ""
    submitted: bool = False
    status: Literal["GRADED", "PENDING", "NOT_SUBMITTED"] = "NOT_SUBMITTED"
    message: Optional[str] = None
    due_date: Optional[datetime] = None
    is_past_due: bool = False


class AssignmentResult(Contract):
    assignment_id: int
    title: str = ""
    mcq_score: Optional[float] = None
    grade: Optional[float] = None
    passing_score: float = 0
    passed: bool = False
    submitted_at: Optional[datetime] = None
    status: str = "PENDING"
    message: Optional[str] = None


class SubmissionList(Contract):
    submissions_count: int = 0
    submissions: list[Submission] = Field(default_factory=list)


