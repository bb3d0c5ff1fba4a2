"""Pydantic schemas for the Web API.

Serialization models for profiles, modules, quizzes, quiz sessions and
the analytics snapshots.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from microlearn import __version__

# =============================================================================
# PROFILE SCHEMAS
# =============================================================================


class ProfileCreate(BaseModel):
    """Request body for registering a profile."""

    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(default="", max_length=200)
    role: Literal["learner", "instructor"] = "learner"


class ProfileResponse(BaseModel):
    """Response for a profile."""

    id: str
    full_name: str
    email: str
    role: str
    created_at: str


# =============================================================================
# MODULE SCHEMAS
# =============================================================================


class MediaUrlsSchema(BaseModel):
    """Optional content assets of a module."""

    video: str | None = None
    pdf: str | None = None
    animated: str | None = None


class ModuleCreate(BaseModel):
    """Request body for saving a new draft module."""

    title: str = Field(..., max_length=200)
    content_summary: str = Field(default="", max_length=5000)
    media_urls: MediaUrlsSchema = Field(default_factory=MediaUrlsSchema)


class ModuleUpdate(BaseModel):
    """Request body for editing a draft module. Omitted fields are kept."""

    title: str | None = Field(default=None, max_length=200)
    content_summary: str | None = Field(default=None, max_length=5000)
    media_urls: MediaUrlsSchema | None = None


class ModuleResponse(BaseModel):
    """Response for a module."""

    id: str
    instructor_id: str
    title: str
    content_summary: str
    media_urls: MediaUrlsSchema
    published: bool
    created_at: str


class CatalogModuleResponse(ModuleResponse):
    """Published module as listed to a learner."""

    instructor_name: str = "Unknown"
    enrolled: bool = False


class ModuleListResponse(BaseModel):
    """Response for list of modules."""

    modules: list[CatalogModuleResponse]
    count: int


class ModuleViewResponse(BaseModel):
    """Response for a learner opening a module."""

    module: ModuleResponse
    instructor_name: str
    enrolled: bool
    quiz_id: str | None = None


class EnrollmentResponse(BaseModel):
    """Response for an enrollment."""

    learner_id: str
    module_id: str
    enrolled_at: str


# =============================================================================
# QUIZ AUTHORING SCHEMAS
# =============================================================================


class QuestionDraftSchema(BaseModel):
    """An editable quiz question."""

    text: str = ""
    options: dict[str, str] = Field(default_factory=dict)
    correct_answer: Literal["A", "B", "C", "D"] = "A"
    explanation: str = ""


class QuizGenerateRequest(BaseModel):
    """Request to generate draft questions."""

    prompt: str = Field(..., max_length=2000)


class QuizGenerateResponse(BaseModel):
    """Generated draft questions."""

    questions: list[QuestionDraftSchema]
    count: int


class QuizSaveRequest(BaseModel):
    """Request to store a quiz for a module."""

    ai_prompt: str = Field(default="", max_length=2000)
    questions: list[QuestionDraftSchema]
    publish: bool = True


class QuizSaveResponse(BaseModel):
    """Stored quiz."""

    quiz_id: str
    module_id: str
    ai_prompt: str
    question_count: int
    module_published: bool


# =============================================================================
# QUIZ SESSION SCHEMAS
# =============================================================================


class QuizSessionStartRequest(BaseModel):
    """Request to start a quiz attempt."""

    quiz_id: str


class AnswerRequest(BaseModel):
    """Select an answer for a question."""

    index: int = Field(..., ge=0)
    answer: str = Field(..., min_length=1, max_length=1)


class QuizSessionResponse(BaseModel):
    """Snapshot of a quiz session."""

    session_id: str
    learner_id: str
    quiz_id: str
    module_id: str
    state: str
    current_index: int
    question_count: int
    answers: dict[str, str]
    can_submit: bool
    current_question: dict[str, Any] | None = None
    result: dict[str, Any] | None = None


# =============================================================================
# ANALYTICS SCHEMAS
# =============================================================================


class AttemptSummarySchema(BaseModel):
    attempt_id: str
    module_id: str
    module_title: str
    score: int
    total_questions: int
    percentage: float
    passed: bool
    completed_at: str


class ProgressResponse(BaseModel):
    """Learner progress snapshot. error is set when the data could not be read."""

    learner_id: str
    enrolled_modules: int = 0
    completed_modules: int = 0
    completion_percentage: float = 0.0
    average_score: float = 0.0
    attempt_count: int = 0
    recent_attempts: list[AttemptSummarySchema] = Field(default_factory=list)
    error: str | None = None


class LeaderboardEntrySchema(BaseModel):
    rank: int
    learner_id: str
    learner_name: str
    average_score: float
    attempt_count: int


class LeaderboardResponse(BaseModel):
    """Top-10 leaderboard with the caller's rank (null when unranked)."""

    entries: list[LeaderboardEntrySchema] = Field(default_factory=list)
    requesting_learner_id: str | None = None
    my_rank: int | None = None
    error: str | None = None


class StudentBestScoreSchema(BaseModel):
    learner_id: str
    student_name: str
    student_email: str
    module_id: str
    module_title: str
    score: int
    total_questions: int
    percentage: float
    passed: bool
    completed_at: str


class AnalyticsResponse(BaseModel):
    """Instructor cohort analytics."""

    instructor_id: str
    modules: list[ModuleResponse] = Field(default_factory=list)
    total_enrolled: int = 0
    attempt_count: int = 0
    average_score: float = 0.0
    pass_rate: float = 0.0
    completion_percentage: float = 0.0
    student_scores: list[StudentBestScoreSchema] = Field(default_factory=list)
    error: str | None = None


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = __version__
    active_quiz_sessions: int = 0
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
