"""Cohort analytics for one instructor's modules.

Semantics differ on purpose from learner progress and the leaderboard:
- total_enrolled counts enrollment records (learner x module pairs)
- average_score and pass_rate use every attempt, no dedup
- completion_percentage is attempt count over enrollment count, so
  retakes can push it above 100
- the per-student table keeps, per (learner, module), the attempt with
  the highest raw score (not percentage); the first one seen wins ties
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Sequence

import structlog

from microlearn.core.grading import is_passing
from microlearn.core.models import Enrollment, Module, Profile, QuizAttempt
from microlearn.core.progress import all_attempts_average
from microlearn.db.store import AttemptStore, aquery

logger = structlog.get_logger(__name__)

BestScoreKey = tuple[str, str]  # (learner_id, module_id)


@dataclass
class StudentBestScore:
    """Best attempt of one learner on one module."""

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

    def to_dict(self) -> dict[str, Any]:
        return {
            "learner_id": self.learner_id,
            "student_name": self.student_name,
            "student_email": self.student_email,
            "module_id": self.module_id,
            "module_title": self.module_title,
            "score": self.score,
            "total_questions": self.total_questions,
            "percentage": self.percentage,
            "passed": self.passed,
            "completed_at": self.completed_at,
        }


@dataclass
class CohortAnalytics:
    """Dashboard snapshot for one instructor."""

    instructor_id: str
    modules: list[Module] = field(default_factory=list)
    total_enrolled: int = 0
    attempt_count: int = 0
    average_score: float = 0.0
    pass_rate: float = 0.0
    completion_percentage: float = 0.0
    student_scores: list[StudentBestScore] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "instructor_id": self.instructor_id,
            "modules": [m.to_dict() for m in self.modules],
            "total_enrolled": self.total_enrolled,
            "attempt_count": self.attempt_count,
            "average_score": self.average_score,
            "pass_rate": self.pass_rate,
            "completion_percentage": self.completion_percentage,
            "student_scores": [s.to_dict() for s in self.student_scores],
        }


def best_score_table(attempts: Sequence[QuizAttempt]) -> dict[BestScoreKey, QuizAttempt]:
    """Highest raw-score attempt per (learner_id, module_id)."""
    best: dict[BestScoreKey, QuizAttempt] = {}
    for attempt in attempts:
        key = (attempt.learner_id, attempt.module_id)
        current = best.get(key)
        if current is None or current.score < attempt.score:
            best[key] = attempt
    return best


def attempt_pass_rate(attempts: Sequence[QuizAttempt]) -> float:
    """Percent of attempts at or above the pass threshold."""
    if not attempts:
        return 0.0
    passed = sum(1 for a in attempts if is_passing(a.percentage))
    return passed / len(attempts) * 100


def attempt_count_completion(attempt_count: int, total_enrolled: int) -> float:
    """Attempts per enrollment, as a percentage (0 without enrollments)."""
    if total_enrolled <= 0:
        return 0.0
    return attempt_count / total_enrolled * 100


def compute_cohort_analytics(
    instructor_id: str,
    modules: Sequence[Module],
    enrollments: Sequence[Enrollment],
    attempts: Sequence[QuizAttempt],
    profiles: dict[str, Profile] | None = None,
) -> CohortAnalytics:
    """Compute cohort statistics for an instructor.

    Args:
        instructor_id: Owner of the modules
        modules: The instructor's modules
        enrollments: Enrollments on those modules
        attempts: Attempts on those modules
        profiles: Optional learner_id -> Profile for the score table

    Returns:
        CohortAnalytics snapshot
    """
    people = profiles or {}
    module_ids = {m.id for m in modules}
    titles = {m.id: m.title for m in modules}

    enrollments = [e for e in enrollments if e.module_id in module_ids]
    attempts = [a for a in attempts if a.module_id in module_ids]
    total_enrolled = len(enrollments)

    student_scores = []
    for (learner_id, module_id), attempt in best_score_table(attempts).items():
        profile = people.get(learner_id)
        student_scores.append(
            StudentBestScore(
                learner_id=learner_id,
                student_name=profile.full_name if profile else "Unknown",
                student_email=profile.email if profile else "",
                module_id=module_id,
                module_title=titles.get(module_id, "Unknown Module"),
                score=attempt.score,
                total_questions=attempt.total_questions,
                percentage=attempt.percentage,
                passed=is_passing(attempt.percentage),
                completed_at=attempt.completed_at,
            )
        )

    return CohortAnalytics(
        instructor_id=instructor_id,
        modules=list(modules),
        total_enrolled=total_enrolled,
        attempt_count=len(attempts),
        average_score=all_attempts_average(attempts),
        pass_rate=attempt_pass_rate(attempts),
        completion_percentage=attempt_count_completion(len(attempts), total_enrolled),
        student_scores=student_scores,
    )


class InstructorAnalytics:
    """Reads an instructor's cohort from the store and computes analytics."""

    def __init__(self, store: AttemptStore):
        self.store = store

    async def compute(self, instructor_id: str) -> CohortAnalytics:
        """Compute the dashboard snapshot for one instructor.

        Raises:
            FetchError: If the store cannot be read
        """
        module_rows = await aquery(
            self.store,
            "modules",
            {"instructor_id": instructor_id},
            order_by="created_at",
            descending=True,
        )
        modules = [Module.from_record(r) for r in module_rows]
        if not modules:
            return CohortAnalytics(instructor_id=instructor_id)

        module_ids = [m.id for m in modules]
        enrollment_rows, attempt_rows = await asyncio.gather(
            aquery(self.store, "enrollments", {"module_id": module_ids}),
            aquery(self.store, "quiz_attempts", {"module_id": module_ids}),
        )
        attempts = [QuizAttempt.from_record(r) for r in attempt_rows]

        learner_ids = sorted({a.learner_id for a in attempts})
        profile_rows = await aquery(self.store, "profiles", {"id": learner_ids}) if learner_ids else []

        analytics = compute_cohort_analytics(
            instructor_id,
            modules,
            [Enrollment.from_record(r) for r in enrollment_rows],
            attempts,
            {p["id"]: Profile.from_record(p) for p in profile_rows},
        )

        logger.debug(
            "cohort_analytics_computed",
            instructor_id=instructor_id,
            modules=len(modules),
            enrolled=analytics.total_enrolled,
            attempts=analytics.attempt_count,
        )
        return analytics
