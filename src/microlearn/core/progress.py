"""Learner progress aggregation.

Completion uses distinct modules (any attempt completes a module,
whatever its score); the average score uses every attempt, retakes
included. Snapshots are recomputed on demand and never cached.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

import structlog

from microlearn.core.grading import is_passing
from microlearn.core.models import Enrollment, QuizAttempt
from microlearn.db.store import AttemptStore, aquery

logger = structlog.get_logger(__name__)


@dataclass
class AttemptSummary:
    """One row of a learner's attempt history."""

    attempt_id: str
    module_id: str
    module_title: str
    score: int
    total_questions: int
    percentage: float
    passed: bool
    completed_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt_id": self.attempt_id,
            "module_id": self.module_id,
            "module_title": self.module_title,
            "score": self.score,
            "total_questions": self.total_questions,
            "percentage": self.percentage,
            "passed": self.passed,
            "completed_at": self.completed_at,
        }


@dataclass
class LearnerProgress:
    """Progress snapshot for one learner."""

    learner_id: str
    enrolled_modules: int = 0
    completed_modules: int = 0
    completion_percentage: float = 0.0
    average_score: float = 0.0
    attempt_count: int = 0
    recent_attempts: list[AttemptSummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "learner_id": self.learner_id,
            "enrolled_modules": self.enrolled_modules,
            "completed_modules": self.completed_modules,
            "completion_percentage": self.completion_percentage,
            "average_score": self.average_score,
            "attempt_count": self.attempt_count,
            "recent_attempts": [a.to_dict() for a in self.recent_attempts],
        }


def distinct_module_completion(attempts: Iterable[QuizAttempt]) -> int:
    """Number of distinct modules with at least one attempt."""
    return len({a.module_id for a in attempts})


def all_attempts_average(attempts: Sequence[QuizAttempt]) -> float:
    """Mean attempt percentage over every attempt (0 when there are none)."""
    if not attempts:
        return 0.0
    return sum(a.percentage for a in attempts) / len(attempts)


def compute_learner_progress(
    learner_id: str,
    enrollments: Sequence[Enrollment],
    attempts: Sequence[QuizAttempt],
    module_titles: dict[str, str] | None = None,
) -> LearnerProgress:
    """Compute progress statistics from a learner's full history.

    Args:
        learner_id: Learner the history belongs to
        enrollments: The learner's enrollments
        attempts: Every attempt by the learner (not deduplicated)
        module_titles: Optional module_id -> title for the history rows

    Returns:
        LearnerProgress snapshot
    """
    titles = module_titles or {}
    enrolled = len(enrollments)
    completed = distinct_module_completion(attempts)

    history = sorted(attempts, key=lambda a: a.completed_at, reverse=True)
    recent = [
        AttemptSummary(
            attempt_id=a.id,
            module_id=a.module_id,
            module_title=titles.get(a.module_id, "Unknown Module"),
            score=a.score,
            total_questions=a.total_questions,
            percentage=a.percentage,
            passed=is_passing(a.percentage),
            completed_at=a.completed_at,
        )
        for a in history
    ]

    return LearnerProgress(
        learner_id=learner_id,
        enrolled_modules=enrolled,
        completed_modules=completed,
        completion_percentage=completed / enrolled * 100 if enrolled > 0 else 0.0,
        average_score=all_attempts_average(attempts),
        attempt_count=len(attempts),
        recent_attempts=recent,
    )


class ProgressAggregator:
    """Reads a learner's history from the store and computes progress."""

    def __init__(self, store: AttemptStore):
        self.store = store

    async def compute(self, learner_id: str) -> LearnerProgress:
        """Compute a progress snapshot for one learner.

        Raises:
            FetchError: If the store cannot be read
        """
        enrollment_rows, attempt_rows = await asyncio.gather(
            aquery(self.store, "enrollments", {"learner_id": learner_id}),
            aquery(self.store, "quiz_attempts", {"learner_id": learner_id}),
        )
        attempts = [QuizAttempt.from_record(r) for r in attempt_rows]

        module_ids = sorted({a.module_id for a in attempts})
        module_rows = await aquery(self.store, "modules", {"id": module_ids}) if module_ids else []

        progress = compute_learner_progress(
            learner_id,
            [Enrollment.from_record(r) for r in enrollment_rows],
            attempts,
            {m["id"]: m["title"] for m in module_rows},
        )

        logger.debug(
            "learner_progress_computed",
            learner_id=learner_id,
            attempts=progress.attempt_count,
            completed=progress.completed_modules,
        )
        return progress
