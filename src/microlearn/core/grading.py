"""Grading module.

Responsibilities:
- Grade a quiz answer set against its questions (exact letter match)
- Compute attempt percentage and pass/fail against the fixed threshold

Grading is deterministic and side-effect free: no store access, no LLM.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from microlearn.core.models import Question

# =============================================================================
# CONSTANTS
# =============================================================================

PASS_THRESHOLD = 60.0

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class QuestionGrade:
    """Grade for a single question."""

    index: int
    question_id: str
    is_correct: bool
    given_answer: str | None
    expected_answer: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "index": self.index,
            "question_id": self.question_id,
            "is_correct": self.is_correct,
            "given_answer": self.given_answer,
            "expected_answer": self.expected_answer,
        }


@dataclass
class GradeResult:
    """Outcome of grading one answer set."""

    score: int
    total_questions: int
    results: list[QuestionGrade] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        return attempt_percentage(self.score, self.total_questions)

    @property
    def passed(self) -> bool:
        return is_passing(self.percentage)

    @property
    def per_question_correctness(self) -> list[bool]:
        return [r.is_correct for r in self.results]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "score": self.score,
            "total_questions": self.total_questions,
            "percentage": self.percentage,
            "passed": self.passed,
            "results": [r.to_dict() for r in self.results],
        }


class InvalidQuizError(Exception):
    """Quiz cannot be graded (no questions)."""

    pass


# =============================================================================
# SCORING HELPERS
# =============================================================================


def attempt_percentage(score: int, total_questions: int) -> float:
    """Percentage of correct answers, 0-100.

    Raises:
        InvalidQuizError: If total_questions is not positive
    """
    if total_questions <= 0:
        raise InvalidQuizError("A quiz with no questions cannot be scored")
    return score / total_questions * 100


def is_passing(percentage: float) -> bool:
    """Pass/fail against PASS_THRESHOLD (exactly 60.0 passes)."""
    return percentage >= PASS_THRESHOLD


# =============================================================================
# MAIN FUNCTION
# =============================================================================


def grade(questions: Sequence[Question], answers: Mapping[int, str]) -> GradeResult:
    """Grade an answer set against an ordered question set.

    Args:
        questions: Questions in display order (index i is question i)
        answers: Sparse mapping question index -> chosen letter

    Returns:
        GradeResult with score and per-question correctness

    Raises:
        InvalidQuizError: If questions is empty
    """
    if not questions:
        raise InvalidQuizError("A quiz with no questions cannot be graded")

    results: list[QuestionGrade] = []
    for index, question in enumerate(questions):
        given = answers.get(index)
        results.append(
            QuestionGrade(
                index=index,
                question_id=question.id,
                is_correct=given is not None and given == question.correct_answer,
                given_answer=given,
                expected_answer=question.correct_answer,
            )
        )

    score = sum(1 for r in results if r.is_correct)
    return GradeResult(score=score, total_questions=len(questions), results=results)
