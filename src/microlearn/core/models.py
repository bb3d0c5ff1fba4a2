"""Domain records for the microlearning platform.

Each dataclass converts from a store record (from_record) and to a
JSON-serializable dict (to_dict). Store column names are snake_case;
question options are stored as option_a..option_d columns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# =============================================================================
# CONSTANTS
# =============================================================================

ANSWER_LETTERS: tuple[str, ...] = ("A", "B", "C", "D")

ROLES: tuple[str, ...] = ("learner", "instructor")


def option_column(letter: str) -> str:
    """Store column for an option letter ('A' -> 'option_a')."""
    return f"option_{letter.lower()}"


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class Profile:
    """A platform user (learner or instructor)."""

    id: str
    full_name: str
    role: str
    email: str = ""
    created_at: str = ""

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Profile:
        return cls(
            id=record["id"],
            full_name=record["full_name"],
            role=record["role"],
            email=record.get("email") or "",
            created_at=record.get("created_at") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
            "created_at": self.created_at,
        }


@dataclass
class MediaUrls:
    """Optional content assets attached to a module."""

    video: str | None = None
    pdf: str | None = None
    animated: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"video": self.video, "pdf": self.pdf, "animated": self.animated}


@dataclass
class Module:
    """A unit of learning content owned by one instructor."""

    id: str
    instructor_id: str
    title: str
    content_summary: str = ""
    media: MediaUrls = field(default_factory=MediaUrls)
    published: bool = False
    created_at: str = ""

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Module:
        return cls(
            id=record["id"],
            instructor_id=record["instructor_id"],
            title=record["title"],
            content_summary=record.get("content_summary") or "",
            media=MediaUrls(
                video=record.get("video_url"),
                pdf=record.get("pdf_url"),
                animated=record.get("animated_content_url"),
            ),
            published=bool(record.get("published", False)),
            created_at=record.get("created_at") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "instructor_id": self.instructor_id,
            "title": self.title,
            "content_summary": self.content_summary,
            "media_urls": self.media.to_dict(),
            "published": self.published,
            "created_at": self.created_at,
        }


def media_to_record(media: MediaUrls) -> dict[str, str | None]:
    """Map MediaUrls onto the module store columns."""
    return {
        "video_url": media.video,
        "pdf_url": media.pdf,
        "animated_content_url": media.animated,
    }


@dataclass
class Enrollment:
    """A learner enrolled in a module. Unique per (learner, module)."""

    learner_id: str
    module_id: str
    id: str = ""
    enrolled_at: str = ""

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Enrollment:
        return cls(
            learner_id=record["learner_id"],
            module_id=record["module_id"],
            id=record.get("id") or "",
            enrolled_at=record.get("enrolled_at") or "",
        )


@dataclass
class Quiz:
    """The quiz attached to a module."""

    id: str
    module_id: str
    ai_prompt: str = ""

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Quiz:
        return cls(
            id=record["id"],
            module_id=record["module_id"],
            ai_prompt=record.get("ai_prompt") or "",
        )


@dataclass
class Question:
    """A four-option multiple choice question."""

    id: str
    quiz_id: str
    text: str
    options: dict[str, str]
    correct_answer: str
    explanation: str = ""
    order_number: int = 0

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Question:
        return cls(
            id=record["id"],
            quiz_id=record["quiz_id"],
            text=record["question_text"],
            options={letter: record.get(option_column(letter)) or "" for letter in ANSWER_LETTERS},
            correct_answer=record["correct_answer"],
            explanation=record.get("explanation") or "",
            order_number=record.get("order_number") or 0,
        )

    def option_text(self, letter: str | None) -> str:
        """Text of an option, empty for unknown or missing letters."""
        if letter is None:
            return ""
        return self.options.get(letter, "")

    def to_dict(self, include_answer: bool = True) -> dict[str, Any]:
        """Convert to dictionary. Learner-facing views omit the answer."""
        result: dict[str, Any] = {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "text": self.text,
            "options": dict(self.options),
            "order_number": self.order_number,
        }
        if include_answer:
            result["correct_answer"] = self.correct_answer
            result["explanation"] = self.explanation
        return result


@dataclass
class QuizAttempt:
    """One learner's completed run through a quiz. Immutable once stored."""

    learner_id: str
    quiz_id: str
    module_id: str
    score: int
    total_questions: int
    answers: dict[int, str] = field(default_factory=dict)
    id: str = ""
    completed_at: str = ""

    @property
    def percentage(self) -> float:
        """Attempt score as a percentage of total questions."""
        if self.total_questions <= 0:
            return 0.0
        return self.score / self.total_questions * 100

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> QuizAttempt:
        return cls(
            id=record.get("id") or "",
            learner_id=record["learner_id"],
            quiz_id=record["quiz_id"],
            module_id=record["module_id"],
            score=int(record["score"]),
            total_questions=int(record["total_questions"]),
            answers={int(k): v for k, v in (record.get("answers") or {}).items()},
            completed_at=record.get("completed_at") or "",
        )

    def to_record(self) -> dict[str, Any]:
        """Fields written to the store (id and timestamp are generated)."""
        return {
            "learner_id": self.learner_id,
            "quiz_id": self.quiz_id,
            "module_id": self.module_id,
            "score": self.score,
            "total_questions": self.total_questions,
            "answers": dict(self.answers),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "learner_id": self.learner_id,
            "quiz_id": self.quiz_id,
            "module_id": self.module_id,
            "score": self.score,
            "total_questions": self.total_questions,
            "answers": {str(k): v for k, v in self.answers.items()},
            "completed_at": self.completed_at,
        }
