"""Quiz question sources and the instructor's quiz builder.

Question generation sits behind the QuestionSource protocol. The only
shipped source is a placeholder that waits a moment and returns a fixed
sample set; a real generator can replace it without touching the
builder or the web layer.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from microlearn.core.catalog import load_owned_module, publish_module
from microlearn.core.models import ANSWER_LETTERS, Module, Question, Quiz, option_column
from microlearn.db.store import AttemptStore, ValidationError

logger = structlog.get_logger(__name__)

DEFAULT_GENERATION_DELAY = 1.5

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class QuestionDraft:
    """An editable question before it is saved."""

    text: str = ""
    options: dict[str, str] = field(default_factory=lambda: {letter: "" for letter in ANSWER_LETTERS})
    correct_answer: str = "A"
    explanation: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "options": dict(self.options),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuestionDraft:
        options = {letter: "" for letter in ANSWER_LETTERS}
        options.update(data.get("options") or {})
        return cls(
            text=data.get("text", ""),
            options=options,
            correct_answer=data.get("correct_answer", "A"),
            explanation=data.get("explanation", ""),
        )


@dataclass
class SavedQuiz:
    """Quiz and questions as stored."""

    quiz: Quiz
    questions: list[Question]
    module: Module

    def to_dict(self) -> dict[str, Any]:
        return {
            "quiz_id": self.quiz.id,
            "module_id": self.quiz.module_id,
            "ai_prompt": self.quiz.ai_prompt,
            "questions": [q.to_dict() for q in self.questions],
            "module_published": self.module.published,
        }


# =============================================================================
# QUESTION SOURCES
# =============================================================================


class QuestionSource(Protocol):
    """Produces draft questions for a module from an instructor prompt."""

    def generate(self, prompt: str, module: Module | None = None) -> list[QuestionDraft]:
        ...


SAMPLE_QUESTIONS: tuple[dict[str, Any], ...] = (
    {
        "text": "What is the main topic of this module?",
        "options": {
            "A": "Frontend Development",
            "B": "Backend Development",
            "C": "Database Management",
            "D": "DevOps",
        },
        "correct_answer": "A",
        "explanation": "This module focuses on frontend development concepts and practices.",
    },
    {
        "text": "Which of the following is a key concept in this module?",
        "options": {
            "A": "Responsive Design",
            "B": "Server Configuration",
            "C": "Network Security",
            "D": "Data Mining",
        },
        "correct_answer": "A",
        "explanation": "Responsive design is a fundamental concept covered in this module.",
    },
    {
        "text": "What tool is recommended for this topic?",
        "options": {"A": "React", "B": "Django", "C": "Docker", "D": "Jenkins"},
        "correct_answer": "A",
        "explanation": "React is the recommended tool for building interactive user interfaces.",
    },
)


class PlaceholderQuestionSource:
    """Returns the fixed sample questions after a short delay."""

    def __init__(self, delay_seconds: float = DEFAULT_GENERATION_DELAY):
        self.delay_seconds = delay_seconds

    def generate(self, prompt: str, module: Module | None = None) -> list[QuestionDraft]:
        """Generate draft questions.

        Raises:
            ValidationError: If the prompt is blank
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Please describe the questions to generate")

        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)

        drafts = [QuestionDraft.from_dict(q) for q in SAMPLE_QUESTIONS]
        logger.info(
            "questions_generated",
            source="placeholder",
            module_id=module.id if module else None,
            count=len(drafts),
        )
        return drafts


# =============================================================================
# QUIZ BUILDER
# =============================================================================


class QuizBuilder:
    """Instructor-side editable list of questions for one module."""

    def __init__(self, drafts: list[QuestionDraft] | None = None):
        self.drafts: list[QuestionDraft] = list(drafts or [])

    def generate(self, source: QuestionSource, prompt: str, module: Module | None = None) -> None:
        """Replace the drafts with freshly generated ones."""
        self.drafts = source.generate(prompt, module)

    def add_question(self, draft: QuestionDraft | None = None) -> int:
        """Append a question (blank by default) and return its index."""
        self.drafts.append(draft or QuestionDraft())
        return len(self.drafts) - 1

    def remove_question(self, index: int) -> QuestionDraft:
        if not 0 <= index < len(self.drafts):
            raise ValidationError(f"Question index out of range: {index}")
        return self.drafts.pop(index)

    def edit_question(self, index: int, **changes: Any) -> QuestionDraft:
        """Edit text, explanation, correct_answer or individual options.

        Options are passed as option_a..option_d or as an options mapping.
        """
        if not 0 <= index < len(self.drafts):
            raise ValidationError(f"Question index out of range: {index}")
        draft = self.drafts[index]

        for key, value in changes.items():
            if key in ("text", "explanation"):
                setattr(draft, key, value)
            elif key == "correct_answer":
                if value not in ANSWER_LETTERS:
                    raise ValidationError(f"Correct answer must be one of {', '.join(ANSWER_LETTERS)}")
                draft.correct_answer = value
            elif key == "options":
                for letter, text in value.items():
                    if letter not in ANSWER_LETTERS:
                        raise ValidationError(f"Unknown option: {letter}")
                    draft.options[letter] = text
            elif key in {option_column(letter) for letter in ANSWER_LETTERS}:
                draft.options[key[-1].upper()] = value
            else:
                raise ValidationError(f"Unknown question field: {key}")
        return draft

    def validate(self) -> None:
        """Check the drafts can be saved.

        Raises:
            ValidationError: If there are no questions or one is incomplete
        """
        if not self.drafts:
            raise ValidationError("Please generate or add at least one question")
        for index, draft in enumerate(self.drafts):
            if not draft.text.strip():
                raise ValidationError(f"Question {index + 1} has no text")
            if draft.correct_answer not in ANSWER_LETTERS:
                raise ValidationError(f"Question {index + 1} has an invalid correct answer")

    def save(
        self,
        store: AttemptStore,
        instructor_id: str,
        module_id: str,
        ai_prompt: str = "",
        publish: bool = False,
    ) -> SavedQuiz:
        """Store the quiz and its questions (order_number = position).

        Raises:
            ValidationError: If the drafts are not saveable
            NotFoundError / PermissionDeniedError: If the module is missing or not owned
        """
        module = load_owned_module(store, instructor_id, module_id)
        self.validate()

        quiz_record = store.insert("quizzes", {"module_id": module_id, "ai_prompt": ai_prompt})
        questions = []
        for order_number, draft in enumerate(self.drafts):
            record = store.insert(
                "questions",
                {
                    "quiz_id": quiz_record["id"],
                    "question_text": draft.text,
                    **{option_column(letter): draft.options.get(letter, "") for letter in ANSWER_LETTERS},
                    "correct_answer": draft.correct_answer,
                    "explanation": draft.explanation,
                    "order_number": order_number,
                },
            )
            questions.append(Question.from_record(record))

        if publish:
            module = publish_module(store, instructor_id, module_id)

        logger.info(
            "quiz_saved",
            quiz_id=quiz_record["id"],
            module_id=module_id,
            questions=len(questions),
            published=module.published,
        )
        return SavedQuiz(quiz=Quiz.from_record(quiz_record), questions=questions, module=module)


def get_question_source(name: str = "placeholder", delay_seconds: float = DEFAULT_GENERATION_DELAY) -> QuestionSource:
    """Build the configured question source.

    Raises:
        ValueError: If the source name is unknown
    """
    if name == "placeholder":
        return PlaceholderQuestionSource(delay_seconds=delay_seconds)
    raise ValueError(f"Unknown question source: {name}")
