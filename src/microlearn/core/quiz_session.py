"""Quiz session state machine.

Drives one learner through one quiz attempt:

    LOADING -> IN_PROGRESS -> SUBMITTED

IN_PROGRESS holds the current question index and a sparse answer map.
SUBMITTED is terminal; retaking a quiz needs a new session.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Sequence

import structlog

from microlearn.core.grading import GradeResult, InvalidQuizError, grade
from microlearn.core.models import ANSWER_LETTERS, Question, QuizAttempt
from microlearn.db.store import AttemptStore, NotFoundError, StoreError, ValidationError

logger = structlog.get_logger(__name__)


class QuizState(Enum):
    """States of a quiz session."""

    LOADING = auto()  # Questions not loaded yet
    IN_PROGRESS = auto()  # Learner is answering
    SUBMITTED = auto()  # Graded, terminal


class QuizSessionError(Exception):
    """Operation not allowed in the session's current state."""

    pass


class IncompleteQuizError(ValidationError):
    """Submit attempted before every question was answered."""

    pass


class PersistenceError(Exception):
    """Attempt was graded but could not be saved."""

    pass


@dataclass
class ReviewItem:
    """One row of the post-submit results view."""

    index: int
    question_text: str
    given_answer: str | None
    given_option_text: str
    correct_answer: str
    correct_option_text: str
    explanation: str
    is_correct: bool

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "index": self.index,
            "question_text": self.question_text,
            "given_answer": self.given_answer,
            "given_option_text": self.given_option_text,
            "correct_answer": self.correct_answer,
            "correct_option_text": self.correct_option_text,
            "explanation": self.explanation,
            "is_correct": self.is_correct,
        }


@dataclass
class SubmissionResult:
    """Result of submitting a session.

    The grade is always present. saved is False when the attempt could
    not be persisted; the learner still sees the results.
    """

    grade: GradeResult
    attempt: QuizAttempt
    saved: bool
    review: list[ReviewItem] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "attempt": self.attempt.to_dict(),
            "grade": self.grade.to_dict(),
            "saved": self.saved,
            "review": [r.to_dict() for r in self.review],
        }


class QuizSession:
    """In-memory quiz attempt for one learner and one quiz."""

    def __init__(
        self,
        learner_id: str,
        quiz_id: str,
        module_id: str,
        session_id: str | None = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())[:8]
        self.learner_id = learner_id
        self.quiz_id = quiz_id
        self.module_id = module_id

        self.state = QuizState.LOADING
        self.questions: list[Question] = []
        self.current_index = 0
        self.answers: dict[int, str] = {}
        self.result: SubmissionResult | None = None

    # -- construction ----------------------------------------------------

    @classmethod
    def from_store(
        cls,
        store: AttemptStore,
        learner_id: str,
        quiz_id: str,
        session_id: str | None = None,
    ) -> QuizSession:
        """Create a session for a stored quiz and load its questions.

        Raises:
            NotFoundError: If the quiz does not exist
            InvalidQuizError: If the quiz has no questions
        """
        quiz = store.get("quizzes", quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz not found: {quiz_id}")

        records = store.query("questions", {"quiz_id": quiz_id}, order_by="order_number")
        session = cls(
            learner_id=learner_id,
            quiz_id=quiz_id,
            module_id=quiz["module_id"],
            session_id=session_id,
        )
        session.load([Question.from_record(r) for r in records])
        return session

    def load(self, questions: Sequence[Question]) -> None:
        """Load questions and start answering.

        Raises:
            QuizSessionError: If the session already left LOADING
            InvalidQuizError: If there are no questions
        """
        if self.state is not QuizState.LOADING:
            raise QuizSessionError(f"Cannot load questions in state {self.state.name}")
        if not questions:
            raise InvalidQuizError(f"Quiz {self.quiz_id} has no questions")

        self.questions = list(questions)
        self.current_index = 0
        self.answers = {}
        self.state = QuizState.IN_PROGRESS

        logger.debug("quiz_session_loaded", session_id=self.session_id, questions=len(self.questions))

    # -- state -----------------------------------------------------------

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Question | None:
        if self.state is QuizState.LOADING:
            return None
        return self.questions[self.current_index]

    @property
    def can_submit(self) -> bool:
        """True when every question has an answer."""
        return self.state is QuizState.IN_PROGRESS and len(self.answers) == self.question_count

    def is_answered(self, index: int) -> bool:
        return index in self.answers

    def _require_in_progress(self, action: str) -> None:
        if self.state is not QuizState.IN_PROGRESS:
            raise QuizSessionError(f"Cannot {action} in state {self.state.name}")

    # -- transitions -----------------------------------------------------

    def select_answer(self, index: int, letter: str) -> None:
        """Set or overwrite the answer for a question.

        Raises:
            ValidationError: If letter is not A-D or index is out of range
        """
        self._require_in_progress("select an answer")
        if letter not in ANSWER_LETTERS:
            raise ValidationError(f"Answer must be one of {', '.join(ANSWER_LETTERS)}: {letter!r}")
        if not 0 <= index < self.question_count:
            raise ValidationError(f"Question index out of range: {index}")
        self.answers[index] = letter

    def next(self) -> int:
        """Move to the next question; no-op on the last one."""
        self._require_in_progress("move forward")
        if self.current_index < self.question_count - 1:
            self.current_index += 1
        return self.current_index

    def previous(self) -> int:
        """Move to the previous question; no-op on the first one."""
        self._require_in_progress("move back")
        if self.current_index > 0:
            self.current_index -= 1
        return self.current_index

    def submit(self, store: AttemptStore | None = None) -> SubmissionResult:
        """Grade the answers, persist the attempt and finish the session.

        Persistence failures are logged and reported via saved=False;
        they never hide the results.

        Raises:
            IncompleteQuizError: If some question is unanswered
            QuizSessionError: If the session is not in progress
        """
        self._require_in_progress("submit")
        if not self.can_submit:
            raise IncompleteQuizError(
                f"All questions must be answered before submitting "
                f"({len(self.answers)}/{self.question_count})"
            )

        grade_result = grade(self.questions, self.answers)
        review = self.review()
        attempt = QuizAttempt(
            learner_id=self.learner_id,
            quiz_id=self.quiz_id,
            module_id=self.module_id,
            score=grade_result.score,
            total_questions=grade_result.total_questions,
            answers=dict(self.answers),
        )
        self.state = QuizState.SUBMITTED

        saved = False
        error: str | None = None
        try:
            attempt = self._persist(store, attempt)
            saved = True
        except PersistenceError as e:
            error = str(e)

        if saved:
            logger.info(
                "quiz_attempt_saved",
                session_id=self.session_id,
                attempt_id=attempt.id,
                learner_id=self.learner_id,
                quiz_id=self.quiz_id,
                score=f"{grade_result.score}/{grade_result.total_questions}",
                passed=grade_result.passed,
            )
        else:
            logger.error(
                "quiz_attempt_persist_failed",
                session_id=self.session_id,
                learner_id=self.learner_id,
                quiz_id=self.quiz_id,
                error=error,
            )

        self.result = SubmissionResult(
            grade=grade_result,
            attempt=attempt,
            saved=saved,
            review=review,
            error=error,
        )
        return self.result

    def _persist(self, store: AttemptStore | None, attempt: QuizAttempt) -> QuizAttempt:
        if store is None:
            raise PersistenceError("No attempt store configured")
        try:
            record = store.insert("quiz_attempts", attempt.to_record())
        except StoreError as e:
            raise PersistenceError(f"Could not save quiz attempt: {e}") from e
        return QuizAttempt.from_record(record)

    # -- views -----------------------------------------------------------

    def review(self) -> list[ReviewItem]:
        """Per-question results view (answers, correct options, explanations)."""
        items = []
        for index, question in enumerate(self.questions):
            given = self.answers.get(index)
            items.append(
                ReviewItem(
                    index=index,
                    question_text=question.text,
                    given_answer=given,
                    given_option_text=question.option_text(given),
                    correct_answer=question.correct_answer,
                    correct_option_text=question.option_text(question.correct_answer),
                    explanation=question.explanation,
                    is_correct=given == question.correct_answer,
                )
            )
        return items

    def to_dict(self) -> dict[str, Any]:
        """Learner-facing snapshot (correct answers hidden until submitted)."""
        submitted = self.state is QuizState.SUBMITTED
        current = self.current_question
        return {
            "session_id": self.session_id,
            "learner_id": self.learner_id,
            "quiz_id": self.quiz_id,
            "module_id": self.module_id,
            "state": self.state.name,
            "current_index": self.current_index,
            "question_count": self.question_count,
            "answers": {str(k): v for k, v in sorted(self.answers.items())},
            "can_submit": self.can_submit,
            "current_question": current.to_dict(include_answer=submitted) if current else None,
            "result": self.result.to_dict() if self.result else None,
        }
