"""Shared fixtures: an isolated SQLite store and seeded catalog data."""

from unittest.mock import MagicMock

import pytest

from microlearn.config.app_config import clear_config_cache
from microlearn.core.catalog import create_module, create_profile, publish_module
from microlearn.core.models import QuizAttempt
from microlearn.core.question_source import QuestionDraft, QuizBuilder
from microlearn.db.store import AttemptStore, FetchError, SqliteAttemptStore


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config at a throwaway database for every test."""
    monkeypatch.setenv("MICROLEARN_DB_PATH", str(tmp_path / "config.db"))
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def store(tmp_path) -> SqliteAttemptStore:
    """Fresh SQLite-backed store in a temp directory."""
    return SqliteAttemptStore(tmp_path / "microlearn.db")


@pytest.fixture
def failing_store() -> MagicMock:
    """Store whose every operation fails as if the backend were down."""
    failing = MagicMock(spec=AttemptStore)
    failing.query.side_effect = FetchError("connection refused")
    failing.get.side_effect = FetchError("connection refused")
    failing.insert.side_effect = FetchError("connection refused")
    failing.update.side_effect = FetchError("connection refused")
    return failing


@pytest.fixture
def instructor(store):
    return create_profile(store, "Ada Instructor", "instructor", email="ada@example.com")


@pytest.fixture
def learner(store):
    return create_profile(store, "Lin Learner", "learner", email="lin@example.com")


@pytest.fixture
def published_module(store, instructor):
    """A published module owned by the instructor fixture."""
    module = create_module(store, instructor.id, "Intro to CSS", content_summary="Layouts and selectors")
    return publish_module(store, instructor.id, module.id)


@pytest.fixture
def sample_drafts() -> list[QuestionDraft]:
    """Three questions whose correct answers are A, B and C."""
    return [
        QuestionDraft(
            text="Which property sets text color?",
            options={"A": "color", "B": "font", "C": "fill", "D": "ink"},
            correct_answer="A",
            explanation="color sets the foreground color.",
        ),
        QuestionDraft(
            text="Which unit is relative to the root font size?",
            options={"A": "em", "B": "rem", "C": "px", "D": "pt"},
            correct_answer="B",
            explanation="rem is relative to the root element.",
        ),
        QuestionDraft(
            text="Which display value creates a flex container?",
            options={"A": "block", "B": "grid", "C": "flex", "D": "inline"},
            correct_answer="C",
            explanation="display: flex creates a flex container.",
        ),
    ]


@pytest.fixture
def sample_quiz(store, instructor, published_module, sample_drafts):
    """Saved three-question quiz on the published module."""
    return QuizBuilder(sample_drafts).save(
        store,
        instructor.id,
        published_module.id,
        ai_prompt="CSS basics",
    )


@pytest.fixture
def make_attempt():
    """Factory for in-memory attempts."""

    def _make(
        learner_id: str,
        module_id: str,
        score: int,
        total: int = 10,
        completed_at: str = "2024-01-01T00:00:00+00:00",
        quiz_id: str = "quiz-1",
    ) -> QuizAttempt:
        return QuizAttempt(
            learner_id=learner_id,
            quiz_id=quiz_id,
            module_id=module_id,
            score=score,
            total_questions=total,
            completed_at=completed_at,
        )

    return _make


@pytest.fixture
def record_attempt(store):
    """Factory that writes an attempt straight to the store."""

    def _record(
        learner_id: str,
        module_id: str,
        score: int,
        total: int = 10,
        completed_at: str = "2024-01-01T00:00:00+00:00",
        quiz_id: str = "quiz-1",
    ) -> dict:
        return store.insert(
            "quiz_attempts",
            {
                "learner_id": learner_id,
                "quiz_id": quiz_id,
                "module_id": module_id,
                "score": score,
                "total_questions": total,
                "answers": {},
                "completed_at": completed_at,
            },
        )

    return _record
