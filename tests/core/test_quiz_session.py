"""Tests for the quiz session state machine."""

import shutil

import pytest

from microlearn.core.grading import InvalidQuizError
from microlearn.core.models import Question
from microlearn.core.quiz_session import (
    IncompleteQuizError,
    QuizSession,
    QuizSessionError,
    QuizState,
)
from microlearn.db.store import NotFoundError, SqliteAttemptStore, ValidationError


def _questions() -> list[Question]:
    return [
        Question(
            id=f"q{i}",
            quiz_id="quiz-1",
            text=f"Question {i}",
            options={"A": f"a{i}", "B": f"b{i}", "C": f"c{i}", "D": f"d{i}"},
            correct_answer=correct,
            explanation=f"Because {correct}",
            order_number=i,
        )
        for i, correct in enumerate(["A", "B", "C"])
    ]


@pytest.fixture
def session() -> QuizSession:
    """Session in progress with three questions loaded."""
    quiz_session = QuizSession(learner_id="learner-1", quiz_id="quiz-1", module_id="module-1")
    quiz_session.load(_questions())
    return quiz_session


def _answer_all(quiz_session: QuizSession, letters=("A", "B", "D")) -> None:
    for index, letter in enumerate(letters):
        quiz_session.select_answer(index, letter)


class TestLoading:
    """Tests for LOADING -> IN_PROGRESS."""

    def test_starts_loading(self):
        quiz_session = QuizSession("learner-1", "quiz-1", "module-1")
        assert quiz_session.state is QuizState.LOADING
        assert quiz_session.current_question is None

    def test_load_enters_in_progress(self, session):
        assert session.state is QuizState.IN_PROGRESS
        assert session.current_index == 0
        assert session.answers == {}
        assert session.current_question.id == "q0"

    def test_load_empty_rejected(self):
        quiz_session = QuizSession("learner-1", "quiz-1", "module-1")
        with pytest.raises(InvalidQuizError):
            quiz_session.load([])

    def test_load_twice_rejected(self, session):
        with pytest.raises(QuizSessionError):
            session.load(_questions())

    def test_from_store_orders_questions(self, store, learner, sample_quiz):
        quiz_session = QuizSession.from_store(store, learner.id, sample_quiz.quiz.id)
        assert quiz_session.module_id == sample_quiz.quiz.module_id
        assert [q.correct_answer for q in quiz_session.questions] == ["A", "B", "C"]

    def test_from_store_unknown_quiz(self, store, learner):
        with pytest.raises(NotFoundError):
            QuizSession.from_store(store, learner.id, "missing")


class TestNavigation:
    """Tests for next/previous clamping."""

    def test_next_advances(self, session):
        assert session.next() == 1
        assert session.current_question.id == "q1"

    def test_next_clamped_at_last(self, session):
        session.next()
        session.next()
        assert session.next() == 2

    def test_previous_clamped_at_first(self, session):
        assert session.previous() == 0

    def test_previous_goes_back(self, session):
        session.next()
        assert session.previous() == 0


class TestAnswering:
    """Tests for select_answer."""

    def test_select_and_overwrite(self, session):
        session.select_answer(0, "B")
        session.select_answer(0, "A")
        assert session.answers == {0: "A"}
        assert session.is_answered(0)

    def test_invalid_letter(self, session):
        with pytest.raises(ValidationError):
            session.select_answer(0, "E")

    def test_index_out_of_range(self, session):
        with pytest.raises(ValidationError):
            session.select_answer(3, "A")

    def test_can_submit_only_when_all_answered(self, session):
        session.select_answer(0, "A")
        session.select_answer(1, "B")
        assert session.can_submit is False
        session.select_answer(2, "C")
        assert session.can_submit is True

    def test_correct_answer_hidden_while_in_progress(self, session):
        data = session.to_dict()
        assert "correct_answer" not in data["current_question"]
        assert data["result"] is None


class TestSubmit:
    """Tests for submission, grading and persistence."""

    def test_incomplete_submit_rejected(self, session, store):
        session.select_answer(0, "A")
        with pytest.raises(IncompleteQuizError):
            session.submit(store)
        assert session.state is QuizState.IN_PROGRESS
        assert store.query("quiz_attempts") == []

    def test_submit_grades_and_saves(self, session, store):
        _answer_all(session)
        result = session.submit(store)

        assert session.state is QuizState.SUBMITTED
        assert result.saved is True
        assert result.grade.score == 2
        assert result.grade.passed is True
        assert result.attempt.id

        rows = store.query("quiz_attempts", {"learner_id": "learner-1"})
        assert len(rows) == 1
        assert rows[0]["score"] == 2
        assert rows[0]["total_questions"] == 3
        assert rows[0]["answers"] == {0: "A", 1: "B", 2: "D"}

    def test_persist_failure_still_shows_results(self, session, failing_store):
        """A store failure is reported via saved=False, not raised."""
        _answer_all(session)
        result = session.submit(failing_store)

        assert session.state is QuizState.SUBMITTED
        assert result.saved is False
        assert "connection refused" in result.error
        assert result.grade.score == 2
        assert len(result.review) == 3

    def test_unwritable_store_still_shows_results(self, session, tmp_path):
        """A store whose directory turned into a file reports saved=False."""
        data_dir = tmp_path / "data"
        broken = SqliteAttemptStore(data_dir / "app.db")
        shutil.rmtree(data_dir)
        data_dir.write_text("not a directory")

        _answer_all(session)
        result = session.submit(broken)

        assert session.state is QuizState.SUBMITTED
        assert session.result is result
        assert result.saved is False
        assert result.error
        assert result.grade.score == 2
        assert len(result.review) == 3

    def test_submit_without_store(self, session):
        _answer_all(session)
        result = session.submit()
        assert result.saved is False

    def test_submitted_is_terminal(self, session, store):
        _answer_all(session)
        session.submit(store)
        with pytest.raises(QuizSessionError):
            session.select_answer(0, "B")
        with pytest.raises(QuizSessionError):
            session.next()
        with pytest.raises(QuizSessionError):
            session.submit(store)
        assert len(store.query("quiz_attempts")) == 1

    def test_review_shows_correct_options(self, session, store):
        _answer_all(session)
        result = session.submit(store)
        last = result.review[2]
        assert last.given_answer == "D"
        assert last.given_option_text == "d2"
        assert last.correct_answer == "C"
        assert last.correct_option_text == "c2"
        assert last.is_correct is False
        assert last.explanation == "Because C"

    def test_answers_revealed_after_submit(self, session, store):
        _answer_all(session)
        session.submit(store)
        data = session.to_dict()
        assert data["state"] == "SUBMITTED"
        assert data["current_question"]["correct_answer"] == "A"
        assert data["result"]["saved"] is True
