"""Tests for question generation and the quiz builder."""

import pytest

from microlearn.core.catalog import PermissionDeniedError, create_module, create_profile
from microlearn.core.question_source import (
    SAMPLE_QUESTIONS,
    PlaceholderQuestionSource,
    QuestionDraft,
    QuizBuilder,
    get_question_source,
)
from microlearn.db.store import ValidationError


@pytest.fixture
def source() -> PlaceholderQuestionSource:
    return PlaceholderQuestionSource(delay_seconds=0)


class TestPlaceholderQuestionSource:
    """Tests for the placeholder generator."""

    def test_returns_sample_questions(self, source):
        drafts = source.generate("Quiz me on CSS")
        assert len(drafts) == len(SAMPLE_QUESTIONS) == 3
        assert drafts[0].text == "What is the main topic of this module?"
        assert all(d.correct_answer == "A" for d in drafts)
        assert set(drafts[0].options) == {"A", "B", "C", "D"}

    def test_blank_prompt_rejected(self, source):
        with pytest.raises(ValidationError):
            source.generate("   ")

    def test_factory(self):
        built = get_question_source("placeholder", delay_seconds=0)
        assert isinstance(built, PlaceholderQuestionSource)
        assert built.delay_seconds == 0

    def test_factory_unknown(self):
        with pytest.raises(ValueError):
            get_question_source("gpt")


class TestQuizBuilder:
    """Tests for editing drafts before saving."""

    def test_generate_replaces_drafts(self, source):
        builder = QuizBuilder([QuestionDraft(text="old")])
        builder.generate(source, "CSS")
        assert len(builder.drafts) == 3

    def test_add_and_remove(self):
        builder = QuizBuilder()
        assert builder.add_question() == 0
        assert builder.add_question(QuestionDraft(text="Two")) == 1
        removed = builder.remove_question(0)
        assert removed.text == ""
        assert [d.text for d in builder.drafts] == ["Two"]

    def test_remove_out_of_range(self):
        with pytest.raises(ValidationError):
            QuizBuilder().remove_question(0)

    def test_edit_question(self):
        builder = QuizBuilder([QuestionDraft()])
        draft = builder.edit_question(
            0,
            text="Pick B",
            option_b="Bee",
            options={"C": "Sea"},
            correct_answer="B",
        )
        assert draft.text == "Pick B"
        assert draft.options["B"] == "Bee"
        assert draft.options["C"] == "Sea"
        assert draft.correct_answer == "B"

    def test_edit_rejects_bad_answer(self):
        builder = QuizBuilder([QuestionDraft()])
        with pytest.raises(ValidationError):
            builder.edit_question(0, correct_answer="Z")

    def test_edit_rejects_unknown_field(self):
        builder = QuizBuilder([QuestionDraft()])
        with pytest.raises(ValidationError):
            builder.edit_question(0, points=3)

    def test_validate_empty(self):
        with pytest.raises(ValidationError):
            QuizBuilder().validate()

    def test_validate_blank_text(self):
        with pytest.raises(ValidationError):
            QuizBuilder([QuestionDraft(text="  ")]).validate()


class TestQuizBuilderSave:
    """Tests for storing a quiz."""

    def test_save_orders_questions(self, store, instructor, sample_drafts):
        module = create_module(store, instructor.id, "Selectors")
        saved = QuizBuilder(sample_drafts).save(store, instructor.id, module.id, ai_prompt="selectors")

        rows = store.query("questions", {"quiz_id": saved.quiz.id}, order_by="order_number")
        assert [r["order_number"] for r in rows] == [0, 1, 2]
        assert [r["correct_answer"] for r in rows] == ["A", "B", "C"]
        assert saved.quiz.ai_prompt == "selectors"
        assert saved.module.published is False

    def test_save_and_publish(self, store, instructor, sample_drafts):
        module = create_module(store, instructor.id, "Selectors")
        saved = QuizBuilder(sample_drafts).save(store, instructor.id, module.id, publish=True)
        assert saved.module.published is True
        assert saved.to_dict()["module_published"] is True

    def test_save_requires_ownership(self, store, instructor, sample_drafts):
        module = create_module(store, instructor.id, "Selectors")
        other = create_profile(store, "Other", "instructor")
        with pytest.raises(PermissionDeniedError):
            QuizBuilder(sample_drafts).save(store, other.id, module.id)
        assert store.query("quizzes") == []
