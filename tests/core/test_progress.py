"""Tests for learner progress aggregation."""

import pytest

from microlearn.core.catalog import create_module, enroll, publish_module
from microlearn.core.models import Enrollment
from microlearn.core.progress import (
    ProgressAggregator,
    all_attempts_average,
    compute_learner_progress,
    distinct_module_completion,
)
from microlearn.db.store import FetchError


def _enrollments(*module_ids: str) -> list[Enrollment]:
    return [Enrollment(learner_id="learner-1", module_id=m) for m in module_ids]


class TestComputeLearnerProgress:
    """Tests for compute_learner_progress()."""

    def test_repeated_module_counts_once(self, make_attempt):
        """m1:80, m1:40, m2:70 -> completed 2, average 63.3."""
        attempts = [
            make_attempt("learner-1", "m1", 8, completed_at="2024-01-01T00:00:00"),
            make_attempt("learner-1", "m1", 4, completed_at="2024-01-02T00:00:00"),
            make_attempt("learner-1", "m2", 7, completed_at="2024-01-03T00:00:00"),
        ]
        progress = compute_learner_progress("learner-1", _enrollments("m1", "m2", "m3"), attempts)

        assert progress.enrolled_modules == 3
        assert progress.completed_modules == 2
        assert progress.completion_percentage == pytest.approx(66.667, abs=0.01)
        assert progress.average_score == pytest.approx(63.333, abs=0.01)
        assert progress.attempt_count == 3

    def test_no_enrollments_zero_completion(self, make_attempt):
        progress = compute_learner_progress("learner-1", [], [make_attempt("learner-1", "m1", 5)])
        assert progress.completion_percentage == 0.0

    def test_empty_history(self):
        progress = compute_learner_progress("learner-1", _enrollments("m1"), [])
        assert progress.completed_modules == 0
        assert progress.average_score == 0.0
        assert progress.recent_attempts == []

    def test_history_newest_first_with_titles(self, make_attempt):
        attempts = [
            make_attempt("learner-1", "m1", 8, completed_at="2024-01-01T00:00:00"),
            make_attempt("learner-1", "m2", 5, completed_at="2024-02-01T00:00:00"),
        ]
        progress = compute_learner_progress(
            "learner-1",
            _enrollments("m1", "m2"),
            attempts,
            {"m1": "Intro"},
        )
        assert [a.module_id for a in progress.recent_attempts] == ["m2", "m1"]
        assert progress.recent_attempts[0].module_title == "Unknown Module"
        assert progress.recent_attempts[0].passed is False
        assert progress.recent_attempts[1].module_title == "Intro"
        assert progress.recent_attempts[1].passed is True

    def test_completion_not_capped(self, make_attempt):
        """Attempts on modules the learner is not enrolled in still count."""
        attempts = [make_attempt("learner-1", "m1", 5), make_attempt("learner-1", "m2", 5)]
        progress = compute_learner_progress("learner-1", _enrollments("m1"), attempts)
        assert progress.completion_percentage == 200.0


class TestAggregationHelpers:
    """Tests for the named aggregation helpers."""

    def test_distinct_module_completion(self, make_attempt):
        attempts = [make_attempt("l", "m1", 1), make_attempt("l", "m1", 2), make_attempt("l", "m2", 3)]
        assert distinct_module_completion(attempts) == 2

    def test_all_attempts_average_includes_repeats(self, make_attempt):
        attempts = [make_attempt("l", "m1", 10), make_attempt("l", "m1", 0)]
        assert all_attempts_average(attempts) == 50.0

    def test_all_attempts_average_empty(self):
        assert all_attempts_average([]) == 0.0


class TestProgressAggregator:
    """Tests for ProgressAggregator against the store."""

    @pytest.mark.asyncio
    async def test_compute_from_store(self, store, instructor, learner, published_module, record_attempt):
        second = publish_module(store, instructor.id, create_module(store, instructor.id, "Flexbox").id)
        enroll(store, learner.id, published_module.id)
        enroll(store, learner.id, second.id)
        record_attempt(learner.id, published_module.id, 8)
        record_attempt(learner.id, published_module.id, 4)
        record_attempt("someone-else", published_module.id, 10)

        progress = await ProgressAggregator(store).compute(learner.id)

        assert progress.enrolled_modules == 2
        assert progress.completed_modules == 1
        assert progress.completion_percentage == 50.0
        assert progress.average_score == pytest.approx(60.0)
        assert progress.attempt_count == 2
        assert progress.recent_attempts[0].module_title == "Intro to CSS"

    @pytest.mark.asyncio
    async def test_new_learner_is_empty(self, store, learner):
        progress = await ProgressAggregator(store).compute(learner.id)
        assert progress.to_dict()["enrolled_modules"] == 0
        assert progress.completion_percentage == 0.0

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, failing_store):
        with pytest.raises(FetchError):
            await ProgressAggregator(failing_store).compute("learner-1")
