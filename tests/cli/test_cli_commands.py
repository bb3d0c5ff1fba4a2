"""Tests for the microlearn CLI."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from microlearn.cli.commands import _pass_color, app
from microlearn.core.catalog import create_module, create_profile, enroll, publish_module
from microlearn.db.store import FetchError

runner = CliRunner()


@pytest.fixture
def db_args(store) -> list[str]:
    return ["--db", str(store.db_path)]


class TestInitDb:
    """Tests for microlearn init-db."""

    def test_creates_database(self, tmp_path):
        db_file = tmp_path / "fresh" / "app.db"
        result = runner.invoke(app, ["init-db", "--db", str(db_file)])
        assert result.exit_code == 0
        assert "Database ready" in result.stdout
        assert db_file.exists()

    def test_uses_configured_path(self, tmp_path):
        """Without --db the MICROLEARN_DB_PATH override is used."""
        result = runner.invoke(app, ["init-db"])
        assert result.exit_code == 0
        assert (tmp_path / "config.db").exists()


class TestProgressCommand:
    """Tests for microlearn progress."""

    def test_shows_progress(self, store, learner, published_module, record_attempt, db_args):
        enroll(store, learner.id, published_module.id)
        record_attempt(learner.id, published_module.id, 8)

        result = runner.invoke(app, ["progress", learner.id, *db_args])
        assert result.exit_code == 0
        assert "Enrolled modules: 1" in result.stdout
        assert "Intro to CSS" in result.stdout
        assert "8/10" in result.stdout

    def test_no_attempts(self, learner, db_args):
        result = runner.invoke(app, ["progress", learner.id, *db_args])
        assert result.exit_code == 0
        assert "No quiz attempts yet" in result.stdout

    def test_fetch_failure_exits(self, learner, db_args):
        with patch(
            "microlearn.cli.commands.ProgressAggregator.compute",
            side_effect=FetchError("disk I/O error"),
        ):
            result = runner.invoke(app, ["progress", learner.id, *db_args])
        assert result.exit_code == 1
        assert "disk I/O error" in result.stdout


class TestLeaderboardCommand:
    """Tests for microlearn leaderboard."""

    def test_shows_ranking_and_rank(self, store, learner, record_attempt, db_args):
        rival = create_profile(store, "Rita Rival", "learner")
        record_attempt(learner.id, "m1", 6)
        record_attempt(rival.id, "m1", 9)

        result = runner.invoke(app, ["leaderboard", "--learner", learner.id, *db_args])
        assert result.exit_code == 0
        assert result.stdout.index("Rita Rival") < result.stdout.index("Lin Learner")
        assert "rank #2" in result.stdout

    def test_empty(self, db_args):
        result = runner.invoke(app, ["leaderboard", *db_args])
        assert result.exit_code == 0
        assert "No quiz attempts yet" in result.stdout

    def test_unranked(self, learner, db_args):
        result = runner.invoke(app, ["leaderboard", "--learner", learner.id, *db_args])
        assert result.exit_code == 0
        assert "unranked" in result.stdout


class TestAnalyticsCommand:
    """Tests for microlearn analytics."""

    def test_shows_cohort(self, store, instructor, learner, published_module, record_attempt, db_args):
        enroll(store, learner.id, published_module.id)
        record_attempt(learner.id, published_module.id, 3)
        record_attempt(learner.id, published_module.id, 5)

        result = runner.invoke(app, ["analytics", instructor.id, *db_args])
        assert result.exit_code == 0
        assert "Quiz attempts: 2" in result.stdout
        assert "5/10" in result.stdout
        assert "3/10" not in result.stdout

    def test_no_modules(self, instructor, db_args):
        result = runner.invoke(app, ["analytics", instructor.id, *db_args])
        assert result.exit_code == 0
        assert "has no modules" in result.stdout

    def test_draft_modules_count(self, store, instructor, db_args):
        publish_module(store, instructor.id, create_module(store, instructor.id, "One").id)
        create_module(store, instructor.id, "Two")
        result = runner.invoke(app, ["analytics", instructor.id, *db_args])
        assert result.exit_code == 0
        assert "Modules: 2" in result.stdout


class TestPassColor:
    """Score coloring follows the grading pass threshold."""

    def test_boundary(self):
        assert _pass_color(60.0) == "green"
        assert _pass_color(59.9) == "red"

    def test_tracks_threshold(self):
        with patch("microlearn.core.grading.PASS_THRESHOLD", 70.0):
            assert _pass_color(65.0) == "red"
