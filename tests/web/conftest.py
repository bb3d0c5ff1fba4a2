"""Fixtures for Web API tests."""

import pytest
from fastapi.testclient import TestClient

from microlearn.core.question_source import PlaceholderQuestionSource
from microlearn.web.api import create_app
from microlearn.web.sessions import reset_session_manager


@pytest.fixture
def client(store):
    """Test client bound to the isolated store, with a fresh session manager."""
    reset_session_manager()
    app = create_app(store=store, question_source=PlaceholderQuestionSource(delay_seconds=0))
    yield TestClient(app)
    reset_session_manager()


@pytest.fixture
def as_learner(learner) -> dict[str, str]:
    return {"X-User-Id": learner.id}


@pytest.fixture
def as_instructor(instructor) -> dict[str, str]:
    return {"X-User-Id": instructor.id}
