"""Request dependencies shared by the route handlers.

The caller is identified by the X-User-Id header and passed explicitly
into every operation; nothing reads a global "current user".
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status

from microlearn.config.app_config import load_app_config
from microlearn.core.catalog import ModuleStateError, PermissionDeniedError, get_profile
from microlearn.core.grading import InvalidQuizError
from microlearn.core.models import Profile
from microlearn.core.question_source import QuestionSource, get_question_source
from microlearn.core.quiz_session import QuizSessionError
from microlearn.db.store import (
    AttemptStore,
    ConstraintError,
    FetchError,
    NotFoundError,
    SqliteAttemptStore,
    ValidationError,
)


def get_store(request: Request) -> AttemptStore:
    """Store attached to the app, created from config on first use."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = SqliteAttemptStore(load_app_config().store.db_path)
        request.app.state.store = store
    return store


def get_current_user(
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> Profile:
    """Resolve the caller's profile from the X-User-Id header."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    try:
        profile = get_profile(get_store(request), x_user_id)
    except FetchError as e:
        raise to_http_exception(e) from e
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown user '{x_user_id}'",
        )
    return profile


def _require_role(profile: Profile, role: str) -> Profile:
    if profile.role != role:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"This action requires the {role} role",
        )
    return profile


def get_learner(profile: Profile = Depends(get_current_user)) -> Profile:
    return _require_role(profile, "learner")


def get_instructor(profile: Profile = Depends(get_current_user)) -> Profile:
    return _require_role(profile, "instructor")


def get_question_source_dep(request: Request) -> QuestionSource:
    """Question source attached to the app, built from config on first use."""
    source = getattr(request.app.state, "question_source", None)
    if source is None:
        quiz_config = load_app_config().quiz
        source = get_question_source(
            quiz_config.question_source,
            delay_seconds=quiz_config.generation_delay_seconds,
        )
        request.app.state.question_source = source
    return source


def to_http_exception(error: Exception) -> HTTPException:
    """Map a domain or store error onto an HTTP error response."""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, PermissionDeniedError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(error, (ConstraintError, ModuleStateError, QuizSessionError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, InvalidQuizError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, FetchError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))
