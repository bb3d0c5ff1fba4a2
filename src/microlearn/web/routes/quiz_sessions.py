"""Quiz session endpoints.

A learner starts a session for a quiz, answers and navigates questions,
then submits once every question has an answer.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from microlearn.core.grading import InvalidQuizError
from microlearn.core.models import Profile
from microlearn.core.quiz_session import QuizSession, QuizSessionError
from microlearn.db.store import AttemptStore, StoreError
from microlearn.web.deps import get_learner, get_store, to_http_exception
from microlearn.web.schemas import AnswerRequest, QuizSessionResponse, QuizSessionStartRequest
from microlearn.web.sessions import get_session_manager

router = APIRouter(prefix="/api/quiz-sessions", tags=["quiz-sessions"])


async def _get_owned_session(session_id: str, learner: Profile) -> QuizSession:
    session = await get_session_manager().get_session(session_id)
    if session is None or session.learner_id != learner.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Quiz session '{session_id}' not found",
        )
    return session


@router.post("", response_model=QuizSessionResponse, status_code=status.HTTP_201_CREATED)
async def start_quiz_session(
    request: QuizSessionStartRequest,
    learner: Profile = Depends(get_learner),
    store: AttemptStore = Depends(get_store),
) -> QuizSessionResponse:
    """Start a quiz attempt with the first question shown."""
    manager = get_session_manager()
    try:
        session = await manager.create_session(store, learner.id, request.quiz_id)
    except (StoreError, InvalidQuizError) as e:
        raise to_http_exception(e) from e
    return QuizSessionResponse(**session.to_dict())


@router.get("/{session_id}", response_model=QuizSessionResponse)
async def get_quiz_session(
    session_id: str,
    learner: Profile = Depends(get_learner),
) -> QuizSessionResponse:
    """Get the current state of a quiz session."""
    session = await _get_owned_session(session_id, learner)
    return QuizSessionResponse(**session.to_dict())


@router.post("/{session_id}/answer", response_model=QuizSessionResponse)
async def select_answer(
    session_id: str,
    request: AnswerRequest,
    learner: Profile = Depends(get_learner),
) -> QuizSessionResponse:
    """Select or change the answer for one question."""
    session = await _get_owned_session(session_id, learner)
    try:
        session.select_answer(request.index, request.answer)
    except (StoreError, QuizSessionError) as e:
        raise to_http_exception(e) from e
    return QuizSessionResponse(**session.to_dict())


@router.post("/{session_id}/next", response_model=QuizSessionResponse)
async def next_question(
    session_id: str,
    learner: Profile = Depends(get_learner),
) -> QuizSessionResponse:
    """Move to the next question (stays on the last one)."""
    session = await _get_owned_session(session_id, learner)
    try:
        session.next()
    except QuizSessionError as e:
        raise to_http_exception(e) from e
    return QuizSessionResponse(**session.to_dict())


@router.post("/{session_id}/previous", response_model=QuizSessionResponse)
async def previous_question(
    session_id: str,
    learner: Profile = Depends(get_learner),
) -> QuizSessionResponse:
    """Move to the previous question (stays on the first one)."""
    session = await _get_owned_session(session_id, learner)
    try:
        session.previous()
    except QuizSessionError as e:
        raise to_http_exception(e) from e
    return QuizSessionResponse(**session.to_dict())


@router.post("/{session_id}/submit", response_model=QuizSessionResponse)
async def submit_quiz(
    session_id: str,
    learner: Profile = Depends(get_learner),
    store: AttemptStore = Depends(get_store),
) -> QuizSessionResponse:
    """Grade and record the attempt.

    The graded result is returned even when saving fails; the result's
    saved flag is then false. The finished session is closed, so this
    response is the only place the result is served.
    """
    session = await _get_owned_session(session_id, learner)
    try:
        result = await get_session_manager().submit(session_id, store)
    except (StoreError, QuizSessionError) as e:
        raise to_http_exception(e) from e

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Quiz session '{session_id}' not found",
        )
    return QuizSessionResponse(**session.to_dict())


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def end_quiz_session(
    session_id: str,
    learner: Profile = Depends(get_learner),
) -> None:
    """Discard a quiz session."""
    await _get_owned_session(session_id, learner)
    await get_session_manager().end_session(session_id)
