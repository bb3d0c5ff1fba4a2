"""Quiz session management for the Web API.

Keeps the in-progress quiz sessions in memory, keyed by session id.
Store access runs in a worker thread so the event loop stays free.
"""

from __future__ import annotations

import asyncio

import structlog

from microlearn.core.quiz_session import QuizSession, SubmissionResult
from microlearn.db.store import AttemptStore

logger = structlog.get_logger(__name__)


class QuizSessionManager:
    """Manages active quiz sessions.

    Thread-safe session registry; one QuizSession per learner attempt.
    """

    def __init__(self):
        self._sessions: dict[str, QuizSession] = {}
        self._lock = asyncio.Lock()

    async def create_session(
        self,
        store: AttemptStore,
        learner_id: str,
        quiz_id: str,
    ) -> QuizSession:
        """Start a quiz session with the quiz's questions loaded.

        Args:
            store: Store holding the quiz
            learner_id: ID of the learner taking the quiz
            quiz_id: ID of the quiz

        Returns:
            The created QuizSession, in progress

        Raises:
            NotFoundError: If the quiz does not exist
            InvalidQuizError: If the quiz has no questions
        """
        session = await asyncio.to_thread(QuizSession.from_store, store, learner_id, quiz_id)

        async with self._lock:
            self._sessions[session.session_id] = session

        logger.info(
            "quiz_session_created",
            session_id=session.session_id,
            learner_id=learner_id,
            quiz_id=quiz_id,
            questions=session.question_count,
        )
        return session

    async def get_session(self, session_id: str) -> QuizSession | None:
        """Get a session by ID."""
        async with self._lock:
            return self._sessions.get(session_id)

    async def submit(self, session_id: str, store: AttemptStore) -> SubmissionResult | None:
        """Grade and persist a session, then drop it from the registry.

        SUBMITTED is terminal, so the finished session is not kept; the
        caller serves the result from the returned SubmissionResult.

        Returns:
            The SubmissionResult, or None if the session is not found
        """
        async with self._lock:
            session = self._sessions.get(session_id)

        if session is None:
            return None

        result = await asyncio.to_thread(session.submit, store)

        async with self._lock:
            self._sessions.pop(session_id, None)

        logger.info("quiz_session_finished", session_id=session_id, saved=result.saved)
        return result

    async def end_session(self, session_id: str) -> bool:
        """Discard a session.

        Returns:
            True if session was ended, False if not found
        """
        async with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return False

        logger.info("quiz_session_ended", session_id=session_id, state=session.state.name)
        return True

    async def get_session_count(self) -> int:
        """Get count of active sessions."""
        async with self._lock:
            return len(self._sessions)


# Global session manager instance
_session_manager: QuizSessionManager | None = None


def get_session_manager() -> QuizSessionManager:
    """Get the global session manager instance."""
    global _session_manager
    if _session_manager is None:
        _session_manager = QuizSessionManager()
    return _session_manager


def reset_session_manager() -> None:
    """Reset the session manager (for testing)."""
    global _session_manager
    _session_manager = None
