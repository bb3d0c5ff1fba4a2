"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from microlearn import __version__
from microlearn.web.schemas import HealthResponse
from microlearn.web.sessions import get_session_manager

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="ok",
        version=__version__,
        active_quiz_sessions=await get_session_manager().get_session_count(),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
