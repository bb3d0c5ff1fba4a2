"""Progress, leaderboard and instructor analytics endpoints.

Read failures do not block the dashboards: the response carries zeroed
stats and an error message instead.
"""

import structlog
from fastapi import APIRouter, Depends

from microlearn.core.instructor_analytics import InstructorAnalytics
from microlearn.core.leaderboard import LeaderboardRanker
from microlearn.core.models import Profile
from microlearn.core.progress import ProgressAggregator
from microlearn.db.store import AttemptStore, FetchError
from microlearn.web.deps import get_current_user, get_instructor, get_learner, get_store
from microlearn.web.schemas import AnalyticsResponse, LeaderboardResponse, ProgressResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["analytics"])


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(
    learner: Profile = Depends(get_learner),
    store: AttemptStore = Depends(get_store),
) -> ProgressResponse:
    """Progress snapshot for the calling learner."""
    try:
        progress = await ProgressAggregator(store).compute(learner.id)
    except FetchError as e:
        logger.warning("progress_unavailable", learner_id=learner.id, error=str(e))
        return ProgressResponse(learner_id=learner.id, error=str(e))
    return ProgressResponse(**progress.to_dict())


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    user: Profile = Depends(get_current_user),
    store: AttemptStore = Depends(get_store),
) -> LeaderboardResponse:
    """Top learners by average score, with the caller's rank."""
    requesting_id = user.id if user.role == "learner" else None
    try:
        leaderboard = await LeaderboardRanker(store).compute(requesting_id)
    except FetchError as e:
        logger.warning("leaderboard_unavailable", error=str(e))
        return LeaderboardResponse(requesting_learner_id=requesting_id, error=str(e))
    return LeaderboardResponse(**leaderboard.to_dict())


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    instructor: Profile = Depends(get_instructor),
    store: AttemptStore = Depends(get_store),
) -> AnalyticsResponse:
    """Cohort analytics across the calling instructor's modules."""
    try:
        analytics = await InstructorAnalytics(store).compute(instructor.id)
    except FetchError as e:
        logger.warning("analytics_unavailable", instructor_id=instructor.id, error=str(e))
        return AnalyticsResponse(instructor_id=instructor.id, error=str(e))
    return AnalyticsResponse(**analytics.to_dict())
