"""Route handlers for Web API."""

from microlearn.web.routes.health import router as health_router
from microlearn.web.routes.profiles import router as profiles_router
from microlearn.web.routes.modules import router as modules_router
from microlearn.web.routes.quiz_sessions import router as quiz_sessions_router
from microlearn.web.routes.analytics import router as analytics_router

__all__ = [
    "health_router",
    "profiles_router",
    "modules_router",
    "quiz_sessions_router",
    "analytics_router",
]
