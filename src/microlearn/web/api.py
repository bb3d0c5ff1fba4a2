"""FastAPI application factory.

Main entry point for the Microlearn Web API.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from microlearn import __version__
from microlearn.config.app_config import load_app_config
from microlearn.core.question_source import QuestionSource
from microlearn.db.store import AttemptStore
from microlearn.web.routes import (
    analytics_router,
    health_router,
    modules_router,
    profiles_router,
    quiz_sessions_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config = load_app_config()
    logger.info(
        "api_startup",
        db_path=str(config.store.db_path),
        question_source=config.quiz.question_source,
        store_injected=app.state.store is not None,
    )
    yield
    logger.info("api_shutdown")


def create_app(
    store: AttemptStore | None = None,
    question_source: QuestionSource | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Record store to use. Built from config on first request if None.
        question_source: Quiz question generator. Built from config if None.

    Returns:
        Configured FastAPI app instance
    """
    config = load_app_config()

    app = FastAPI(
        title="Microlearn API",
        description="Web API for microlearning modules, quizzes and progress",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.question_source = question_source

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(profiles_router)
    app.include_router(modules_router)
    app.include_router(quiz_sessions_router)
    app.include_router(analytics_router)

    return app


# Default app instance for uvicorn
app = create_app()
