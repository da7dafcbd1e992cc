"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from toptsp.competition.router import router as competition_router
from toptsp.competition.settings_service import ensure_defaults
from toptsp.config import get_settings
from toptsp.database import close_db, create_schema, get_session, init_db
from toptsp.health.router import router as health_router
from toptsp.instances.router import router as instances_router
from toptsp.middleware import setup_middleware
from toptsp.ranking.router import router as ranking_router
from toptsp.redis_client import close_redis, init_redis
from toptsp.submissions.router import router as submissions_router
from toptsp.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    if settings.database_url.startswith("sqlite"):
        await create_schema()

    sessions = get_session()
    db = await anext(sessions)
    try:
        await ensure_defaults(db)
    finally:
        await sessions.aclose()

    logger.info("api_started", version=settings.app_version, environment=settings.environment)
    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="TopTSP API",
        description="Closed Traveling Salesman competition: tour submissions and a freezable leaderboard",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(instances_router)
    app.include_router(submissions_router)
    app.include_router(ranking_router)
    app.include_router(users_router)
    app.include_router(competition_router)

    return app


app = create_app()
