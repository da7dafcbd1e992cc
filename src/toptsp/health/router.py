"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.config import get_settings
from toptsp.database import get_session
from toptsp.instances.service import get_active_instance
from toptsp.redis_client import get_redis

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> JSONResponse:  # noqa: B008
    """Readiness probe.

    The database must answer. Redis only backs rate limiting, so "disabled"
    still counts as ready. Whether an instance is loaded is reported for
    operators but never blocks readiness.
    """
    checks: dict[str, str] = {}

    try:
        instance = await get_active_instance(db)
        checks["database"] = "ok"
        checks["instance"] = instance.name if instance else "none"
    except SQLAlchemyError as exc:
        checks["database"] = f"error: {exc}"
        checks["instance"] = "unknown"

    try:
        await get_redis().ping()
        checks["redis"] = "ok"
    except RuntimeError:
        checks["redis"] = "disabled"
    except Exception as exc:  # noqa: BLE001
        checks["redis"] = f"error: {exc}"

    ready = checks["database"] == "ok" and checks["redis"] in ("ok", "disabled")
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )


@router.get("/version")
async def version() -> dict[str, str]:
    """API version and environment."""
    settings = get_settings()
    return {
        "service": "toptsp",
        "version": settings.app_version,
        "environment": settings.environment,
    }
