"""Competition settings endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.competition.clock import is_open
from toptsp.competition.schemas import CompetitionStatusResponse, SetEndDateRequest, SetInstanceNameRequest
from toptsp.competition.settings_service import (
    RANKING_STATE_KEY,
    get_all_settings,
    get_end_date,
    get_instance_name,
    set_end_date,
    set_instance_name,
)
from toptsp.database import get_session
from toptsp.dependencies import require_admin
from toptsp.ranking.schemas import SuccessResponse

router = APIRouter(prefix="/api/v1", tags=["Competition"])


@router.get("/competition/status", response_model=CompetitionStatusResponse)
async def status(db: AsyncSession = Depends(get_session)):
    """Whether submissions are currently accepted."""
    end_at = await get_end_date(db)
    return CompetitionStatusResponse(
        open=is_open(datetime.now(timezone.utc), end_at),
        end_date=end_at,
        instance_name=await get_instance_name(db),
    )


@router.get("/system-settings", response_model=dict[str, str])
async def system_settings(db: AsyncSession = Depends(get_session)):
    """Raw system settings, minus the stored ranking snapshot."""
    settings = await get_all_settings(db)
    settings.pop(RANKING_STATE_KEY, None)
    return settings


@router.put(
    "/admin/competition/end-date",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
async def update_end_date(body: SetEndDateRequest, db: AsyncSession = Depends(get_session)):
    """Set (or clear, with null) the submission deadline."""
    await set_end_date(db, body.end_date)
    return SuccessResponse()


@router.put(
    "/admin/competition/instance-name",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
async def update_instance_name(body: SetInstanceNameRequest, db: AsyncSession = Depends(get_session)):
    """Set the display name of the instance."""
    await set_instance_name(db, body.instance_name)
    return SuccessResponse()
