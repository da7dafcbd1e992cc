"""Leaderboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.database import get_session
from toptsp.dependencies import require_admin
from toptsp.ranking.schemas import FreezeRequest, RankingResponse, SuccessResponse
from toptsp.ranking.service import get_ranking, reset_all, toggle_freeze

router = APIRouter(prefix="/api/v1", tags=["Ranking"])


@router.get("/ranking", response_model=RankingResponse)
async def ranking(db: AsyncSession = Depends(get_session)):
    """Public leaderboard (live, or the frozen snapshot)."""
    return await get_ranking(db)


@router.post(
    "/admin/ranking/freeze",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
async def freeze_ranking(body: FreezeRequest, db: AsyncSession = Depends(get_session)):
    """Freeze (snapshotting the live ranking now) or unfreeze the leaderboard."""
    await toggle_freeze(db, body.frozen)
    return SuccessResponse()


@router.post(
    "/admin/ranking/reset",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
async def reset_ranking(db: AsyncSession = Depends(get_session)):
    """Delete all submissions and best results."""
    await reset_all(db)
    return SuccessResponse()
