"""Leaderboard service: live ranking, freeze/unfreeze, reset.

The frozen flag and the snapshot it refers to live in a single settings row
(``ranking_state``), written in one statement under a process-wide lock, so
readers see either the live mode or a frozen mode with its payload.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import structlog
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.competition.settings_service import RANKING_STATE_KEY, get_config, set_config
from toptsp.db.models import User, UserBestResult
from toptsp.errors import StorageError
from toptsp.ranking.engine import LeaderboardEntry, compute_stats, rank_entries
from toptsp.ranking.schemas import (
    LeaderboardEntryResponse,
    LeaderboardSnapshot,
    LeaderboardStatsResponse,
    RankingResponse,
    RankingState,
)
from toptsp.submissions.tracker import wipe_all

logger = structlog.get_logger()

_state_lock = asyncio.Lock()


async def compute_live_ranking(db: AsyncSession) -> list[LeaderboardEntry]:
    """All users with a best result, in leaderboard order."""
    result = await db.execute(
        select(UserBestResult, User.email)
        .join(User, User.id == UserBestResult.user_id)
        .where(UserBestResult.best_objective_value.is_not(None))
    )
    entries = [
        LeaderboardEntry(
            user_id=best.user_id,
            email=email,
            best_objective_value=best.best_objective_value,  # type: ignore[arg-type]
            best_method=best.best_method or "",
            last_improvement_at=best.last_improvement_at,
            total_submissions=best.total_submissions or 0,
        )
        for best, email in result.all()
    ]
    return rank_entries(entries)


def _to_response(ranked: list[LeaderboardEntry]) -> tuple[list[LeaderboardEntryResponse], LeaderboardStatsResponse]:
    stats = compute_stats(ranked)
    return (
        [LeaderboardEntryResponse.model_validate(e, from_attributes=True) for e in ranked],
        LeaderboardStatsResponse.model_validate(stats, from_attributes=True),
    )


async def get_ranking_state(db: AsyncSession) -> RankingState:
    raw = await get_config(db, RANKING_STATE_KEY)
    if not raw:
        return RankingState()
    try:
        return RankingState.model_validate_json(raw)
    except ValidationError:
        logger.error("ranking_state_corrupt", value=raw[:200])
        return RankingState()


async def _put_ranking_state(db: AsyncSession, state: RankingState) -> None:
    try:
        await set_config(db, RANKING_STATE_KEY, state.model_dump_json())
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("Error saving ranking state") from exc


async def get_ranking(db: AsyncSession) -> RankingResponse:
    """Public leaderboard: the frozen snapshot verbatim, or the live ranking."""
    state = await get_ranking_state(db)
    if state.frozen and state.snapshot is not None:
        return RankingResponse(
            frozen=True,
            ranking=state.snapshot.ranking,
            stats=state.snapshot.stats,
            frozen_at=state.snapshot.frozen_at,
        )

    ranking, stats = _to_response(await compute_live_ranking(db))
    return RankingResponse(frozen=False, ranking=ranking, stats=stats)


async def freeze(db: AsyncSession, *, now: datetime | None = None) -> LeaderboardSnapshot:
    """Snapshot the live ranking as of now and serve it until unfrozen.

    Always recomputes, even when already frozen.
    """
    async with _state_lock:
        ranking, stats = _to_response(await compute_live_ranking(db))
        snapshot = LeaderboardSnapshot(
            ranking=ranking,
            stats=stats,
            frozen_at=now or datetime.now(timezone.utc),
        )
        await _put_ranking_state(db, RankingState(frozen=True, snapshot=snapshot))

    logger.info("ranking_frozen", participants=stats.total_participants, frozen_at=snapshot.frozen_at.isoformat())
    return snapshot


async def unfreeze(db: AsyncSession) -> None:
    """Return to the live ranking; the last snapshot is kept but no longer served."""
    async with _state_lock:
        state = await get_ranking_state(db)
        await _put_ranking_state(db, RankingState(frozen=False, snapshot=state.snapshot))
    logger.info("ranking_unfrozen")


async def toggle_freeze(db: AsyncSession, frozen: bool) -> None:
    if frozen:
        await freeze(db)
    else:
        await unfreeze(db)


async def reset_all(db: AsyncSession) -> None:
    """Delete every submission and best result. The frozen state is left as is."""
    try:
        await wipe_all(db)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("Error clearing rankings") from exc
    logger.warning("ranking_reset")
