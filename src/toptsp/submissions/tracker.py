"""Per-user best result tracking.

The best result of a user only ever improves: a valid submission replaces the
stored best when its value is strictly smaller, otherwise it just bumps the
submission counter. The transition itself is the pure :func:`apply_submission`;
:func:`record` loads the stored row, applies the transition and writes the
result back inside the caller's transaction.

Callers must hold :func:`user_lock` for the user from before :func:`record`
until their transaction commits, so two submissions of the same user never
both read the same "old" best.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import datetime

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.db.models import Submission, UserBestResult

logger = structlog.get_logger()

_user_locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)


@dataclass(frozen=True)
class BestResultState:
    user_id: int
    best_submission_id: int
    best_objective_value: float
    best_method: str
    total_submissions: int
    last_improvement_at: datetime


@dataclass(frozen=True)
class ScoredSubmission:
    submission_id: int
    objective_value: float
    method: str
    submitted_at: datetime


@dataclass(frozen=True)
class RecordOutcome:
    state: BestResultState
    improved: bool


def apply_submission(
    state: BestResultState | None,
    user_id: int,
    submission: ScoredSubmission,
    *,
    prior_submissions: int = 0,
) -> RecordOutcome:
    """Fold one valid submission into a user's best-result state.

    ``prior_submissions`` seeds the counter when there is no best to compare
    against but earlier submissions were already counted.
    """
    value = round(submission.objective_value, 2)

    if state is None:
        return RecordOutcome(
            state=BestResultState(
                user_id=user_id,
                best_submission_id=submission.submission_id,
                best_objective_value=value,
                best_method=submission.method,
                total_submissions=prior_submissions + 1,
                last_improvement_at=submission.submitted_at,
            ),
            improved=True,
        )

    if value < round(state.best_objective_value, 2):
        return RecordOutcome(
            state=replace(
                state,
                best_submission_id=submission.submission_id,
                best_objective_value=value,
                best_method=submission.method,
                total_submissions=state.total_submissions + 1,
                last_improvement_at=submission.submitted_at,
            ),
            improved=True,
        )

    return RecordOutcome(
        state=replace(state, total_submissions=state.total_submissions + 1),
        improved=False,
    )


@asynccontextmanager
async def user_lock(user_id: int) -> AsyncIterator[None]:
    """Serialise best-result updates for one user within this process."""
    async with _user_locks[user_id]:
        yield


def _state_from_row(row: UserBestResult | None) -> BestResultState | None:
    # A row without a best value (e.g. its submission was removed) has no best to beat.
    if row is None or row.best_objective_value is None or row.best_submission_id is None:
        return None
    return BestResultState(
        user_id=row.user_id,
        best_submission_id=row.best_submission_id,
        best_objective_value=row.best_objective_value,
        best_method=row.best_method or "",
        total_submissions=row.total_submissions or 0,
        last_improvement_at=row.last_improvement_at,  # type: ignore[arg-type]
    )


async def get_best_result(db: AsyncSession, user_id: int, *, for_update: bool = False) -> UserBestResult | None:
    stmt = select(UserBestResult).where(UserBestResult.user_id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def put_best_result(db: AsyncSession, state: BestResultState, row: UserBestResult | None = None) -> None:
    if row is None:
        row = UserBestResult(user_id=state.user_id)
        db.add(row)
    row.best_submission_id = state.best_submission_id
    row.best_objective_value = state.best_objective_value
    row.best_method = state.best_method
    row.total_submissions = state.total_submissions
    row.last_improvement_at = state.last_improvement_at
    await db.flush()


async def record(
    db: AsyncSession,
    user_id: int,
    submission_id: int,
    objective_value: float,
    method: str,
    submitted_at: datetime,
) -> bool:
    """Record a valid submission; returns True if it is the user's new best."""
    row = await get_best_result(db, user_id, for_update=True)
    outcome = apply_submission(
        _state_from_row(row),
        user_id,
        ScoredSubmission(
            submission_id=submission_id,
            objective_value=objective_value,
            method=method,
            submitted_at=submitted_at,
        ),
        prior_submissions=(row.total_submissions or 0) if row is not None else 0,
    )
    state = outcome.state
    await put_best_result(db, state, row)
    logger.debug(
        "best_result_recorded",
        user_id=user_id,
        submission_id=submission_id,
        value=state.best_objective_value,
        improved=outcome.improved,
    )
    return outcome.improved


async def list_best_results(db: AsyncSession) -> list[UserBestResult]:
    result = await db.execute(select(UserBestResult).order_by(UserBestResult.user_id))
    return list(result.scalars())


async def delete_user_results(db: AsyncSession, user_id: int) -> None:
    """Remove a user's submissions and then their best result."""
    await db.execute(delete(Submission).where(Submission.user_id == user_id))
    await db.execute(delete(UserBestResult).where(UserBestResult.user_id == user_id))


async def wipe_all(db: AsyncSession) -> None:
    """Delete every submission and every best result, for all users."""
    await db.execute(delete(Submission))
    await db.execute(delete(UserBestResult))
