"""Submission pipeline and history queries.

``submit_solution`` runs a tour through the whole pipeline: competition
window, active instance, text parsing, permutation validation, scoring, then
the append plus best-result update in a single transaction.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.competition.clock import is_open
from toptsp.competition.settings_service import get_end_date, get_instance_name
from toptsp.config import get_settings
from toptsp.db.models import Submission, User, UserBestResult
from toptsp.errors import ClosedCompetitionError, NotFoundError, StorageError
from toptsp.instances.service import require_active_instance
from toptsp.submissions import tracker
from toptsp.submissions.evaluator import evaluate_tour
from toptsp.submissions.validator import format_permutation, parse_permutation, validate_permutation

logger = structlog.get_logger()


@dataclass(frozen=True)
class SubmissionOutcome:
    submission_id: int
    objective_value: float
    improved: bool


def normalize_method(method: str | None) -> str:
    """Trim the method label; labels over the configured length are dropped.

    The length limit applies to the label as sent, before trimming.
    """
    if method is None or len(method) > get_settings().method_max_length:
        return ""
    return method.strip()


async def append_submission(
    db: AsyncSession,
    *,
    user_id: int,
    instance_id: int,
    solution: str,
    objective_value: float,
    method: str,
    submitted_at: datetime,
) -> Submission:
    submission = Submission(
        user_id=user_id,
        instance_id=instance_id,
        solution=solution,
        objective_value=objective_value,
        method=method,
        is_valid=True,
        submitted_at=submitted_at,
    )
    db.add(submission)
    await db.flush()
    return submission


async def submit_solution(
    db: AsyncSession,
    user_id: int,
    permutation_text: str | None,
    method: str | None = None,
    *,
    now: datetime | None = None,
) -> SubmissionOutcome:
    """Validate, score and record one tour for ``user_id``."""
    permutation = parse_permutation(permutation_text)

    now = now or datetime.now(timezone.utc)
    if not is_open(now, await get_end_date(db)):
        raise ClosedCompetitionError()

    instance = await require_active_instance(db)
    validate_permutation(permutation, instance.dimension)
    objective_value = evaluate_tour(permutation, instance.distance_matrix)
    label = normalize_method(method)

    async with tracker.user_lock(user_id):
        try:
            submission = await append_submission(
                db,
                user_id=user_id,
                instance_id=instance.id,
                solution=format_permutation(permutation),
                objective_value=objective_value,
                method=label,
                submitted_at=now,
            )
            improved = await tracker.record(db, user_id, submission.id, objective_value, label, now)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("submission_store_failed", user_id=user_id, error=str(exc))
            raise StorageError("Error saving solution") from exc

    logger.info(
        "solution_submitted",
        user_id=user_id,
        submission_id=submission.id,
        instance_id=instance.id,
        objective_value=objective_value,
        improved=improved,
    )
    return SubmissionOutcome(submission_id=submission.id, objective_value=objective_value, improved=improved)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


async def export_history(db: AsyncSession) -> list[dict[str, Any]]:
    """Every submission with its author's email, newest first."""
    result = await db.execute(
        select(Submission, User.email)
        .join(User, Submission.user_id == User.id)
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
    )
    return [
        {
            "email": email,
            "solution": sub.solution,
            "objective_value": sub.objective_value,
            "method": sub.method,
            "submitted_at": sub.submitted_at,
            "is_valid": sub.is_valid,
        }
        for sub, email in result.all()
    ]


async def list_user_submissions(
    db: AsyncSession, user_id: int, *, newest_first: bool = True, limit: int | None = None,
) -> list[Submission]:
    order = (
        (Submission.submitted_at.desc(), Submission.id.desc())
        if newest_first
        else (Submission.submitted_at.asc(), Submission.id.asc())
    )
    stmt = select(Submission).where(Submission.user_id == user_id).order_by(*order)
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars())


async def get_best_solution(db: AsyncSession, user_id: int) -> dict[str, Any]:
    """The route behind a user's best result, for visualisation."""
    result = await db.execute(
        select(Submission, UserBestResult.best_objective_value, User.email)
        .join(UserBestResult, UserBestResult.best_submission_id == Submission.id)
        .join(User, User.id == UserBestResult.user_id)
        .where(UserBestResult.user_id == user_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Solution not found")
    submission, best_value, email = row
    return {
        "route": parse_permutation(submission.solution),
        "method": submission.method or "",
        "objective_value": best_value,
        "email": email,
        "instance_name": await get_instance_name(db),
    }


async def competition_best_history(db: AsyncSession) -> list[dict[str, Any]]:
    """Moments at which the overall best tour improved, oldest first."""
    result = await db.execute(
        select(Submission.objective_value, Submission.method, Submission.submitted_at, User.email)
        .join(User, Submission.user_id == User.id)
        .where(Submission.is_valid.is_(True))
        .order_by(Submission.submitted_at.asc(), Submission.id.asc())
        .limit(get_settings().best_history_limit)
    )
    improvements: list[dict[str, Any]] = []
    current_best = math.inf
    for value, method, submitted_at, email in result.all():
        if value is None:
            continue
        rounded = round(value, 2)
        if rounded < current_best:
            current_best = rounded
            improvements.append({
                "date": submitted_at,
                "value": rounded,
                "user": email or "",
                "method": method or "",
            })
    return improvements
