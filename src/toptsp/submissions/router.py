"""Submission endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.config import get_settings
from toptsp.database import get_session
from toptsp.db.models import User
from toptsp.dependencies import get_current_user, require_admin
from toptsp.submissions.schemas import (
    BestHistoryResponse,
    BestImprovementResponse,
    BestSolutionResponse,
    ExportResponse,
    HistoryRowResponse,
    SubmissionListResponse,
    SubmissionPointResponse,
    SubmissionResponse,
    SubmissionSeriesResponse,
    SubmitSolutionRequest,
    SubmitSolutionResponse,
)
from toptsp.submissions.service import (
    competition_best_history,
    export_history,
    get_best_solution,
    list_user_submissions,
    submit_solution,
)

router = APIRouter(prefix="/api/v1", tags=["Submissions"])


@router.post("/submissions", response_model=SubmitSolutionResponse)
async def submit(
    body: SubmitSolutionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Score a tour for the current participant."""
    outcome = await submit_solution(db, user.id, body.solution, body.method)
    return SubmitSolutionResponse(
        objective_value=outcome.objective_value,
        improved=outcome.improved,
        solution_id=outcome.submission_id,
    )


@router.get("/me/submissions", response_model=SubmissionListResponse)
async def my_submissions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """The current participant's latest submissions."""
    rows = await list_user_submissions(db, user.id, limit=get_settings().history_limit)
    return SubmissionListResponse(
        solutions=[SubmissionResponse.model_validate(r, from_attributes=True) for r in rows],
    )


@router.get("/users/{user_id}/submissions", response_model=SubmissionSeriesResponse)
async def user_submission_series(user_id: int, db: AsyncSession = Depends(get_session)):
    """A participant's objective values over time, oldest first."""
    rows = await list_user_submissions(
        db, user_id, newest_first=False, limit=get_settings().user_submissions_limit,
    )
    return SubmissionSeriesResponse(
        submissions=[SubmissionPointResponse.model_validate(r, from_attributes=True) for r in rows],
    )


@router.get("/users/{user_id}/best-solution", response_model=BestSolutionResponse)
async def user_best_solution(user_id: int, db: AsyncSession = Depends(get_session)):
    """The route behind a participant's best result."""
    return BestSolutionResponse(**await get_best_solution(db, user_id))


@router.get("/competition/best-history", response_model=BestHistoryResponse)
async def best_history(db: AsyncSession = Depends(get_session)):
    """Every time the overall best tour improved."""
    improvements = await competition_best_history(db)
    return BestHistoryResponse(improvements=[BestImprovementResponse(**i) for i in improvements])


@router.get(
    "/admin/submissions/export",
    response_model=ExportResponse,
    dependencies=[Depends(require_admin)],
)
async def export(db: AsyncSession = Depends(get_session)):
    """Full submission history, newest first, for tabular export."""
    rows = await export_history(db)
    return ExportResponse(rows=[HistoryRowResponse(**r) for r in rows])
