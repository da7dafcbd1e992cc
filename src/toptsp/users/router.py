"""Participant endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.database import get_session
from toptsp.db.models import User
from toptsp.dependencies import get_current_user, require_admin
from toptsp.ranking.schemas import SuccessResponse
from toptsp.users.schemas import CreateUsersRequest, CreateUsersResponse, MeResponse, ParticipantResponse
from toptsp.users.service import create_users, delete_user, list_participants, split_emails

router = APIRouter(prefix="/api/v1", tags=["Users"])


@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)):
    """The participant making the request."""
    return MeResponse.model_validate(user, from_attributes=True)


@router.post(
    "/admin/users",
    response_model=CreateUsersResponse,
    dependencies=[Depends(require_admin)],
)
async def create(body: CreateUsersRequest, db: AsyncSession = Depends(get_session)):
    """Register participants from a ``;``-separated email list."""
    created, errors = await create_users(db, split_emails(body.emails))
    return CreateUsersResponse(created=created, errors=errors)


@router.get(
    "/admin/users",
    response_model=list[ParticipantResponse],
    dependencies=[Depends(require_admin)],
)
async def participants(db: AsyncSession = Depends(get_session)):
    """All participants with their current best value."""
    return [ParticipantResponse(**p) for p in await list_participants(db)]


@router.delete(
    "/admin/users/{user_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
async def remove(user_id: int, db: AsyncSession = Depends(get_session)):
    """Delete a participant and everything they submitted."""
    await delete_user(db, user_id)
    return SuccessResponse()
