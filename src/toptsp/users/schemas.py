"""Request/response models for participant endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class CreateUsersRequest(BaseModel):
    emails: str


class CreateUsersResponse(BaseModel):
    success: bool = True
    created: int
    errors: list[str]


class ParticipantResponse(BaseModel):
    id: int
    email: str
    best_objective_value: float | None = None
    last_improvement_at: datetime | None = None


class MeResponse(BaseModel):
    id: int
    email: str
    is_admin: bool
