"""Request/response models for competition settings endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SetEndDateRequest(BaseModel):
    end_date: datetime | None = None


class SetInstanceNameRequest(BaseModel):
    instance_name: str | None = None


class CompetitionStatusResponse(BaseModel):
    open: bool
    end_date: datetime | None = None
    instance_name: str
