"""Request/response models for instance endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class UploadInstanceRequest(BaseModel):
    tsp_data: str = Field(min_length=1)
    replace_existing: bool = False


class UploadInstanceResponse(BaseModel):
    success: bool = True
    instance_id: int
    cleared: bool


class CoordinateResponse(BaseModel):
    id: int
    x: float
    y: float


class InstanceSummary(BaseModel):
    id: int
    name: str
    dimension: int
    type: str
    comment: str
    generation: int
    created_at: datetime | None = None


class InstanceWithCoordinates(InstanceSummary):
    coordinates: list[CoordinateResponse]


class CurrentInstanceResponse(BaseModel):
    has_instance: bool
    instance: InstanceSummary | None = None


class CurrentInstanceCoordsResponse(BaseModel):
    has_instance: bool
    instance: InstanceWithCoordinates | None = None
