"""Request/response models for submission endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SubmitSolutionRequest(BaseModel):
    solution: str | None = None
    method: str | None = None


class SubmitSolutionResponse(BaseModel):
    success: bool = True
    objective_value: float
    improved: bool
    solution_id: int


class SubmissionResponse(BaseModel):
    solution: str
    objective_value: float
    method: str
    is_valid: bool
    submitted_at: datetime


class SubmissionListResponse(BaseModel):
    solutions: list[SubmissionResponse]


class SubmissionPointResponse(BaseModel):
    objective_value: float
    method: str
    submitted_at: datetime


class SubmissionSeriesResponse(BaseModel):
    submissions: list[SubmissionPointResponse]


class HistoryRowResponse(BaseModel):
    email: str
    solution: str
    objective_value: float
    method: str
    submitted_at: datetime
    is_valid: bool


class ExportResponse(BaseModel):
    rows: list[HistoryRowResponse]


class BestSolutionResponse(BaseModel):
    route: list[int]
    method: str
    objective_value: float
    email: str
    instance_name: str | None = None


class BestImprovementResponse(BaseModel):
    date: datetime
    value: float
    user: str
    method: str


class BestHistoryResponse(BaseModel):
    improvements: list[BestImprovementResponse]
