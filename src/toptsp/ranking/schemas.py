"""Pydantic models for the leaderboard and its stored frozen state."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, model_validator


class LeaderboardEntryResponse(BaseModel):
    user_id: int
    email: str
    best_objective_value: float
    best_method: str
    last_improvement_at: datetime | None = None
    total_submissions: int


class LeaderboardStatsResponse(BaseModel):
    total_participants: int
    best_solution: float | None = None
    total_solutions: int


class LeaderboardSnapshot(BaseModel):
    ranking: list[LeaderboardEntryResponse]
    stats: LeaderboardStatsResponse
    frozen_at: datetime


class RankingState(BaseModel):
    """Frozen flag and snapshot, persisted together as one settings value.

    Unfreezing keeps the last snapshot around; a frozen state always has one.
    """

    frozen: bool = False
    snapshot: LeaderboardSnapshot | None = None

    @model_validator(mode="after")
    def _frozen_needs_snapshot(self) -> RankingState:
        if self.frozen and self.snapshot is None:
            msg = "frozen ranking state requires a snapshot"
            raise ValueError(msg)
        return self


class RankingResponse(BaseModel):
    frozen: bool
    ranking: list[LeaderboardEntryResponse]
    stats: LeaderboardStatsResponse
    frozen_at: datetime | None = None


class FreezeRequest(BaseModel):
    frozen: bool


class SuccessResponse(BaseModel):
    success: bool = True
