"""Deterministic leaderboard ordering.

Entries are ranked by best tour length rounded to 2 decimals ASC, then by the
time the value was reached ASC (the first to get there wins the tie), then by
user id ASC as the final tiebreaker.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from toptsp.competition.clock import as_utc


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: int
    email: str
    best_objective_value: float
    best_method: str
    last_improvement_at: datetime | None
    total_submissions: int


@dataclass(frozen=True)
class LeaderboardStats:
    total_participants: int
    best_solution: float | None
    total_solutions: int


_NEVER = datetime.max


def _sort_key(entry: LeaderboardEntry) -> tuple[float, datetime, int]:
    when = as_utc(entry.last_improvement_at).replace(tzinfo=None) if entry.last_improvement_at else _NEVER
    return (round(entry.best_objective_value, 2), when, entry.user_id)


def rank_entries(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Sort entries into leaderboard order, reporting values at 2 decimals."""
    ordered = sorted(entries, key=_sort_key)
    return [
        LeaderboardEntry(
            user_id=e.user_id,
            email=e.email,
            best_objective_value=round(e.best_objective_value, 2),
            best_method=e.best_method,
            last_improvement_at=e.last_improvement_at,
            total_submissions=e.total_submissions,
        )
        for e in ordered
    ]


def compute_stats(ranked: list[LeaderboardEntry]) -> LeaderboardStats:
    """Summary figures for an already ranked leaderboard."""
    return LeaderboardStats(
        total_participants=len(ranked),
        best_solution=ranked[0].best_objective_value if ranked else None,
        total_solutions=sum(e.total_submissions or 0 for e in ranked),
    )
