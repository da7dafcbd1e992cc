"""Service-level tests for the submission pipeline and best-result tracking."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import pytest
from conftest import SCENARIO_MATRIX, create_user, open_session, store_matrix_instance
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from toptsp.competition.settings_service import set_end_date
from toptsp.db.models import Submission, UserBestResult
from toptsp.errors import (
    ClosedCompetitionError,
    DuplicateNodeError,
    EmptyInputError,
    NoInstanceError,
    StorageError,
    WrongLengthError,
)
from toptsp.submissions import tracker
from toptsp.submissions.service import (
    competition_best_history,
    export_history,
    get_best_solution,
    list_user_submissions,
    submit_solution,
)

pytestmark = pytest.mark.asyncio

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


async def _submission_count(db) -> int:
    return (await db.execute(select(func.count()).select_from(Submission))).scalar_one()


class TestSubmitSolution:
    async def test_scenario_improvements(self, db_session):
        """95 first, 95 again is a tie, 80 improves."""
        user = await create_user(db_session, "alice@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)

        first = await submit_solution(db_session, user.id, "1,2,3,4", now=T0)
        assert (first.objective_value, first.improved) == (95.0, True)

        second = await submit_solution(db_session, user.id, "1,3,2,4", now=T0 + timedelta(minutes=1))
        assert (second.objective_value, second.improved) == (95.0, False)

        third = await submit_solution(db_session, user.id, "1,2,4,3", now=T0 + timedelta(minutes=2))
        assert (third.objective_value, third.improved) == (80.0, True)

        best = await tracker.get_best_result(db_session, user.id)
        assert best is not None
        assert best.best_objective_value == 80.0
        assert best.best_submission_id == third.submission_id
        assert best.total_submissions == 3
        assert await _submission_count(db_session) == 3

    async def test_method_label_stored(self, db_session):
        user = await create_user(db_session, "alice@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)
        await submit_solution(db_session, user.id, "1,2,4,3", "  2-opt ", now=T0)

        best = await tracker.get_best_result(db_session, user.id)
        assert best is not None
        assert best.best_method == "2-opt"

    async def test_invalid_solution_leaves_no_trace(self, db_session):
        user = await create_user(db_session, "alice@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)

        with pytest.raises(DuplicateNodeError):
            await submit_solution(db_session, user.id, "1,1,2,3", now=T0)
        with pytest.raises(WrongLengthError):
            await submit_solution(db_session, user.id, "1,2,3", now=T0)

        assert await _submission_count(db_session) == 0
        assert await tracker.get_best_result(db_session, user.id) is None

    async def test_no_instance(self, db_session):
        user = await create_user(db_session, "alice@example.com")
        with pytest.raises(NoInstanceError):
            await submit_solution(db_session, user.id, "1,2,3,4", now=T0)

    async def test_empty_text_rejected_before_instance_lookup(self, db_session):
        user = await create_user(db_session, "alice@example.com")
        with pytest.raises(EmptyInputError):
            await submit_solution(db_session, user.id, "  ", now=T0)

    async def test_closed_competition(self, db_session):
        user = await create_user(db_session, "alice@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)
        await set_end_date(db_session, T0)

        with pytest.raises(ClosedCompetitionError):
            await submit_solution(db_session, user.id, "1,2,3,4", now=T0 + timedelta(seconds=1))
        assert await _submission_count(db_session) == 0

        outcome = await submit_solution(db_session, user.id, "1,2,3,4", now=T0)
        assert outcome.improved is True

    async def test_best_tracked_per_user(self, db_session):
        alice = await create_user(db_session, "alice@example.com")
        bob = await create_user(db_session, "bob@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)

        await submit_solution(db_session, alice.id, "1,2,4,3", now=T0)
        await submit_solution(db_session, bob.id, "1,2,3,4", now=T0)

        bests = {b.user_id: b.best_objective_value for b in await tracker.list_best_results(db_session)}
        assert bests == {alice.id: 80.0, bob.id: 95.0}

    async def test_store_failure_rolls_back_submission(self, db_session, monkeypatch):
        user = await create_user(db_session, "alice@example.com")
        user_id = user.id
        await store_matrix_instance(db_session, SCENARIO_MATRIX)

        async def failing_put(*_args, **_kwargs):
            raise OperationalError("UPDATE user_best_results", {}, Exception("disk I/O error"))

        monkeypatch.setattr(tracker, "put_best_result", failing_put)
        with pytest.raises(StorageError):
            await submit_solution(db_session, user_id, "1,2,3,4", now=T0)

        assert await _submission_count(db_session) == 0
        assert await tracker.get_best_result(db_session, user_id) is None

        monkeypatch.undo()
        outcome = await submit_solution(db_session, user_id, "1,2,3,4", now=T0)
        assert outcome.improved is True
        best = await tracker.get_best_result(db_session, user_id)
        assert best is not None
        assert best.total_submissions == 1

    async def test_counter_survives_missing_best(self, db_session):
        """A best-result row whose best submission is gone keeps its counter."""
        user = await create_user(db_session, "alice@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)
        db_session.add(
            UserBestResult(
                user_id=user.id,
                best_submission_id=None,
                best_objective_value=None,
                total_submissions=3,
            )
        )
        await db_session.commit()

        outcome = await submit_solution(db_session, user.id, "1,2,3,4", now=T0)

        assert outcome.improved is True
        best = await tracker.get_best_result(db_session, user.id)
        assert best is not None
        assert best.best_submission_id == outcome.submission_id
        assert best.best_objective_value == 95.0
        assert best.total_submissions == 4


class TestConcurrentSubmissions:
    async def test_same_user_submissions_serialised(self, db_session, monkeypatch):
        """Parallel submissions from one user each count once and the best is the minimum."""
        monkeypatch.setattr(tracker, "_user_locks", defaultdict(asyncio.Lock))
        user = await create_user(db_session, "alice@example.com")
        user_id = user.id
        await store_matrix_instance(db_session, SCENARIO_MATRIX)
        tours = ["1,2,3,4", "1,3,2,4", "1,2,4,3"] * 4

        async def submit(tour: str):
            async with open_session() as session:
                return await submit_solution(session, user_id, tour)

        outcomes = await asyncio.gather(*(submit(tour) for tour in tours))

        assert await _submission_count(db_session) == len(tours)
        best = await tracker.get_best_result(db_session, user_id)
        assert best is not None
        assert best.total_submissions == len(tours)
        assert best.best_objective_value == 80.0

        # Ids follow the order the lock admitted each submission.
        running_best = None
        for outcome in sorted(outcomes, key=lambda o: o.submission_id):
            expected = running_best is None or outcome.objective_value < running_best
            assert outcome.improved is expected
            if expected:
                running_best = outcome.objective_value
        assert sum(o.improved for o in outcomes) in (1, 2)


class TestHistory:
    async def test_export_newest_first(self, db_session):
        alice = await create_user(db_session, "alice@example.com")
        bob = await create_user(db_session, "bob@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)

        await submit_solution(db_session, alice.id, "1,2,3,4", now=T0)
        await submit_solution(db_session, bob.id, "1,2,4,3", now=T0 + timedelta(minutes=1))
        await submit_solution(db_session, alice.id, "1,3,2,4", now=T0 + timedelta(minutes=2))

        rows = await export_history(db_session)
        assert [(r["email"], r["objective_value"]) for r in rows] == [
            ("alice@example.com", 95.0),
            ("bob@example.com", 80.0),
            ("alice@example.com", 95.0),
        ]
        assert rows[0]["solution"] == "1,3,2,4"
        assert all(r["is_valid"] for r in rows)

    async def test_user_submissions_ordering_and_limit(self, db_session):
        user = await create_user(db_session, "alice@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)
        for i, tour in enumerate(["1,2,3,4", "1,2,4,3", "1,3,2,4"]):
            await submit_solution(db_session, user.id, tour, now=T0 + timedelta(minutes=i))

        newest = await list_user_submissions(db_session, user.id, limit=2)
        assert [s.solution for s in newest] == ["1,3,2,4", "1,2,4,3"]

        oldest = await list_user_submissions(db_session, user.id, newest_first=False)
        assert [s.solution for s in oldest] == ["1,2,3,4", "1,2,4,3", "1,3,2,4"]

    async def test_best_solution_route(self, db_session):
        user = await create_user(db_session, "alice@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)
        await submit_solution(db_session, user.id, "1,2,3,4", now=T0)
        await submit_solution(db_session, user.id, "1,2,4,3", "greedy", now=T0 + timedelta(minutes=1))

        best = await get_best_solution(db_session, user.id)
        assert best["route"] == [1, 2, 4, 3]
        assert best["objective_value"] == 80.0
        assert best["method"] == "greedy"
        assert best["email"] == "alice@example.com"
        assert best["instance_name"] == "Berlin 52"

    async def test_competition_best_history(self, db_session):
        alice = await create_user(db_session, "alice@example.com")
        bob = await create_user(db_session, "bob@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)

        await submit_solution(db_session, alice.id, "1,2,3,4", now=T0)
        await submit_solution(db_session, bob.id, "1,3,2,4", now=T0 + timedelta(minutes=1))
        await submit_solution(db_session, bob.id, "1,2,4,3", now=T0 + timedelta(minutes=2))
        await submit_solution(db_session, alice.id, "1,2,4,3", now=T0 + timedelta(minutes=3))

        history = await competition_best_history(db_session)
        assert [(h["user"], h["value"]) for h in history] == [
            ("alice@example.com", 95.0),
            ("bob@example.com", 80.0),
        ]

    async def test_tracker_matches_history_minimum(self, db_session):
        user = await create_user(db_session, "alice@example.com")
        await store_matrix_instance(db_session, SCENARIO_MATRIX)
        for i, tour in enumerate(["1,3,2,4", "1,2,3,4", "1,2,4,3", "1,4,3,2", "1,2,3,4"]):
            await submit_solution(db_session, user.id, tour, now=T0 + timedelta(minutes=i))

        submissions = await list_user_submissions(db_session, user.id)
        best = (
            await db_session.execute(select(UserBestResult).where(UserBestResult.user_id == user.id))
        ).scalar_one()
        assert best.best_objective_value == min(s.objective_value for s in submissions)
        assert best.total_submissions == len(submissions)
