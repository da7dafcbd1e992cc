"""Unit tests for the competition window."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from toptsp.competition.clock import as_utc, is_open

END = datetime(2025, 6, 30, 18, 0, tzinfo=timezone.utc)


def test_open_without_end_date():
    assert is_open(datetime.now(timezone.utc), None) is True


def test_open_before_end():
    assert is_open(END - timedelta(seconds=1), END) is True


def test_open_exactly_at_end():
    assert is_open(END, END) is True


def test_closed_after_end():
    assert is_open(END + timedelta(seconds=1), END) is False


def test_naive_end_treated_as_utc():
    naive_end = END.replace(tzinfo=None)
    assert is_open(END + timedelta(minutes=1), naive_end) is False
    assert is_open(END - timedelta(minutes=1), naive_end) is True


def test_other_timezone_compared_in_utc():
    cest = timezone(timedelta(hours=2))
    end_local = datetime(2025, 6, 30, 20, 0, tzinfo=cest)
    assert is_open(END, end_local) is True
    assert is_open(END + timedelta(seconds=1), end_local) is False


def test_as_utc_converts():
    cest = timezone(timedelta(hours=2))
    assert as_utc(datetime(2025, 1, 1, 2, 0, tzinfo=cest)) == datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)
