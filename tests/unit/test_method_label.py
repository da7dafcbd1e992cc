"""Unit tests for method label normalisation."""

from __future__ import annotations

from toptsp.submissions.service import normalize_method


def test_trimmed():
    assert normalize_method("  lk ") == "lk"


def test_none_becomes_empty():
    assert normalize_method(None) == ""


def test_over_length_dropped():
    assert normalize_method("x" * 10) == "x" * 10
    assert normalize_method("x" * 11) == ""


def test_length_checked_before_trimming():
    assert normalize_method("  abc      ") == ""
    assert normalize_method(" " + "x" * 9) == "x" * 9
