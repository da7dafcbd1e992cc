"""Permutation parsing and validation.

A tour is submitted as comma-separated node identifiers (``"1,4,2,3"``).
Text-level problems are reported by :func:`parse_permutation`; structural
ones (length, duplicates, coverage of ``1..N``) by :func:`validate_permutation`.
"""

from __future__ import annotations

from collections.abc import Sequence

from toptsp.errors import (
    DuplicateNodeError,
    EmptyInputError,
    MissingNodeError,
    NonNumericTokenError,
    NonPositiveTokenError,
    WrongLengthError,
)


def parse_permutation(text: str | None) -> list[int]:
    """Turn submission text into a list of positive integers."""
    if text is None or not text.strip():
        raise EmptyInputError()

    nodes: list[int] = []
    for raw in text.split(","):
        token = raw.strip()
        # int() also accepts "+3" and "٣"; only plain ASCII digits with an optional minus are node ids.
        body = token[1:] if token.startswith("-") else token
        if not body or not body.isascii() or not body.isdigit():
            raise NonNumericTokenError(token)
        value = int(token)
        if value <= 0:
            raise NonPositiveTokenError(value)
        nodes.append(value)
    return nodes


def validate_permutation(permutation: Sequence[int], node_count: int) -> None:
    """Check that ``permutation`` visits every node ``1..node_count`` exactly once."""
    if len(permutation) != node_count:
        raise WrongLengthError(expected=node_count, got=len(permutation))

    seen = set(permutation)
    if len(seen) != node_count:
        raise DuplicateNodeError()

    for node in range(1, node_count + 1):
        if node not in seen:
            raise MissingNodeError(node)


def format_permutation(permutation: Sequence[int]) -> str:
    return ",".join(str(n) for n in permutation)
