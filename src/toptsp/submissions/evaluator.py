"""Tour length of a validated permutation."""

from __future__ import annotations

from collections.abc import Sequence


def evaluate_tour(permutation: Sequence[int], distance_matrix: Sequence[Sequence[float]]) -> float:
    """Length of the closed tour visiting ``permutation`` in order (1-based node ids).

    The permutation must already have passed ``validate_permutation``. The
    result is reported at 2 decimals, the precision of the matrix entries.
    """
    n = len(permutation)
    total = 0.0
    for i in range(n):
        src = permutation[i] - 1
        dst = permutation[(i + 1) % n] - 1
        total += distance_matrix[src][dst]
    return round(total, 2)
