"""TSPLIB instance parsing.

Understands the subset used by the competition: the NAME / TYPE / COMMENT /
DIMENSION / EDGE_WEIGHT_TYPE header fields and a NODE_COORD_SECTION of
``id x y`` lines, terminated by ``EOF`` or the end of the text. Distances are
EUC_2D: Euclidean, rounded to 2 decimals.

Coordinate lines with fewer than three tokens, or with non-numeric tokens,
are skipped rather than rejected. A truncated upload therefore surfaces as a
dimension mismatch, not as a parse error on the offending line.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from toptsp.errors import DimensionMismatchError, InvalidFormatError

COORD_SECTION = "NODE_COORD_SECTION"
EOF_MARKER = "EOF"

_HEADER_FIELDS = {
    "NAME:": "name",
    "TYPE:": "type",
    "COMMENT:": "comment",
    "DIMENSION:": "dimension",
    "EDGE_WEIGHT_TYPE:": "edge_weight_type",
}


@dataclass(frozen=True)
class Coordinate:
    id: int
    x: float
    y: float

    def as_dict(self) -> dict[str, float | int]:
        return {"id": self.id, "x": self.x, "y": self.y}


@dataclass(frozen=True)
class ParsedInstance:
    """A validated instance ready to be stored."""

    name: str
    type: str
    comment: str
    dimension: int
    edge_weight_type: str
    coordinates: list[Coordinate]
    distance_matrix: list[list[float]]
    original_text: str = field(repr=False)


def _parse_dimension(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        return 0


def _parse_coordinate(line: str) -> Coordinate | None:
    parts = line.split()
    if len(parts) < 3:
        return None
    try:
        return Coordinate(id=int(parts[0]), x=float(parts[1]), y=float(parts[2]))
    except ValueError:
        return None


def euclidean_matrix(coordinates: list[Coordinate]) -> list[list[float]]:
    """Symmetric EUC_2D distance matrix, rounded to 2 decimals, zero diagonal."""
    n = len(coordinates)
    matrix = [[0.0] * n for _ in range(n)]
    for i in range(n):
        a = coordinates[i]
        for j in range(i + 1, n):
            b = coordinates[j]
            d = round(math.hypot(a.x - b.x, a.y - b.y), 2)
            matrix[i][j] = d
            matrix[j][i] = d
    return matrix


def parse_tsplib(raw_text: str) -> ParsedInstance:
    """Parse TSPLIB text into a :class:`ParsedInstance`.

    Raises:
        InvalidFormatError: name missing, dimension zero, or no coordinates.
        DimensionMismatchError: coordinate count differs from DIMENSION.
    """
    header = {"name": "", "type": "TSP", "comment": "", "dimension": "", "edge_weight_type": "EUC_2D"}
    coordinates: list[Coordinate] = []
    in_coords = False

    lines = (line.strip() for line in raw_text.splitlines())
    for line in lines:
        if not line:
            continue
        if line == EOF_MARKER:
            break
        if line == COORD_SECTION:
            in_coords = True
            continue

        if in_coords:
            coord = _parse_coordinate(line)
            if coord is not None:
                coordinates.append(coord)
            continue

        for prefix, key in _HEADER_FIELDS.items():
            if line.startswith(prefix):
                header[key] = line[len(prefix):].strip()
                break

    dimension = _parse_dimension(header["dimension"])
    if not header["name"] or dimension <= 0 or not coordinates:
        raise InvalidFormatError()
    if len(coordinates) != dimension:
        raise DimensionMismatchError(expected=dimension, got=len(coordinates))

    return ParsedInstance(
        name=header["name"],
        type=header["type"],
        comment=header["comment"],
        dimension=dimension,
        edge_weight_type=header["edge_weight_type"],
        coordinates=coordinates,
        distance_matrix=euclidean_matrix(coordinates),
        original_text=raw_text,
    )
