"""Domain error taxonomy.

Every expected failure raises a ``CompetitionError`` subclass. The global
exception handler turns it into ``{"detail": message, "code": code}`` with the
class' ``http_status``; anything else is an internal error.
"""

from __future__ import annotations

from typing import Any


class CompetitionError(Exception):
    """Base class for all recoverable, request-level errors."""

    code: str = "competition_error"
    default_message: str = "Request could not be processed"
    http_status: int = 400

    def __init__(self, message: str | None = None, **extra: Any) -> None:  # noqa: ANN401
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


# ---------------------------------------------------------------------------
# Instance parsing
# ---------------------------------------------------------------------------


class ParseError(CompetitionError):
    code = "parse_error"
    default_message = "Invalid TSP instance"


class InvalidFormatError(ParseError):
    code = "invalid_format"
    default_message = "Invalid TSP format: missing required fields"


class DimensionMismatchError(ParseError):
    code = "dimension_mismatch"

    def __init__(self, expected: int, got: int) -> None:
        super().__init__(
            f"Dimension mismatch: expected {expected}, got {got} coordinates",
            expected=expected,
            got=got,
        )


# ---------------------------------------------------------------------------
# Solution validation
# ---------------------------------------------------------------------------


class SolutionValidationError(CompetitionError):
    code = "validation_error"
    default_message = "Invalid solution"


class EmptyInputError(SolutionValidationError):
    code = "empty_input"
    default_message = "Solution required"


class NonNumericTokenError(SolutionValidationError):
    code = "non_numeric_token"

    def __init__(self, token: str) -> None:
        super().__init__(f"Solution contains a non-numeric value: {token!r}", token=token)


class NonPositiveTokenError(SolutionValidationError):
    code = "non_positive_token"

    def __init__(self, value: int) -> None:
        super().__init__(f"Node identifiers must be positive integers, got {value}", value=value)


class WrongLengthError(SolutionValidationError):
    code = "wrong_length"

    def __init__(self, expected: int, got: int) -> None:
        super().__init__(f"Solution must contain exactly {expected} nodes", expected=expected, got=got)


class DuplicateNodeError(SolutionValidationError):
    code = "duplicate_node"
    default_message = "Solution contains duplicate nodes"


class MissingNodeError(SolutionValidationError):
    code = "missing_node"

    def __init__(self, node: int) -> None:
        super().__init__(f"Missing node {node} in solution", node=node)


# ---------------------------------------------------------------------------
# Competition state
# ---------------------------------------------------------------------------


class NoInstanceError(CompetitionError):
    code = "no_instance"
    default_message = "No TSP instance is currently available"
    http_status = 409


class ClosedCompetitionError(CompetitionError):
    code = "competition_closed"
    default_message = "The competition has ended; no more solutions are accepted"
    http_status = 403


class NotFoundError(CompetitionError):
    code = "not_found"
    default_message = "Resource not found"
    http_status = 404


class StorageError(CompetitionError):
    code = "storage_error"
    default_message = "Storage is temporarily unavailable"
    http_status = 503


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------


class AuthRequiredError(CompetitionError):
    code = "auth_required"
    default_message = "Authentication required"
    http_status = 401


class AdminRequiredError(CompetitionError):
    code = "admin_required"
    default_message = "Admin privileges required"
    http_status = 403
