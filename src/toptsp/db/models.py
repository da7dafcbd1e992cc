"""ORM models for the competition schema.

PostgreSQL tables are created by Alembic (alembic/versions); SQLite databases
used for tests and local runs are created straight from this metadata.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from toptsp.db.base import Base

# BIGINT primary keys only autoincrement as INTEGER on SQLite.
_BigId = BigInteger().with_variant(Integer, "sqlite")
_Json = JSON().with_variant(JSONB, "postgresql")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Competition participant (or administrator)."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(_BigId, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    best_result: Mapped[UserBestResult | None] = relationship(
        "UserBestResult", back_populates="user", uselist=False, passive_deletes=True,
    )


# ---------------------------------------------------------------------------
# TSP instances
# ---------------------------------------------------------------------------


class TspInstance(Base):
    """A parsed TSPLIB instance. Rows are never updated, only superseded."""

    __tablename__ = "tsp_instances"

    id: Mapped[int] = mapped_column(_BigId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, server_default="TSP")
    comment: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    dimension: Mapped[int] = mapped_column(Integer, nullable=False)
    edge_weight_type: Mapped[str] = mapped_column(String(32), nullable=False, server_default="EUC_2D")
    coordinates: Mapped[list[dict[str, Any]]] = mapped_column(_Json, nullable=False)
    distance_matrix: Mapped[list[list[float]]] = mapped_column(_Json, nullable=False)
    original_data: Mapped[str] = mapped_column(Text, nullable=False)
    generation: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


class Submission(Base):
    """One submitted tour. Append-only."""

    __tablename__ = "submissions"

    id: Mapped[int] = mapped_column(_BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    instance_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tsp_instances.id", ondelete="CASCADE"), nullable=False,
    )
    solution: Mapped[str] = mapped_column(Text, nullable=False)
    objective_value: Mapped[float] = mapped_column(Float, nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False, server_default="")
    is_valid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    user: Mapped[User] = relationship("User")


class UserBestResult(Base):
    """Per-user best result, derived from the submission history."""

    __tablename__ = "user_best_results"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
    )
    best_submission_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("submissions.id", ondelete="SET NULL"), nullable=True,
    )
    best_objective_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    best_method: Mapped[str] = mapped_column(String(16), nullable=False, server_default="")
    total_submissions: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_improvement_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped[User] = relationship("User", back_populates="best_result")


# ---------------------------------------------------------------------------
# System settings
# ---------------------------------------------------------------------------


class SystemSetting(Base):
    """Process-wide key/value configuration (active instance, ranking state, end date)."""

    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
