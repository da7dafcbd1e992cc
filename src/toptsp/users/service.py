"""Participant management."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.db.models import User, UserBestResult
from toptsp.errors import NotFoundError, StorageError
from toptsp.submissions.tracker import delete_user_results

logger = structlog.get_logger()


def split_emails(raw: str) -> list[str]:
    """Split a ``;``-separated list, dropping blanks."""
    return [e.strip() for e in raw.split(";") if e.strip()]


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def create_users(db: AsyncSession, emails: list[str], *, is_admin: bool = False) -> tuple[int, list[str]]:
    """Create one participant per email. Returns (created count, per-email errors)."""
    created = 0
    errors: list[str] = []
    seen: set[str] = set()
    for email in emails:
        key = email.lower()
        if key in seen or await get_user_by_email(db, email) is not None:
            errors.append(f"User {email} already exists")
            continue
        seen.add(key)
        db.add(User(email=email, is_admin=is_admin))
        created += 1
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("Error creating users") from exc
    logger.info("users_created", created=created, errors=len(errors))
    return created, errors


async def list_participants(db: AsyncSession) -> list[dict[str, Any]]:
    """Non-admin users with their current best value, by email."""
    result = await db.execute(
        select(User, UserBestResult.best_objective_value, UserBestResult.last_improvement_at)
        .outerjoin(UserBestResult, UserBestResult.user_id == User.id)
        .where(User.is_admin.is_(False))
        .order_by(User.email)
    )
    return [
        {
            "id": user.id,
            "email": user.email,
            "best_objective_value": best_value,
            "last_improvement_at": last_improvement,
        }
        for user, best_value, last_improvement in result.all()
    ]


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """Delete a participant together with their submissions and best result."""
    user = await get_user_by_id(db, user_id)
    if user is None or user.is_admin:
        raise NotFoundError("User not found")
    try:
        await delete_user_results(db, user_id)
        await db.delete(user)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("Error deleting user") from exc
    logger.info("user_deleted", user_id=user_id)
