"""Shared FastAPI dependencies.

Authentication happens upstream: the gateway in front of the API verifies the
participant's session and forwards their id as ``X-User-Id``. Administrative
routes additionally require the shared ``X-Admin-Token``.
"""

from __future__ import annotations

import secrets

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.config import get_settings
from toptsp.database import get_session
from toptsp.db.models import User
from toptsp.errors import AdminRequiredError, AuthRequiredError
from toptsp.users.service import get_user_by_id


async def get_current_user(
    x_user_id: str | None = Header(None),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the participant named by ``X-User-Id``."""
    if not x_user_id or not x_user_id.strip().isdigit():
        raise AuthRequiredError()
    user = await get_user_by_id(db, int(x_user_id))
    if user is None:
        raise AuthRequiredError("User not found")
    return user


async def require_admin(x_admin_token: str | None = Header(None)) -> None:
    """Reject requests without the configured admin token."""
    expected = get_settings().admin_token
    if not x_admin_token or not secrets.compare_digest(x_admin_token.encode(), expected.encode()):
        raise AdminRequiredError()
