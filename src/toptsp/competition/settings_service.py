"""Key/value system settings.

Holds the process-wide competition configuration: the active instance
pointer, the ranking state (frozen flag plus snapshot), the optional end date
and the display name of the instance.
"""

from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.config import get_settings
from toptsp.db.models import SystemSetting
from toptsp.errors import StorageError

logger = structlog.get_logger()

CURRENT_INSTANCE_KEY = "current_tsp_instance"
RANKING_STATE_KEY = "ranking_state"
END_DATE_KEY = "competition_end_date"
INSTANCE_NAME_KEY = "instance_name"


async def get_config(db: AsyncSession, key: str) -> str | None:
    result = await db.execute(select(SystemSetting.value).where(SystemSetting.key == key))
    return result.scalar_one_or_none()


async def set_config(db: AsyncSession, key: str, value: str) -> None:
    await db.merge(SystemSetting(key=key, value=value))
    await db.flush()


async def get_all_settings(db: AsyncSession) -> dict[str, str]:
    result = await db.execute(select(SystemSetting).order_by(SystemSetting.key))
    return {row.key: row.value for row in result.scalars()}


async def ensure_defaults(db: AsyncSession) -> None:
    """Insert default values for settings that are not present yet."""
    defaults = {
        END_DATE_KEY: "",
        INSTANCE_NAME_KEY: get_settings().default_instance_name,
    }
    existing = await get_all_settings(db)
    for key, value in defaults.items():
        if key not in existing:
            db.add(SystemSetting(key=key, value=value))
    await db.commit()


# ---------------------------------------------------------------------------
# Competition window
# ---------------------------------------------------------------------------


async def get_end_date(db: AsyncSession) -> datetime | None:
    raw = await get_config(db, END_DATE_KEY)
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("invalid_end_date_setting", value=raw)
        return None


async def set_end_date(db: AsyncSession, end_at: datetime | None) -> None:
    try:
        await set_config(db, END_DATE_KEY, end_at.isoformat() if end_at else "")
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("Error saving end date") from exc
    logger.info("end_date_updated", end_at=end_at.isoformat() if end_at else None)


# ---------------------------------------------------------------------------
# Instance display name
# ---------------------------------------------------------------------------


async def get_instance_name(db: AsyncSession) -> str:
    return await get_config(db, INSTANCE_NAME_KEY) or get_settings().default_instance_name


async def set_instance_name(db: AsyncSession, name: str | None) -> str:
    value = (name or "").strip() or get_settings().default_instance_name
    try:
        await set_config(db, INSTANCE_NAME_KEY, value)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StorageError("Error saving instance name") from exc
    logger.info("instance_name_updated", instance_name=value)
    return value
