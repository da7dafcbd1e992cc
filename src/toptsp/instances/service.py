"""Active TSP instance storage.

Uploading with ``replace_existing`` is an epoch transition: in one
transaction every submission and best result is deleted, the new instance is
stored with the next generation number and becomes the active one. Either all
of it happens or none of it does.
"""

from __future__ import annotations

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.competition.settings_service import CURRENT_INSTANCE_KEY, get_config, set_config
from toptsp.db.models import TspInstance
from toptsp.errors import NoInstanceError, StorageError
from toptsp.instances.parser import ParsedInstance, parse_tsplib
from toptsp.submissions.tracker import wipe_all

logger = structlog.get_logger()


async def get_active_instance(db: AsyncSession) -> TspInstance | None:
    """Return the instance the active pointer refers to, if any."""
    raw = await get_config(db, CURRENT_INSTANCE_KEY)
    if not raw:
        return None
    try:
        instance_id = int(raw)
    except ValueError:
        logger.warning("invalid_active_instance_pointer", value=raw)
        return None
    result = await db.execute(select(TspInstance).where(TspInstance.id == instance_id))
    return result.scalar_one_or_none()


async def require_active_instance(db: AsyncSession) -> TspInstance:
    instance = await get_active_instance(db)
    if instance is None:
        raise NoInstanceError()
    return instance


async def _current_generation(db: AsyncSession) -> int:
    result = await db.execute(select(func.max(TspInstance.generation)))
    return result.scalar_one_or_none() or 0


async def put_instance(db: AsyncSession, parsed: ParsedInstance, *, replace_existing: bool) -> TspInstance:
    """Store ``parsed`` and make it the active instance."""
    try:
        generation = await _current_generation(db)
        # Submissions survive a plain upload, so they stay in the current generation.
        if replace_existing or generation == 0:
            generation += 1
        if replace_existing:
            await wipe_all(db)

        instance = TspInstance(
            name=parsed.name,
            type=parsed.type,
            comment=parsed.comment,
            dimension=parsed.dimension,
            edge_weight_type=parsed.edge_weight_type,
            coordinates=[c.as_dict() for c in parsed.coordinates],
            distance_matrix=parsed.distance_matrix,
            original_data=parsed.original_text,
            generation=generation,
        )
        db.add(instance)
        await db.flush()
        await set_config(db, CURRENT_INSTANCE_KEY, str(instance.id))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("instance_store_failed", error=str(exc))
        raise StorageError("Could not store the TSP instance") from exc

    logger.info(
        "instance_uploaded",
        instance_id=instance.id,
        name=instance.name,
        dimension=instance.dimension,
        generation=instance.generation,
        cleared=replace_existing,
    )
    return instance


async def upload_instance(db: AsyncSession, raw_text: str, *, replace_existing: bool) -> TspInstance:
    """Parse TSPLIB text and activate it."""
    parsed = parse_tsplib(raw_text)
    return await put_instance(db, parsed, replace_existing=replace_existing)
