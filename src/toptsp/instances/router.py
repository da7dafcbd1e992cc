"""TSP instance endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from toptsp.database import get_session
from toptsp.dependencies import require_admin
from toptsp.errors import NotFoundError
from toptsp.instances.schemas import (
    CurrentInstanceCoordsResponse,
    CurrentInstanceResponse,
    InstanceSummary,
    InstanceWithCoordinates,
    UploadInstanceRequest,
    UploadInstanceResponse,
)
from toptsp.instances.service import get_active_instance, upload_instance

router = APIRouter(prefix="/api/v1", tags=["Instances"])


@router.post(
    "/admin/instances",
    response_model=UploadInstanceResponse,
    dependencies=[Depends(require_admin)],
)
async def upload(
    body: UploadInstanceRequest,
    db: AsyncSession = Depends(get_session),
):
    """Parse a TSPLIB instance and make it the active one."""
    instance = await upload_instance(db, body.tsp_data, replace_existing=body.replace_existing)
    return UploadInstanceResponse(instance_id=instance.id, cleared=body.replace_existing)


@router.get("/instances/current", response_model=CurrentInstanceResponse)
async def current_instance(db: AsyncSession = Depends(get_session)):
    """Summary of the active instance, if there is one."""
    instance = await get_active_instance(db)
    if instance is None:
        return CurrentInstanceResponse(has_instance=False)
    return CurrentInstanceResponse(
        has_instance=True,
        instance=InstanceSummary.model_validate(instance, from_attributes=True),
    )


@router.get("/instances/current/coordinates", response_model=CurrentInstanceCoordsResponse)
async def current_instance_coordinates(db: AsyncSession = Depends(get_session)):
    """Active instance with its node coordinates, for drawing tours."""
    instance = await get_active_instance(db)
    if instance is None:
        return CurrentInstanceCoordsResponse(has_instance=False)
    return CurrentInstanceCoordsResponse(
        has_instance=True,
        instance=InstanceWithCoordinates.model_validate(instance, from_attributes=True),
    )


@router.get("/instances/current/download", response_class=PlainTextResponse)
async def download_instance(db: AsyncSession = Depends(get_session)):
    """The active instance exactly as it was uploaded."""
    instance = await get_active_instance(db)
    if instance is None:
        raise NotFoundError("No current TSP instance found")
    filename = "_".join(instance.name.split()) + ".txt"
    return PlainTextResponse(
        instance.original_data,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
