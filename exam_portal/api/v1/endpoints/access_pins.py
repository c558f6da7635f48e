from typing import Any, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.api import deps
from exam_portal.schemas.access_pin import (
    AccessPinBatchResponse,
    AccessPinGenerateRequest,
    AccessPinResponse,
)
from exam_portal.schemas.responses import SuccessResponse
from exam_portal.services.access_pin_service import AccessPinService

router = APIRouter(dependencies=[Depends(deps.require_admin)])


@router.get("", response_model=SuccessResponse[List[AccessPinResponse]])
async def list_access_pins(
    active_only: bool = Query(False, alias="activeOnly"),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    pins = await AccessPinService.list_pins(db, active_only=active_only)
    return SuccessResponse(data=[AccessPinResponse.model_validate(p) for p in pins])


@router.post("", response_model=SuccessResponse[AccessPinBatchResponse])
async def generate_access_pins(
    body: AccessPinGenerateRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Generate between 1 and 1000 unclaimed access PINs.
    A short batch is reported through ``shortfall`` rather than silently truncated.
    """
    batch, pins = await AccessPinService.generate(db, body.count)
    message = f"Successfully generated {len(pins)} access PIN(s)"
    if not batch.complete:
        message += f"; {batch.shortfall} could not be generated"
    return SuccessResponse(
        data=AccessPinBatchResponse(
            requested=batch.requested,
            count=len(pins),
            shortfall=batch.shortfall,
            pins=[AccessPinResponse.model_validate(p) for p in pins],
        ),
        message=message,
    )


@router.delete("/{pin_id}", response_model=SuccessResponse[AccessPinResponse])
async def deactivate_access_pin(pin_id: UUID, db: AsyncSession = Depends(deps.get_db)) -> Any:
    pin = await AccessPinService.set_active(db, pin_id, False)
    return SuccessResponse(data=AccessPinResponse.model_validate(pin), message="PIN deactivated successfully")


@router.patch("/{pin_id}", response_model=SuccessResponse[AccessPinResponse])
async def reactivate_access_pin(pin_id: UUID, db: AsyncSession = Depends(deps.get_db)) -> Any:
    pin = await AccessPinService.set_active(db, pin_id, True)
    return SuccessResponse(data=AccessPinResponse.model_validate(pin), message="PIN reactivated successfully")
