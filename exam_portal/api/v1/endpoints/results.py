from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.api import deps
from exam_portal.core.rate_limit import AUTH_LIMIT, limiter
from exam_portal.schemas.responses import SuccessResponse
from exam_portal.schemas.result import ResultPublic
from exam_portal.services.result_service import ResultService

router = APIRouter()


@router.get("", response_model=SuccessResponse[ResultPublic])
@limiter.limit(AUTH_LIMIT)
async def lookup_result(
    request: Request,
    exam_number: str = Query(..., min_length=1, max_length=20),
    pin: str = Query(..., min_length=1, max_length=16),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Candidate result lookup by examination number and the PIN on the result card."""
    row = await ResultService.lookup(db, exam_number, pin)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No result found with the provided credentials.",
        )
    if row.blocked:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This result has been withheld. Please contact the examination office.",
        )
    return SuccessResponse(data=ResultPublic.model_validate(row))
