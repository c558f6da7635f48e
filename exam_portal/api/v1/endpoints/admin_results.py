import math
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.api import deps
from exam_portal.schemas.responses import PaginationMeta, SuccessResponse
from exam_portal.schemas.result import (
    ResultCreate,
    ResultFilters,
    ResultPage,
    ResultRelease,
    ResultReleaseResult,
    ResultResponse,
    ResultUpdate,
)
from exam_portal.services.result_service import ResultService

router = APIRouter(dependencies=[Depends(deps.require_admin)])

_NOT_FOUND = "Result not found."
_DUPLICATE = "A result with this examination number already exists."


async def _get_or_404(db: AsyncSession, result_id: UUID):
    row = await ResultService.get_result(db, result_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return row


@router.get("", response_model=ResultPage)
async def list_results(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    search: str = Query("", max_length=100),
    session_year: Optional[str] = None,
    lga_code: Optional[str] = None,
    school_code: Optional[str] = None,
    blocked: Optional[bool] = None,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    skip = (page - 1) * page_size
    rows, total = await ResultService.list_results(
        db,
        skip=skip,
        limit=page_size,
        search=search,
        session_year=session_year,
        lga_code=lga_code,
        school_code=school_code,
        blocked=blocked,
    )
    session_years, lga_codes = await ResultService.filter_options(db)
    return ResultPage(
        data=[ResultResponse.model_validate(r) for r in rows],
        meta=PaginationMeta(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size),
        ),
        filters=ResultFilters(session_years=session_years, lga_codes=lga_codes),
    )


@router.post("", response_model=SuccessResponse[ResultResponse], status_code=status.HTTP_201_CREATED)
async def create_result(body: ResultCreate, db: AsyncSession = Depends(deps.get_db)) -> Any:
    if await ResultService.get_by_exam_number(db, body.exam_number) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_DUPLICATE)
    row = await ResultService.create_result(db, body)
    return SuccessResponse(data=ResultResponse.model_validate(row), message="Result created")


@router.post("/release", response_model=SuccessResponse[ResultReleaseResult])
async def release_results(body: ResultRelease, db: AsyncSession = Depends(deps.get_db)) -> Any:
    """Release every result to candidates, or withhold them all."""
    updated = await ResultService.set_released(db, body.released)
    verb = "released" if body.released else "withheld"
    return SuccessResponse(
        data=ResultReleaseResult(released=body.released, updated=updated),
        message=f"All results {verb}",
    )


@router.get("/{result_id}", response_model=SuccessResponse[ResultResponse])
async def get_result(result_id: UUID, db: AsyncSession = Depends(deps.get_db)) -> Any:
    row = await _get_or_404(db, result_id)
    return SuccessResponse(data=ResultResponse.model_validate(row))


@router.patch("/{result_id}", response_model=SuccessResponse[ResultResponse])
async def update_result(
    result_id: UUID,
    body: ResultUpdate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    row = await _get_or_404(db, result_id)
    if body.exam_number and body.exam_number != row.exam_number:
        if await ResultService.get_by_exam_number(db, body.exam_number) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_DUPLICATE)
    row = await ResultService.update_result(db, row, body)
    return SuccessResponse(data=ResultResponse.model_validate(row), message="Result updated")


@router.delete("/{result_id}", response_model=SuccessResponse)
async def delete_result(result_id: UUID, db: AsyncSession = Depends(deps.get_db)) -> Any:
    row = await _get_or_404(db, result_id)
    exam_number = row.exam_number
    await ResultService.delete_result(db, row)
    return SuccessResponse(data={"id": str(result_id), "exam_number": exam_number}, message="Result deleted")
