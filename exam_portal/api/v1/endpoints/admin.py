import math
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.api import deps
from exam_portal.schemas.admin import AdminStudentResponse, PasswordResetRequest, PortalStats
from exam_portal.schemas.responses import PaginatedResponse, PaginationMeta, SuccessResponse
from exam_portal.schemas.school import (
    RegistrationStatusResult,
    RegistrationStatusUpdate,
    SchoolReferenceSchema,
    SchoolStatusResponse,
)
from exam_portal.services.registration_service import RegistrationService
from exam_portal.services.result_service import ResultService
from exam_portal.services.school_reference import SchoolReferenceCache, SchoolReferenceEntry
from exam_portal.services.school_service import SchoolService

router = APIRouter(dependencies=[Depends(deps.require_admin)])


@router.get("/registration-status", response_model=SuccessResponse[List[SchoolStatusResponse]])
async def get_registration_status(db: AsyncSession = Depends(deps.get_db)) -> Any:
    schools = await SchoolService.list_schools(db)
    return SuccessResponse(data=[SchoolStatusResponse.model_validate(s) for s in schools])


@router.post("/registration-status", response_model=SuccessResponse[RegistrationStatusResult])
async def update_registration_status(
    body: RegistrationStatusUpdate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Open or close registration windows.

    ``toggle_all`` applies ``registration_open`` to every school. For a single
    school, an omitted ``registration_open`` flips the current value.
    Reopening starts a new registration cycle for that school.
    """
    if body.toggle_all:
        if body.registration_open is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="registration_open must be a boolean when toggle_all is true",
            )
        schools = await SchoolService.set_registration_open_for_all(db, body.registration_open)
        verb = "opened" if body.registration_open else "closed"
        return SuccessResponse(
            data=RegistrationStatusResult(
                message=f"Registration {verb} for all schools",
                schools=[SchoolStatusResponse.model_validate(s) for s in schools],
            )
        )

    if body.school_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="school_id is required when toggle_all is not true",
        )
    school = await SchoolService.get_school_by_id(db, body.school_id)
    if school is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")

    is_open = body.registration_open if body.registration_open is not None else not school.registration_open
    school = await SchoolService.set_registration_open(db, school, is_open)
    verb = "opened" if is_open else "closed"
    return SuccessResponse(
        data=RegistrationStatusResult(
            message=f"Registration {verb} for {school.school_name}",
            schools=[SchoolStatusResponse.model_validate(school)],
        )
    )


@router.get("/school-references", response_model=SuccessResponse[List[SchoolReferenceSchema]])
async def search_school_references(
    search: str = Query("", max_length=100),
    limit: int = Query(50, ge=1, le=500),
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    entries = reference.search(search)[:limit]
    return SuccessResponse(data=[SchoolReferenceSchema.model_validate(e) for e in entries])


@router.post("/school-references", response_model=SuccessResponse[SchoolReferenceSchema])
async def upsert_school_reference(
    body: SchoolReferenceSchema,
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    """Add or replace a reference dataset row (matched by ``id``)."""
    entry = reference.upsert(SchoolReferenceEntry(**body.model_dump()))
    return SuccessResponse(data=SchoolReferenceSchema.model_validate(entry), message="School reference saved")


@router.get("/students", response_model=PaginatedResponse[AdminStudentResponse])
async def list_students(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(100, ge=1, le=1000, description="Items per page"),
    search: str = Query("", max_length=100),
    lga_code: Optional[str] = None,
    school_code: Optional[str] = None,
    late: Optional[bool] = None,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Registrations across every school; ``late`` picks one table, omitted lists both."""
    skip = (page - 1) * page_size
    rows, total = await RegistrationService.search_registrations(
        db,
        skip=skip,
        limit=page_size,
        search=search,
        lga_code=lga_code,
        school_code=school_code,
        late=late,
    )
    return PaginatedResponse(
        data=[AdminStudentResponse.model_validate(r) for r in rows],
        meta=PaginationMeta(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size),
        ),
    )


@router.delete("/students/{registration_id}", response_model=SuccessResponse)
async def delete_student(
    registration_id: UUID,
    late: bool = False,
    db: AsyncSession = Depends(deps.get_db),
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    """Remove a registration from any school; an open regular roster is renumbered."""
    row = await RegistrationService.find_registration(db, registration_id, late)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")
    school = await SchoolService.get_school_by_id(db, row.school_id)
    _, warnings = await RegistrationService.delete_registration(db, school, registration_id, reference, late)
    return SuccessResponse(data={"id": str(registration_id), "warnings": warnings}, message="Registration deleted")


@router.post("/reset-password", response_model=SuccessResponse[SchoolStatusResponse])
async def reset_school_password(
    body: PasswordResetRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    school = await SchoolService.get_school_by_codes(db, body.lga_code, body.school_code)
    if school is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="School not found with the provided LGA code and school code",
        )
    school = await SchoolService.reset_password(db, school, body.new_password)
    return SuccessResponse(data=SchoolStatusResponse.model_validate(school), message="Password reset successfully")


@router.get("/stats", response_model=SuccessResponse[PortalStats])
async def get_stats(db: AsyncSession = Depends(deps.get_db)) -> Any:
    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    stats = PortalStats(
        schools=await SchoolService.count_schools(db),
        students=await RegistrationService.count_registrations(db),
        late_students=await RegistrationService.count_registrations(db, late=True),
        results=await ResultService.count_results(db),
        blocked_results=await ResultService.count_results(db, blocked=True),
        registrations_today=(
            await RegistrationService.count_registrations(db, since=today)
            + await RegistrationService.count_registrations(db, late=True, since=today)
        ),
    )
    return SuccessResponse(data=stats)
