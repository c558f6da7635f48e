from typing import Any, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.api import deps
from exam_portal.models.school import School
from exam_portal.schemas.auth import SchoolSession
from exam_portal.schemas.registration import (
    DuplicateCheckRequest,
    DuplicateCheckResult,
    DuplicateMatch,
    PostRegistrationList,
    RegistrationBatchCreate,
    RegistrationBatchResult,
    RegistrationResponse,
    RegistrationUpdate,
    RenumberResult,
)
from exam_portal.schemas.responses import SuccessResponse
from exam_portal.services.registration_service import RegistrationService
from exam_portal.services.school_reference import SchoolReferenceCache
from exam_portal.services.school_service import SchoolService

router = APIRouter()

_NOT_FOUND = "Registration not found or not owned by this school."


def _serialize(rows) -> List[RegistrationResponse]:
    return [RegistrationResponse.model_validate(row) for row in rows]


@router.get("/registrations", response_model=SuccessResponse[List[RegistrationResponse]])
async def list_registrations(
    school: School = Depends(deps.get_current_school),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    rows = await RegistrationService.list_registrations(db, school.id)
    return SuccessResponse(data=_serialize(rows))


@router.post(
    "/registrations",
    response_model=SuccessResponse[RegistrationBatchResult],
    status_code=status.HTTP_201_CREATED,
)
async def create_registrations(
    body: RegistrationBatchCreate,
    school: School = Depends(deps.get_current_school),
    db: AsyncSession = Depends(deps.get_db),
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    """
    Register learners. While the registration window is open they join the
    regular roster and every student number is recomputed alphabetically;
    once closed they are added as late registrations with incremental numbers.
    """
    mode, rows, warnings = await RegistrationService.register_students(
        db, school, body.registrations, reference
    )
    return SuccessResponse(
        data=RegistrationBatchResult(
            mode=mode,
            created=len(rows),
            registrations=_serialize(rows),
            warnings=warnings,
        ),
        message="Registrations saved successfully",
    )


@router.patch("/registrations/{registration_id}", response_model=SuccessResponse[RegistrationResponse])
async def update_registration(
    registration_id: UUID,
    body: RegistrationUpdate,
    school: School = Depends(deps.get_current_school),
    db: AsyncSession = Depends(deps.get_db),
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    row, warnings = await RegistrationService.update_registration(
        db, school, registration_id, body, reference
    )
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    message = "Registration updated." + "".join(f" {w}" for w in warnings)
    return SuccessResponse(data=RegistrationResponse.model_validate(row), message=message)


@router.delete("/registrations/{registration_id}", response_model=SuccessResponse)
async def delete_registration(
    registration_id: UUID,
    school: School = Depends(deps.get_current_school),
    db: AsyncSession = Depends(deps.get_db),
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    deleted, warnings = await RegistrationService.delete_registration(
        db, school, registration_id, reference
    )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return SuccessResponse(data={"id": str(registration_id), "warnings": warnings}, message="Registration deleted.")


@router.post("/registrations/renumber", response_model=SuccessResponse[RenumberResult])
async def renumber_registrations(
    school: School = Depends(deps.get_current_school),
    db: AsyncSession = Depends(deps.get_db),
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    updated, warnings = await RegistrationService.renumber_school(db, school, reference)
    rows = await RegistrationService.list_registrations(db, school.id)
    return SuccessResponse(
        data=RenumberResult(updated=updated, registrations=_serialize(rows), warnings=warnings)
    )


@router.post("/registrations/finish", response_model=SuccessResponse[SchoolSession])
async def finish_registration(
    school: School = Depends(deps.get_current_school),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Close the registration window; later learners are numbered incrementally."""
    school = await SchoolService.set_registration_open(db, school, False)
    return SuccessResponse(
        data=SchoolSession(
            id=school.id,
            lga_code=school.lga_code,
            school_code=school.school_code,
            school_name=school.school_name,
            registration_open=school.registration_open,
        ),
        message="Registration finished. Student numbers are now frozen.",
    )


@router.post("/check-duplicate", response_model=SuccessResponse[DuplicateCheckResult])
async def check_duplicate(
    body: DuplicateCheckRequest,
    school: School = Depends(deps.get_current_school),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    matches = await RegistrationService.find_duplicates(db, school.id, body.students)
    duplicates = [
        DuplicateMatch(
            firstname=row.firstname,
            lastname=row.lastname,
            othername=row.othername or "",
            student_number=row.student_number,
            mode=mode,
        )
        for row, mode in matches
    ]
    return SuccessResponse(
        data=DuplicateCheckResult(has_duplicates=bool(duplicates), duplicates=duplicates)
    )


@router.get("/post-registrations", response_model=SuccessResponse[PostRegistrationList])
async def list_post_registrations(
    school: School = Depends(deps.get_current_school),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    rows = await RegistrationService.list_registrations(db, school.id, late=True)
    max_sequence = await RegistrationService.max_sequence(db, school)
    return SuccessResponse(
        data=PostRegistrationList(registrations=_serialize(rows), max_sequence=max_sequence)
    )


@router.patch("/post-registrations/{registration_id}", response_model=SuccessResponse[RegistrationResponse])
async def update_post_registration(
    registration_id: UUID,
    body: RegistrationUpdate,
    school: School = Depends(deps.get_current_school),
    db: AsyncSession = Depends(deps.get_db),
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    row, _ = await RegistrationService.update_registration(
        db, school, registration_id, body, reference, late=True
    )
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return SuccessResponse(data=RegistrationResponse.model_validate(row), message="Registration updated.")


@router.delete("/post-registrations/{registration_id}", response_model=SuccessResponse)
async def delete_post_registration(
    registration_id: UUID,
    school: School = Depends(deps.get_current_school),
    db: AsyncSession = Depends(deps.get_db),
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    deleted, _ = await RegistrationService.delete_registration(
        db, school, registration_id, reference, late=True
    )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return SuccessResponse(data={"id": str(registration_id)}, message="Registration deleted.")
