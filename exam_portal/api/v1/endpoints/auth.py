from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.api import deps
from exam_portal.core import security
from exam_portal.core.exceptions import ReferenceNotFound
from exam_portal.core.rate_limit import AUTH_LIMIT, limiter
from exam_portal.schemas.auth import (
    AccessVerifyRequest,
    AdminLoginRequest,
    SchoolLoginRequest,
    SchoolSession,
    SchoolSignupRequest,
    Token,
)
from exam_portal.schemas.responses import SuccessResponse
from exam_portal.services.access_pin_service import AccessPinService
from exam_portal.services.school_reference import SchoolReferenceCache
from exam_portal.services.school_service import SchoolService

router = APIRouter()


def _school_token(school) -> Token:
    return Token(
        access_token=security.create_school_token(
            lga_code=school.lga_code,
            school_code=school.school_code,
            school_name=school.school_name,
            school_id=str(school.id),
        ),
        school=SchoolSession(
            id=school.id,
            lga_code=school.lga_code,
            school_code=school.school_code,
            school_name=school.school_name,
            registration_open=school.registration_open,
        ),
    )


@router.post("/access/verify", response_model=SuccessResponse[Token])
@limiter.limit(AUTH_LIMIT)
async def verify_access_pin(
    request: Request,
    body: AccessVerifyRequest,
    db: AsyncSession = Depends(deps.get_db),
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    """
    Redeem an access PIN for a school listed in the reference dataset.
    The first school to use a PIN claims it.
    """
    try:
        entry = reference.require(body.lga_code, body.school_code)
    except ReferenceNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid LGA code or school code. Please check your credentials.",
        )

    await AccessPinService.verify(db, entry, body.access_pin)

    lga_code, school_code = entry.key
    school = await SchoolService.get_school_by_codes(db, lga_code, school_code)
    if school is not None:
        token = _school_token(school)
    else:
        token = Token(
            access_token=security.create_school_token(lga_code, school_code, entry.schName),
            school=SchoolSession(
                lga_code=lga_code,
                school_code=school_code,
                school_name=entry.schName,
                is_registered=False,
            ),
        )
    return SuccessResponse(data=token, message="Access granted")


@router.post("/school/signup", response_model=SuccessResponse[Token], status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
async def signup_school(
    request: Request,
    body: SchoolSignupRequest,
    db: AsyncSession = Depends(deps.get_db),
    reference: SchoolReferenceCache = Depends(deps.get_school_reference),
) -> Any:
    """Create the portal account for a school in the reference dataset."""
    try:
        entry = reference.require(body.lga_code, body.school_code)
    except ReferenceNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid LGA code or school code. Please verify your school details.",
        )

    lga_code, school_code = entry.key
    if await SchoolService.get_school_by_codes(db, lga_code, school_code):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This school is already registered. Please login instead.",
        )

    school = await SchoolService.create_school(db, entry, body.password)
    return SuccessResponse(data=_school_token(school), message="School registered successfully")


@router.post("/school/login", response_model=SuccessResponse[Token])
@limiter.limit(AUTH_LIMIT)
async def login_school(
    request: Request,
    body: SchoolLoginRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    school = await SchoolService.get_school_by_codes(db, body.lga_code, body.school_code)
    if school is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="School not registered. Please sign up first.",
        )
    if not security.verify_password(body.password, school.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect password. Please try again.",
        )
    return SuccessResponse(data=_school_token(school), message="Login successful")


@router.post("/admin/login", response_model=SuccessResponse[Token])
@limiter.limit(AUTH_LIMIT)
async def login_admin(request: Request, body: AdminLoginRequest) -> Any:
    if not security.verify_admin_credentials(body.username, body.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )
    return SuccessResponse(data=Token(access_token=security.create_admin_token(body.username)))
