"""API Dependencies"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from exam_portal.core.security import ROLE_ADMIN, ROLE_SCHOOL, decode_token
from exam_portal.database import get_db
from exam_portal.models.school import School
from exam_portal.services.school_reference import SchoolReferenceCache
from exam_portal.services.school_service import SchoolService

# Security scheme for bearer token
security = HTTPBearer()

__all__ = ["get_db", "get_school_reference", "get_token_payload", "get_current_school", "require_admin"]


def get_school_reference(request: Request) -> SchoolReferenceCache:
    """The reference cache constructed at app start-up (overridable in tests)."""
    return request.app.state.school_reference


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """Decoded access token, or 401."""
    payload = decode_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token. Please login again.")
    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type")
    return payload


async def get_current_school(
    db: AsyncSession = Depends(get_db),
    payload: dict = Depends(get_token_payload),
) -> School:
    """
    Registered school behind the bearer token.

    Access-PIN tokens issued before sign-up carry no ``school_id`` and are
    rejected here.
    """
    if payload.get("role") != ROLE_SCHOOL:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="School session required")

    school_id_str: Optional[str] = payload.get("school_id")
    if not school_id_str:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="School not registered. Please sign up first.",
        )
    try:
        school_id = UUID(school_id_str)
    except ValueError:
        raise _unauthorized("Invalid school ID")

    school = await SchoolService.get_school_by_id(db, school_id)
    if school is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")
    return school


async def require_admin(payload: dict = Depends(get_token_payload)) -> dict:
    if payload.get("role") != ROLE_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
    return payload
