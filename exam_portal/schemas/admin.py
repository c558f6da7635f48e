from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from exam_portal.schemas.auth import SchoolCredentials


class AdminStudentResponse(BaseModel):
    """A registration from either table, with its school's identity"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    late: bool
    acc_code: str
    student_number: Optional[str] = None
    firstname: str
    othername: str
    lastname: str
    gender: str
    school_type: str
    lga_code: str
    school_code: str
    school_name: str
    created_at: datetime


class PasswordResetRequest(SchoolCredentials):
    new_password: str = Field(..., min_length=6, description="At least 6 characters")


class PortalStats(BaseModel):
    schools: int
    students: int
    late_students: int
    results: int
    blocked_results: int
    registrations_today: int
