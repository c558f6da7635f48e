from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field


class SchoolCredentials(BaseModel):
    lga_code: str = Field(..., min_length=1)
    school_code: str = Field(..., min_length=1)


class AccessVerifyRequest(SchoolCredentials):
    access_pin: str = Field(..., min_length=1)


class SchoolSignupRequest(SchoolCredentials):
    password: str = Field(..., min_length=6, description="At least 6 characters")


class SchoolLoginRequest(SchoolCredentials):
    password: str = Field(..., min_length=1)


class AdminLoginRequest(BaseModel):
    username: str
    password: str


class SchoolSession(BaseModel):
    id: Optional[UUID] = None
    lga_code: str
    school_code: str
    school_name: str
    is_registered: bool = True
    registration_open: Optional[bool] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    school: Optional[SchoolSession] = None
