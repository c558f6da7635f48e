from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class SchoolStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lga_code: str
    school_code: str
    school_name: str
    registration_open: bool


class RegistrationStatusUpdate(BaseModel):
    """Set (``registration_open`` given) or toggle one school, or set all schools."""
    school_id: Optional[UUID] = None
    registration_open: Optional[bool] = None
    toggle_all: bool = False


class RegistrationStatusResult(BaseModel):
    message: str
    schools: List[SchoolStatusResponse]


class SchoolReferenceSchema(BaseModel):
    """Reference dataset row; field names follow the dataset file"""
    model_config = ConfigDict(from_attributes=True)

    lgaCode: str = Field(..., min_length=1)
    lCode: str = Field(..., min_length=1)
    schCode: str = Field(..., min_length=1)
    progID: str = Field(..., min_length=1)
    schName: str = Field(..., min_length=1)
    id: str = Field(..., min_length=1)
