from datetime import datetime
from typing import Annotated, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from exam_portal.models.enums import RegistrationMode

# Names are stored stripped; blank ones are rejected
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class RegistrationCreate(BaseModel):
    firstname: Name
    lastname: Name
    othername: Annotated[str, StringConstraints(strip_whitespace=True)] = ""
    gender: str
    school_type: str
    date_of_birth: Optional[str] = None
    passport: Optional[str] = None
    # subject -> {"term1": "...", "term2": "...", "term3": "...", ...}
    scores: Dict[str, Dict[str, str]] = Field(default_factory=dict)


class RegistrationUpdate(BaseModel):
    firstname: Optional[Name] = None
    lastname: Optional[Name] = None
    othername: Optional[str] = None
    gender: Optional[str] = None
    school_type: Optional[str] = None
    date_of_birth: Optional[str] = None
    passport: Optional[str] = None
    scores: Optional[Dict[str, Dict[str, str]]] = None


class RegistrationBatchCreate(BaseModel):
    registrations: List[RegistrationCreate] = Field(..., min_length=1)


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    acc_code: str
    student_number: Optional[str] = None
    firstname: str
    othername: str
    lastname: str
    gender: str
    school_type: str
    date_of_birth: Optional[str] = None
    passport: Optional[str] = None
    scores: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    created_at: datetime


class RegistrationBatchResult(BaseModel):
    mode: RegistrationMode
    created: int
    registrations: List[RegistrationResponse]
    warnings: List[str] = Field(default_factory=list)


class RenumberResult(BaseModel):
    updated: int
    registrations: List[RegistrationResponse]
    warnings: List[str] = Field(default_factory=list)


class PostRegistrationList(BaseModel):
    registrations: List[RegistrationResponse]
    max_sequence: int


class StudentName(BaseModel):
    firstname: str
    lastname: str
    othername: Optional[str] = None


class DuplicateCheckRequest(BaseModel):
    students: List[StudentName] = Field(..., min_length=1)


class DuplicateMatch(BaseModel):
    firstname: str
    lastname: str
    othername: str
    student_number: Optional[str] = None
    mode: RegistrationMode


class DuplicateCheckResult(BaseModel):
    has_duplicates: bool
    duplicates: List[DuplicateMatch]
