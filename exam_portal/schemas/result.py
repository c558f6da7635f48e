from datetime import datetime
from typing import Annotated, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator

from exam_portal.schemas.responses import PaginatedResponse

ExamNumber = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=20)]
SessionYear = Annotated[str, StringConstraints(strip_whitespace=True, min_length=4, max_length=9)]


class SubjectResult(BaseModel):
    score: Optional[float] = Field(None, ge=0, le=100)
    grade: Optional[str] = Field(None, max_length=5)


class ResultCreate(BaseModel):
    exam_number: ExamNumber
    session_year: SessionYear
    firstname: str = ""
    othername: str = ""
    lastname: str = ""
    gender: Optional[str] = None
    lga_code: Optional[str] = None
    school_code: Optional[str] = None
    school_name: Optional[str] = None
    subjects: Dict[str, SubjectResult] = Field(default_factory=dict)
    remark: Optional[str] = None
    access_pin: Optional[str] = Field(None, max_length=16)
    blocked: bool = False

    @model_validator(mode="after")
    def require_a_name(self) -> "ResultCreate":
        if not (self.firstname.strip() or self.lastname.strip()):
            raise ValueError("At least one of firstname or lastname is required")
        return self


class ResultUpdate(BaseModel):
    exam_number: Optional[ExamNumber] = None
    session_year: Optional[SessionYear] = None
    firstname: Optional[str] = None
    othername: Optional[str] = None
    lastname: Optional[str] = None
    gender: Optional[str] = None
    lga_code: Optional[str] = None
    school_code: Optional[str] = None
    school_name: Optional[str] = None
    subjects: Optional[Dict[str, SubjectResult]] = None
    remark: Optional[str] = None
    access_pin: Optional[str] = Field(None, max_length=16)
    blocked: Optional[bool] = None


class ResultPublic(BaseModel):
    """What a candidate sees; the card PIN and block flag stay server-side"""
    model_config = ConfigDict(from_attributes=True)

    exam_number: str
    session_year: str
    firstname: str
    othername: str
    lastname: str
    gender: Optional[str] = None
    lga_code: Optional[str] = None
    school_code: Optional[str] = None
    school_name: Optional[str] = None
    subjects: Dict[str, SubjectResult] = Field(default_factory=dict)
    remark: Optional[str] = None


class ResultResponse(ResultPublic):
    id: UUID
    access_pin: Optional[str] = None
    blocked: bool
    created_at: datetime


class ResultFilters(BaseModel):
    session_years: List[str]
    lga_codes: List[str]


class ResultPage(PaginatedResponse[ResultResponse]):
    filters: ResultFilters


class ResultRelease(BaseModel):
    released: bool


class ResultReleaseResult(BaseModel):
    released: bool
    updated: int
