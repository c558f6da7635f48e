"""Registered schools"""

from sqlalchemy import Boolean, Column, String, UniqueConstraint

from exam_portal.models.base import BaseModel
from exam_portal.models.enums import RegistrationMode


class School(BaseModel):
    """
    A school that signed up on the portal.

    ``lga_code``/``school_code`` identify the school in the reference dataset;
    ``registration_open`` selects the numbering mode for new learners.
    """
    __tablename__ = "schools"
    __table_args__ = (
        UniqueConstraint("lga_code", "school_code", name="uq_schools_lga_school"),
    )

    lga_code = Column(String(20), nullable=False, index=True)
    school_code = Column(String(20), nullable=False)
    school_name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    registration_open = Column(Boolean, default=True, nullable=False)

    @property
    def registration_mode(self) -> RegistrationMode:
        return RegistrationMode.REGULAR if self.registration_open else RegistrationMode.LATE
