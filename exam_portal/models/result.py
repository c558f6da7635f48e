"""Published examination results"""

from sqlalchemy import Boolean, Column, JSON, String, Text

from exam_portal.models.base import BaseModel


class ExamResult(BaseModel):
    """
    One candidate's result, keyed by examination number.

    Not linked to a registration row: results are loaded after the exam and
    may outlive the registration that produced the number.
    """
    __tablename__ = "results"

    exam_number = Column(String(20), unique=True, nullable=False, index=True)
    session_year = Column(String(9), nullable=False, index=True)

    firstname = Column(String(255), nullable=False, default="")
    othername = Column(String(255), nullable=False, default="")
    lastname = Column(String(255), nullable=False, default="")
    gender = Column(String(10), nullable=True)

    lga_code = Column(String(20), nullable=True, index=True)
    school_code = Column(String(20), nullable=True, index=True)
    school_name = Column(String(255), nullable=True)

    # {"english": {"score": 67.0, "grade": "B"}, ...}
    subjects = Column(JSON, nullable=False, default=dict)
    remark = Column(Text, nullable=True)

    # Card PIN printed for the candidate; lookups must present it
    access_pin = Column(String(16), nullable=True)
    blocked = Column(Boolean, default=False, nullable=False, index=True)
