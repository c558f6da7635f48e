"""Student registrations (regular and late tables)"""

from sqlalchemy import Column, JSON, String, Text

from exam_portal.models.base import BaseModel, SchoolScopedMixin


class RegistrationFieldsMixin:
    """Columns shared by the regular and late registration tables"""

    acc_code = Column(String(10), unique=True, nullable=False, index=True)
    # NULL only when the school's numbering prefix could not be resolved
    student_number = Column(String(20), nullable=True, index=True)

    firstname = Column(String(255), nullable=False)
    othername = Column(String(255), nullable=False, default="")
    lastname = Column(String(255), nullable=False)
    gender = Column(String(10), nullable=False)
    school_type = Column(String(50), nullable=False)
    date_of_birth = Column(String(20), nullable=True)
    passport = Column(Text, nullable=True)

    # {"english": {"term1": "A", ...}, "religious": {"type": "CRS", ...}}
    scores = Column(JSON, nullable=False, default=dict)


class StudentRegistration(BaseModel, SchoolScopedMixin, RegistrationFieldsMixin):
    """Registered while the school's registration window was open"""
    __tablename__ = "student_registrations"


class PostRegistration(BaseModel, SchoolScopedMixin, RegistrationFieldsMixin):
    """Late registration, added after the window closed"""
    __tablename__ = "post_registrations"
