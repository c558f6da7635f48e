"""Models Package - Export all models for easy imports"""

from exam_portal.models.base import BaseModel, SchoolScopedMixin
from exam_portal.models.enums import RegistrationMode
from exam_portal.models.school import School
from exam_portal.models.access_pin import AccessPin
from exam_portal.models.registration import (
    RegistrationFieldsMixin,
    StudentRegistration,
    PostRegistration,
)
from exam_portal.models.result import ExamResult


__all__ = [
    # Base classes
    "BaseModel",
    "SchoolScopedMixin",
    "RegistrationFieldsMixin",
    # Enums
    "RegistrationMode",
    # Models
    "School",
    "AccessPin",
    "StudentRegistration",
    "PostRegistration",
    "ExamResult",
]
