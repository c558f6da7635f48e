"""Access PIN pool"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from exam_portal.models.base import BaseModel


class AccessPin(BaseModel):
    """
    A shared-secret PIN gating portal access.

    Unclaimed while the owner columns are NULL; claimed by exactly one
    (lga_code, school_code) pair after the first successful verification.
    """
    __tablename__ = "access_pins"

    pin = Column(String(16), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    usage_count = Column(Integer, default=0, nullable=False)

    owner_lga_code = Column(String(20), nullable=True)
    owner_school_code = Column(String(20), nullable=True)
    owner_school_name = Column(String(255), nullable=True)
    claimed_at = Column(DateTime, nullable=True)

    @property
    def is_claimed(self) -> bool:
        return bool(self.owner_lga_code and self.owner_school_code)

    def is_owned_by(self, lga_code: str, school_code: str) -> bool:
        return self.owner_lga_code == lga_code and self.owner_school_code == school_code
