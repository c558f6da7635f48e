from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict


class AccessPinGenerateRequest(BaseModel):
    # Range enforced by the service so out-of-range counts get a 400, not a 422
    count: int


class AccessPinResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    pin: str
    is_active: bool
    usage_count: int
    owner_lga_code: Optional[str] = None
    owner_school_code: Optional[str] = None
    owner_school_name: Optional[str] = None
    claimed_at: Optional[datetime] = None
    created_at: datetime


class AccessPinBatchResponse(BaseModel):
    requested: int
    count: int
    shortfall: int
    pins: List[AccessPinResponse]
