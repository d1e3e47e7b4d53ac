"""Profile domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ValidationInfo, field_validator

from ...shared.validators import validate_phone
from ...utils.sanitization import sanitize_text

# Column sizes of the profiles table
MAX_LENGTHS = {"fullName": 255, "city": 100, "province": 50}


class ProfileUpdate(BaseModel):
    fullName: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None

    @field_validator("fullName", "city", "province")
    @classmethod
    def clean_text(cls, v, info: ValidationInfo):
        return sanitize_text(v, max_length=MAX_LENGTHS[info.field_name])

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v):
        if v:
            return validate_phone(v)
        return v


class ProfileResponse(BaseModel):
    id: str
    userId: str
    email: Optional[str] = None
    fullName: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    role: str
    isActive: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class WorkerSummaryResponse(ProfileResponse):
    """Worker with assignment counters for the admin dashboard"""

    activeBookings: int = 0
    completedBookings: int = 0
    totalBookings: int = 0


class WorkerStatusUpdate(BaseModel):
    isActive: bool
