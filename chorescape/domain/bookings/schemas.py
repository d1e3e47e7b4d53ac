"""Booking domain schemas - Pydantic models for validation"""

from datetime import date as Date, datetime
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from ...errors import ValidationError
from ...shared.validators import require_text, validate_email
from ...utils.sanitization import sanitize_text
from .lifecycle import BookingStatus, parse_status


def _date_only(v):
    # Frontends send either "2025-06-01" or a full ISO timestamp
    if isinstance(v, str) and "T" in v:
        return v.split("T", 1)[0]
    return v


def _status(v):
    try:
        return parse_status(v)
    except ValidationError as e:
        raise ValueError(e.message) from None


# Column sizes of the bookings table
MAX_LENGTHS = {
    "serviceSlug": 255,
    "serviceName": 255,
    "subService": 255,
    "frequency": 50,
    "timeSlot": 50,
    "addressLine": 500,
    "city": 100,
    "province": 50,
    "postal": 20,
    "country": 100,
    "paymentMethod": 50,
    "paymentStatus": 50,
    "guestName": 255,
    "guestPhone": 20,
    "notes": 2000,
}

REQUIRED_LABELS = {"addressLine": "Address", "city": "City"}


def _optional_text(v, info: ValidationInfo):
    return sanitize_text(v, max_length=MAX_LENGTHS[info.field_name])


def _required_text(v, info: ValidationInfo):
    label = REQUIRED_LABELS[info.field_name]
    return require_text(sanitize_text(v, max_length=MAX_LENGTHS[info.field_name]), label)


class BookingFields(BaseModel):
    """Descriptive fields shared by every booking creation path"""

    serviceSlug: Optional[str] = None
    serviceName: Optional[str] = None
    subService: Optional[str] = None
    frequency: Optional[str] = None
    date: Date
    timeSlot: Optional[str] = None
    addressLine: str
    city: str
    province: Optional[str] = None
    postal: Optional[str] = None
    country: Optional[str] = None
    notes: Optional[str] = None
    totalAmount: Optional[float] = Field(default=None, ge=0)
    paymentMethod: Optional[str] = None
    paymentStatus: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        return _date_only(v)

    @field_validator("addressLine", "city")
    @classmethod
    def validate_required(cls, v, info: ValidationInfo):
        return _required_text(v, info)

    @field_validator(
        "serviceSlug",
        "serviceName",
        "subService",
        "frequency",
        "timeSlot",
        "province",
        "postal",
        "country",
        "paymentMethod",
        "paymentStatus",
        "notes",
    )
    @classmethod
    def clean_text(cls, v, info: ValidationInfo):
        return _optional_text(v, info)


class BookingCreate(BookingFields):
    """Schema for an authenticated customer's booking"""


class GuestBookingCreate(BookingFields):
    """Schema for a booking made without an account, contact details are required"""

    guestEmail: Optional[str] = Field(default=None, validate_default=True)
    guestName: Optional[str] = None
    guestPhone: Optional[str] = None

    @field_validator("guestEmail")
    @classmethod
    def validate_guest_email(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("Guest email is required")
        return validate_email(v)

    @field_validator("guestName", "guestPhone")
    @classmethod
    def clean_contact(cls, v, info: ValidationInfo):
        return _optional_text(v, info)


class BookingUpdate(BaseModel):
    """Customer edit. A new date reschedules, the only status a customer may set is CANCELLED."""

    date: Optional[Date] = None
    timeSlot: Optional[str] = None
    subService: Optional[str] = None
    frequency: Optional[str] = None
    addressLine: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal: Optional[str] = None
    country: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[BookingStatus] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        return _date_only(v)

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v):
        if v is None:
            return v
        return _status(v)

    @field_validator("addressLine", "city")
    @classmethod
    def not_blank(cls, v, info: ValidationInfo):
        if v is None:
            return v
        return _required_text(v, info)

    @field_validator(
        "timeSlot", "subService", "frequency", "province", "postal", "country", "notes"
    )
    @classmethod
    def clean_text(cls, v, info: ValidationInfo):
        return _optional_text(v, info)


class RescheduleRequest(BaseModel):
    date: Optional[Date] = Field(default=None, validate_default=True)
    timeSlot: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def require_date(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Date is required for rescheduling")
        return _date_only(v)

    @field_validator("timeSlot")
    @classmethod
    def clean_slot(cls, v, info: ValidationInfo):
        return _optional_text(v, info)


class RebookRequest(BaseModel):
    date: Optional[Date] = None
    timeSlot: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return _date_only(v)

    @field_validator("timeSlot")
    @classmethod
    def clean_slot(cls, v, info: ValidationInfo):
        return _optional_text(v, info)


class StatusUpdateRequest(BaseModel):
    """Admin status override"""

    status: Optional[BookingStatus] = Field(default=None, validate_default=True)
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def require_status(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Status is required")
        return _status(v)

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v, info: ValidationInfo):
        return _optional_text(v, info)


class AssignWorkerRequest(BaseModel):
    workerId: Optional[str] = None
    teamId: Optional[str] = None

    @model_validator(mode="after")
    def check_assignee(self):
        if self.workerId and self.teamId:
            raise ValueError("Cannot assign both a worker and a team. Choose one.")
        if not self.workerId and not self.teamId:
            raise ValueError("Either workerId or teamId is required")
        if self.teamId:
            raise ValueError("Team assignment is not supported yet. Use workerId.")
        return self


class AdminBookingUpdate(BaseModel):
    """Admin full edit, any subset of fields. assignedWorkerId: null unassigns."""

    status: Optional[BookingStatus] = None
    date: Optional[Date] = None
    timeSlot: Optional[str] = None
    addressLine: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal: Optional[str] = None
    country: Optional[str] = None
    notes: Optional[str] = None
    totalAmount: Optional[float] = Field(default=None, ge=0)
    assignedWorkerId: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v):
        if v is None:
            return v
        return _status(v)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        return _date_only(v)

    @field_validator("addressLine", "city")
    @classmethod
    def not_blank(cls, v, info: ValidationInfo):
        if v is None:
            return v
        return _required_text(v, info)

    @field_validator("timeSlot", "province", "postal", "country", "notes")
    @classmethod
    def clean_text(cls, v, info: ValidationInfo):
        return _optional_text(v, info)


# ============================================================================
# RESPONSES
# ============================================================================


class ProfileSummary(BaseModel):
    id: str
    fullName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ServiceSummary(BaseModel):
    id: str
    name: str
    slug: str


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: str
    status: BookingStatus
    customerId: Optional[str] = None
    guestEmail: Optional[str] = None
    guestName: Optional[str] = None
    guestPhone: Optional[str] = None
    assignedWorkerId: Optional[str] = None
    serviceId: Optional[str] = None
    serviceName: str
    serviceSlug: Optional[str] = None
    subService: Optional[str] = None
    frequency: Optional[str] = None
    date: Date
    timeSlot: Optional[str] = None
    addressLine: str
    city: str
    province: str
    postal: Optional[str] = None
    country: str
    totalAmount: Optional[float] = None
    paymentMethod: str
    paymentStatus: str
    paidAt: Optional[datetime] = None
    isFavorite: bool
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    customer: Optional[ProfileSummary] = None
    assignedWorker: Optional[ProfileSummary] = None
    service: Optional[ServiceSummary] = None


class BookingActionResponse(BaseModel):
    message: str
    booking: BookingResponse


class WorkerBookingGroups(BaseModel):
    assigned: list[BookingResponse]
    accepted: list[BookingResponse]
    inProgress: list[BookingResponse]
    completed: list[BookingResponse]
    cancelled: list[BookingResponse]


class WorkerBookingStats(BaseModel):
    total: int
    assigned: int
    accepted: int
    inProgress: int
    completed: int


class WorkerBookingsResponse(BaseModel):
    bookings: list[BookingResponse]
    grouped: WorkerBookingGroups
    stats: WorkerBookingStats
