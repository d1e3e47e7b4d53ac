"""Catalog domain schemas - Pydantic models for services and service options"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models import ServiceType
from ...shared.validators import require_text, validate_slug


class ServiceCreate(BaseModel):
    """Schema for creating a catalog service"""

    name: str
    slug: str
    description: Optional[str] = None
    type: ServiceType = ServiceType.RESIDENTIAL
    basePrice: Optional[float] = None
    imageUrl: Optional[str] = None
    isTrending: bool = False
    isActive: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return require_text(v, "Name")

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v):
        return validate_slug(require_text(v, "Slug"))

    @field_validator("type", mode="before")
    @classmethod
    def upper_type(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class ServiceUpdate(BaseModel):
    """Schema for updating a catalog service, every field optional"""

    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ServiceType] = None
    basePrice: Optional[float] = None
    imageUrl: Optional[str] = None
    isTrending: Optional[bool] = None
    isActive: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        return require_text(v, "Name")

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v):
        if v is None:
            return v
        return validate_slug(require_text(v, "Slug"))

    @field_validator("type", mode="before")
    @classmethod
    def upper_type(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class ServiceOptionCreate(BaseModel):
    """An option carries either an absolute price or a price modifier, never both"""

    serviceId: str
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    priceModifier: Optional[float] = None
    duration: Optional[int] = None
    isActive: bool = True

    @field_validator("serviceId")
    @classmethod
    def validate_service_id(cls, v):
        return require_text(v, "Service ID")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return require_text(v, "Name")

    @model_validator(mode="after")
    def check_pricing(self):
        if self.price is not None and self.priceModifier is not None:
            raise ValueError("Cannot set both price and priceModifier. Use one or the other.")
        return self


class ServiceOptionUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    priceModifier: Optional[float] = None
    duration: Optional[int] = None
    isActive: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        return require_text(v, "Name")

    @model_validator(mode="after")
    def check_pricing(self):
        if self.price is not None and self.priceModifier is not None:
            raise ValueError("Cannot set both price and priceModifier. Use one or the other.")
        return self


class ServiceOptionResponse(BaseModel):
    id: str
    serviceId: str
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    priceModifier: Optional[float] = None
    duration: Optional[int] = None
    isActive: bool


class PublicServiceResponse(BaseModel):
    """Service as shown on the public site, option names double as bullet points"""

    id: str
    slug: str
    title: str
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    imageUrl: Optional[str] = None
    isTrending: bool
    type: str
    basePrice: Optional[float] = None
    bullets: list[str]
    options: list[ServiceOptionResponse]


class AdminServiceResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    type: str
    basePrice: Optional[float] = None
    imageUrl: Optional[str] = None
    isTrending: bool
    isActive: bool
    bookingCount: int = 0
    optionCount: int = 0
    options: list[ServiceOptionResponse] = []
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
