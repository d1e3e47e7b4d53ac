import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .domain.bookings.lifecycle import BookingStatus


def generate_id():
    return str(uuid.uuid4())


class Role(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    WORKER = "WORKER"
    ADMIN = "ADMIN"


class ServiceType(str, enum.Enum):
    RESIDENTIAL = "RESIDENTIAL"
    CORPORATE = "CORPORATE"


class Profile(Base):
    """Application identity record, 1:1 with an identity provider user"""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=True, index=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    city = Column(String(100), nullable=True)
    province = Column(String(50), nullable=True)
    role = Column(
        Enum(Role, native_enum=False, length=20, validate_strings=True),
        default=Role.CUSTOMER,
        nullable=False,
        index=True,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    bookings = relationship(
        "Booking", back_populates="customer", foreign_keys="Booking.customer_id"
    )
    assigned_bookings = relationship(
        "Booking", back_populates="assigned_worker", foreign_keys="Booking.assigned_worker_id"
    )


class Service(Base):
    """Catalog entry consumed read-only by booking creation"""

    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    type = Column(
        Enum(ServiceType, native_enum=False, length=20, validate_strings=True),
        default=ServiceType.RESIDENTIAL,
        nullable=False,
    )
    base_price = Column(Float, nullable=True)
    image_url = Column(String(500), nullable=True)
    is_trending = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    options = relationship(
        "ServiceOption",
        back_populates="service",
        cascade="all, delete-orphan",
        order_by="ServiceOption.name",
    )
    bookings = relationship("Booking", back_populates="service")


class ServiceOption(Base):
    """Named sub-service, priced absolutely (price) or as a delta (price_modifier)"""

    __tablename__ = "service_options"

    id = Column(String(36), primary_key=True, default=generate_id)
    service_id = Column(String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    price_modifier = Column(Float, nullable=True)
    duration = Column(Integer, nullable=True)  # minutes
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="options")


class Booking(Base):
    """
    A service request moving through the booking lifecycle.

    Service name and slug are copied at creation time so later catalog edits
    don't rewrite history. Bookings are never deleted, cancellation is a status.
    """

    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_id)

    # Actors
    customer_id = Column(String(36), ForeignKey("profiles.id"), nullable=True, index=True)
    guest_email = Column(String(255), nullable=True, index=True)
    guest_name = Column(String(255), nullable=True)
    guest_phone = Column(String(20), nullable=True)
    assigned_worker_id = Column(String(36), ForeignKey("profiles.id"), nullable=True, index=True)

    # Service (soft reference + denormalized copy)
    service_id = Column(
        String(36), ForeignKey("services.id", ondelete="SET NULL"), nullable=True
    )
    service_name = Column(String(255), nullable=False)
    service_slug = Column(String(255), nullable=True)
    sub_service = Column(String(255), nullable=True)
    frequency = Column(String(50), nullable=True)

    # Scheduling
    date = Column(Date, nullable=False, index=True)
    time_slot = Column(String(50), nullable=True)

    # Location
    address_line = Column(String(500), nullable=False)
    city = Column(String(100), nullable=False)
    province = Column(String(50), default="SK", nullable=False)
    postal = Column(String(20), nullable=True)
    country = Column(String(100), default="Canada", nullable=False)

    # Commercial
    total_amount = Column(Float, nullable=True)
    payment_method = Column(String(50), default="pay_later", nullable=False)
    payment_status = Column(String(50), default="pending", nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    # Workflow
    status = Column(
        Enum(BookingStatus, native_enum=False, length=20, validate_strings=True),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )
    is_favorite = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship("Profile", back_populates="bookings", foreign_keys=[customer_id])
    assigned_worker = relationship(
        "Profile", back_populates="assigned_bookings", foreign_keys=[assigned_worker_id]
    )
    service = relationship("Service", back_populates="bookings")
