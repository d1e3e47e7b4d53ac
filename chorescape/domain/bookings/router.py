"""Booking router - customer and guest booking endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_profile
from ...database import get_db
from ...models import Booking, Profile
from ...rate_limiter import rate_limit_guest_booking_global, rate_limit_guest_booking_per_ip
from .schemas import (
    BookingActionResponse,
    BookingCreate,
    BookingResponse,
    BookingUpdate,
    GuestBookingCreate,
    ProfileSummary,
    RebookRequest,
    RescheduleRequest,
    ServiceSummary,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])
legacy_router = APIRouter(prefix="/customer/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def profile_summary(profile: Optional[Profile]) -> Optional[ProfileSummary]:
    if profile is None:
        return None
    return ProfileSummary(
        id=profile.id, fullName=profile.full_name, email=profile.email, phone=profile.phone
    )


def booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        status=booking.status,
        customerId=booking.customer_id,
        guestEmail=booking.guest_email,
        guestName=booking.guest_name,
        guestPhone=booking.guest_phone,
        assignedWorkerId=booking.assigned_worker_id,
        serviceId=booking.service_id,
        serviceName=booking.service_name,
        serviceSlug=booking.service_slug,
        subService=booking.sub_service,
        frequency=booking.frequency,
        date=booking.date,
        timeSlot=booking.time_slot,
        addressLine=booking.address_line,
        city=booking.city,
        province=booking.province,
        postal=booking.postal,
        country=booking.country,
        totalAmount=booking.total_amount,
        paymentMethod=booking.payment_method,
        paymentStatus=booking.payment_status,
        paidAt=booking.paid_at,
        isFavorite=booking.is_favorite,
        notes=booking.notes,
        createdAt=booking.created_at,
        updatedAt=booking.updated_at,
        customer=profile_summary(booking.customer),
        assignedWorker=profile_summary(booking.assigned_worker),
        service=(
            ServiceSummary(
                id=booking.service.id, name=booking.service.name, slug=booking.service.slug
            )
            if booking.service
            else None
        ),
    )


def action_response(message: str, booking: Booking) -> BookingActionResponse:
    return BookingActionResponse(message=message, booking=booking_response(booking))


# ============================================================================
# CREATION
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    profile: Profile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking for the signed-in customer (profile created on first use)"""
    return booking_response(service.create_for_customer(data, profile))


@router.post(
    "/guest",
    response_model=BookingResponse,
    status_code=201,
    dependencies=[
        Depends(rate_limit_guest_booking_per_ip),
        Depends(rate_limit_guest_booking_global),
    ],
)
async def create_guest_booking(
    data: GuestBookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking without an account"""
    return booking_response(service.create_for_guest(data))


# ============================================================================
# CUSTOMER ACTIONS
# ============================================================================


@router.get("/mine", response_model=list[BookingResponse])
async def list_my_bookings(
    profile: Profile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
):
    return [booking_response(b) for b in service.list_mine(profile)]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    profile: Profile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
):
    return booking_response(service.get_for_customer(booking_id, profile))


@router.put("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: str,
    data: BookingUpdate,
    profile: Profile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
):
    return booking_response(service.update_for_customer(booking_id, data, profile))


@router.delete("/{booking_id}", response_model=BookingActionResponse)
async def cancel_booking(
    booking_id: str,
    profile: Profile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.cancel(booking_id, profile)
    return action_response("Booking cancelled successfully", booking)


@router.post("/{booking_id}/rebook", response_model=BookingActionResponse, status_code=201)
async def rebook_booking(
    booking_id: str,
    data: Optional[RebookRequest] = None,
    profile: Profile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
):
    """Create a new PENDING booking from a cancelled one"""
    booking = service.rebook(booking_id, data or RebookRequest(), profile)
    return action_response("Booking rebooked successfully", booking)


@router.post("/{booking_id}/reschedule", response_model=BookingActionResponse)
async def reschedule_booking(
    booking_id: str,
    data: Optional[RescheduleRequest] = None,
    profile: Profile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.reschedule(booking_id, data, profile)
    return action_response("Booking rescheduled successfully", booking)


@router.post("/{booking_id}/favorite", response_model=BookingActionResponse)
async def toggle_favorite(
    booking_id: str,
    profile: Profile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.toggle_favorite(booking_id, profile)
    message = "Booking added to favorites" if booking.is_favorite else "Booking removed from favorites"
    return action_response(message, booking)


# ============================================================================
# LEGACY CUSTOMER PATHS
# ============================================================================


@legacy_router.get("", response_model=list[BookingResponse])
async def legacy_list_bookings(
    profile: Profile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
):
    return [booking_response(b) for b in service.list_mine(profile)]


legacy_router.add_api_route(
    "/{booking_id}", get_booking, methods=["GET"], response_model=BookingResponse
)
legacy_router.add_api_route(
    "", create_booking, methods=["POST"], response_model=BookingResponse, status_code=201
)
legacy_router.add_api_route(
    "/{booking_id}", update_booking, methods=["PUT"], response_model=BookingResponse
)
legacy_router.add_api_route(
    "/{booking_id}", cancel_booking, methods=["DELETE"], response_model=BookingActionResponse
)


__all__ = ["router", "legacy_router", "booking_response", "action_response"]
