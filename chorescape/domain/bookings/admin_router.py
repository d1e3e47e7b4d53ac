"""Admin booking router - listing, assignment and overrides"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...auth import require_admin, require_admin_or_degraded
from ...fallback import degrade_on_error
from ...models import Profile
from .router import action_response, booking_response, get_booking_service
from .schemas import (
    AdminBookingUpdate,
    AssignWorkerRequest,
    BookingActionResponse,
    BookingResponse,
    StatusUpdateRequest,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/bookings", tags=["Admin Bookings"])


def empty_booking_page() -> dict:
    return {
        "bookings": [],
        "pagination": {"page": 1, "pageSize": 20, "total": 0, "totalPages": 0},
    }


@router.get("")
@degrade_on_error(empty_booking_page)
async def list_bookings(
    page: int = Query(1, ge=1),
    pageSize: int = Query(20, ge=1),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    _admin: Profile = Depends(require_admin_or_degraded),
    service: BookingService = Depends(get_booking_service),
):
    """All bookings, newest first. Falls back to an empty page if the datastore fails."""
    result = service.list_all(page, pageSize, status, search)
    return {
        "bookings": [booking_response(b) for b in result["bookings"]],
        "pagination": result["pagination"],
    }


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    _admin: Profile = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    return booking_response(service.get_booking(booking_id))


@router.patch("/{booking_id}/status", response_model=BookingActionResponse)
async def update_booking_status(
    booking_id: str,
    data: StatusUpdateRequest,
    admin: Profile = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_status(booking_id, data, admin)
    return action_response("Booking status updated successfully", booking)


@router.patch("/{booking_id}/assign", response_model=BookingActionResponse)
async def assign_worker(
    booking_id: str,
    data: AssignWorkerRequest,
    admin: Profile = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.assign_worker(booking_id, data, admin)
    return action_response("Worker assigned successfully", booking)


@router.patch("/{booking_id}/unassign", response_model=BookingActionResponse)
async def unassign_worker(
    booking_id: str,
    admin: Profile = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.unassign_worker(booking_id, admin)
    return action_response("Worker unassigned successfully", booking)


@router.put("/{booking_id}", response_model=BookingActionResponse)
async def update_booking(
    booking_id: str,
    data: AdminBookingUpdate,
    admin: Profile = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.admin_update(booking_id, data, admin)
    return action_response("Booking updated successfully", booking)


__all__ = ["router"]
