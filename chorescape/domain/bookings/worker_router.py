"""Worker booking router - the assigned worker's job lifecycle"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...auth import require_worker
from ...models import Profile
from .router import action_response, booking_response, get_booking_service
from .schemas import BookingActionResponse, WorkerBookingsResponse
from .service import BookingService

router = APIRouter(prefix="/api/worker/bookings", tags=["Worker Bookings"])


@router.get("", response_model=WorkerBookingsResponse)
async def list_my_jobs(
    status: Optional[str] = Query(None),
    worker: Profile = Depends(require_worker),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings assigned to the caller, upcoming first, with status buckets"""
    result = service.list_for_worker(worker, status)
    return {
        "bookings": [booking_response(b) for b in result["bookings"]],
        "grouped": {
            bucket: [booking_response(b) for b in bookings]
            for bucket, bookings in result["grouped"].items()
        },
        "stats": result["stats"],
    }


@router.patch("/{booking_id}/accept", response_model=BookingActionResponse)
async def accept_booking(
    booking_id: str,
    worker: Profile = Depends(require_worker),
    service: BookingService = Depends(get_booking_service),
):
    return action_response("Booking accepted successfully", service.accept(booking_id, worker))


@router.patch("/{booking_id}/reject", response_model=BookingActionResponse)
async def reject_booking(
    booking_id: str,
    worker: Profile = Depends(require_worker),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.reject(booking_id, worker)
    return action_response("Booking rejected. It will be available for reassignment.", booking)


@router.patch("/{booking_id}/start", response_model=BookingActionResponse)
async def start_booking(
    booking_id: str,
    worker: Profile = Depends(require_worker),
    service: BookingService = Depends(get_booking_service),
):
    return action_response("Job started successfully", service.start(booking_id, worker))


@router.patch("/{booking_id}/complete", response_model=BookingActionResponse)
async def complete_booking(
    booking_id: str,
    worker: Profile = Depends(require_worker),
    service: BookingService = Depends(get_booking_service),
):
    return action_response("Job completed successfully", service.complete(booking_id, worker))


__all__ = ["router"]
