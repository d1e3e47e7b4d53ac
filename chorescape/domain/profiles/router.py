"""Profile router - the caller's profile and admin worker management"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import (
    IdentityUser,
    get_current_identity,
    get_current_profile,
    require_admin,
    require_admin_or_degraded,
)
from ...database import get_db
from ...fallback import degrade_on_error
from ...models import Profile
from ..bookings.router import booking_response
from .schemas import ProfileResponse, ProfileUpdate, WorkerStatusUpdate, WorkerSummaryResponse
from .service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["Profile"])
auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])
workers_router = APIRouter(prefix="/api/admin/workers", tags=["Admin Workers"])


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    """Dependency injection for ProfileService"""
    return ProfileService(db)


def profile_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        userId=profile.user_id,
        email=profile.email,
        fullName=profile.full_name,
        phone=profile.phone,
        city=profile.city,
        province=profile.province,
        role=profile.role.value,
        isActive=profile.is_active,
        createdAt=profile.created_at,
        updatedAt=profile.updated_at,
    )


# ============================================================================
# CURRENT USER
# ============================================================================


@auth_router.get("/me")
async def whoami(identity: IdentityUser = Depends(get_current_identity)):
    """Identity as reported by the identity provider"""
    return {"id": identity.id, "email": identity.email}


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(profile: Profile = Depends(get_current_profile)):
    """The caller's profile, created as CUSTOMER on first call"""
    return profile_response(profile)


@router.put("", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service),
):
    return profile_response(service.update_profile(profile, data))


# ============================================================================
# ADMIN: WORKERS
# ============================================================================


@workers_router.get("")
@degrade_on_error(list)
async def list_workers(
    _admin: Profile = Depends(require_admin_or_degraded),
    service: ProfileService = Depends(get_profile_service),
):
    """Workers with active/completed booking counts. Empty list if the datastore fails."""
    return [
        WorkerSummaryResponse(
            **profile_response(worker).model_dump(),
            activeBookings=active,
            completedBookings=completed,
            totalBookings=active + completed,
        )
        for worker, active, completed in service.list_workers()
    ]


@workers_router.get("/{worker_id}")
async def get_worker(
    worker_id: str,
    _admin: Profile = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service),
):
    worker, bookings = service.get_worker(worker_id)
    return {
        "worker": profile_response(worker),
        "bookings": [booking_response(b) for b in bookings],
    }


@workers_router.patch("/{worker_id}/status", response_model=ProfileResponse)
async def set_worker_status(
    worker_id: str,
    data: WorkerStatusUpdate,
    admin: Profile = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service),
):
    return profile_response(service.set_worker_active(worker_id, data.isActive, admin))


__all__ = ["router", "auth_router", "workers_router"]
