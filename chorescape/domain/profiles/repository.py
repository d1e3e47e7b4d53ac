"""Profile repository - Database operations for profiles and workers"""

from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ...models import Booking, Profile, Role
from ..bookings.lifecycle import BookingStatus, OPEN_STATUSES


class ProfileRepository:
    """Repository for profile database operations"""

    @staticmethod
    def update_profile(db: Session, profile: Profile, **updates) -> Profile:
        for key, value in updates.items():
            setattr(profile, key, value)
        db.commit()
        db.refresh(profile)
        return profile

    @staticmethod
    def list_workers(db: Session) -> list[Profile]:
        return (
            db.query(Profile)
            .filter(Profile.role == Role.WORKER)
            .order_by(Profile.full_name.asc(), Profile.email.asc())
            .all()
        )

    @staticmethod
    def get_worker(db: Session, worker_id: str) -> Optional[Profile]:
        return (
            db.query(Profile)
            .filter(Profile.id == worker_id, Profile.role == Role.WORKER)
            .first()
        )

    @staticmethod
    def worker_booking_counts(db: Session, worker_ids: list[str]) -> dict[str, tuple[int, int]]:
        """(active, completed) booking counts per worker"""
        if not worker_ids:
            return {}
        active = func.sum(case((Booking.status.in_(list(OPEN_STATUSES)), 1), else_=0))
        completed = func.sum(case((Booking.status == BookingStatus.COMPLETED, 1), else_=0))
        rows = (
            db.query(Booking.assigned_worker_id, active, completed)
            .filter(Booking.assigned_worker_id.in_(worker_ids))
            .group_by(Booking.assigned_worker_id)
            .all()
        )
        return {worker_id: (int(a or 0), int(c or 0)) for worker_id, a, c in rows}

    @staticmethod
    def worker_bookings(db: Session, worker_id: str) -> list[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.assigned_worker_id == worker_id)
            .order_by(Booking.date.desc())
            .all()
        )
