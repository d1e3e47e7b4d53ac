"""Admin repository - aggregate queries for the dashboard"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking, Profile, Role
from ..bookings.lifecycle import BookingStatus, WORKER_STATUSES


class StatsRepository:
    """Repository for dashboard counters"""

    @staticmethod
    def count_profiles(db: Session, role: Role) -> int:
        return db.query(func.count(Profile.id)).filter(Profile.role == role).scalar() or 0

    @staticmethod
    def count_bookings(db: Session, status: Optional[BookingStatus] = None) -> int:
        query = db.query(func.count(Booking.id))
        if status is not None:
            query = query.filter(Booking.status == status)
        return query.scalar() or 0

    @staticmethod
    def count_assigned_bookings(db: Session) -> int:
        """Bookings held by a worker: ASSIGNED, ACCEPTED or IN_PROGRESS with an assignee"""
        return (
            db.query(func.count(Booking.id))
            .filter(
                Booking.status.in_(list(WORKER_STATUSES)),
                Booking.assigned_worker_id.isnot(None),
            )
            .scalar()
            or 0
        )

    @staticmethod
    def paid_revenue(db: Session) -> float:
        total = (
            db.query(func.coalesce(func.sum(Booking.total_amount), 0))
            .filter(Booking.payment_status == "paid")
            .scalar()
        )
        return float(total or 0)
