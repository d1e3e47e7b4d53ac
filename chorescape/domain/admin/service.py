"""Admin service - dashboard statistics"""

import logging

from sqlalchemy.orm import Session

from ...models import Role
from ..bookings.lifecycle import BookingStatus
from .repository import StatsRepository

logger = logging.getLogger(__name__)


def empty_stats() -> dict:
    """Zeroed stats payload, served when the datastore is unavailable"""
    return build_stats_payload(0, 0, 0, 0, 0, 0, 0.0)


def build_stats_payload(
    customers: int,
    workers: int,
    total: int,
    pending: int,
    assigned: int,
    completed: int,
    revenue: float,
) -> dict:
    # Nested for the dashboard cards, flat for older clients
    return {
        "users": {"customers": customers, "workers": workers},
        "bookings": {
            "total": total,
            "pending": pending,
            "assigned": assigned,
            "completed": completed,
        },
        "revenue": {"total": revenue},
        "totalUsers": customers,
        "totalWorkers": workers,
        "totalBookings": total,
        "pendingBookings": pending,
        "assignedBookings": assigned,
        "completedBookings": completed,
        "totalRevenue": revenue,
    }


class StatsService:
    """Service layer for the admin dashboard"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = StatsRepository()

    def get_stats(self) -> dict:
        payload = build_stats_payload(
            customers=self.repo.count_profiles(self.db, Role.CUSTOMER),
            workers=self.repo.count_profiles(self.db, Role.WORKER),
            total=self.repo.count_bookings(self.db),
            pending=self.repo.count_bookings(self.db, BookingStatus.PENDING),
            assigned=self.repo.count_assigned_bookings(self.db),
            completed=self.repo.count_bookings(self.db, BookingStatus.COMPLETED),
            revenue=self.repo.paid_revenue(self.db),
        )
        logger.info(
            f"📊 Stats computed: {payload['totalBookings']} bookings, "
            f"{payload['totalRevenue']:.2f} revenue"
        )
        return payload
