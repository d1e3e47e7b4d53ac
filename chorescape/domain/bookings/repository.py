"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload

from ...models import Booking, Profile, Role
from .lifecycle import BookingStatus


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def _with_relations(db: Session) -> Query:
        return db.query(Booking).options(
            joinedload(Booking.customer),
            joinedload(Booking.assigned_worker),
            joinedload(Booking.service),
        )

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        return BookingRepository._with_relations(db).filter(Booking.id == booking_id).first()

    @staticmethod
    def list_for_customer(db: Session, customer_id: str) -> list[Booking]:
        """Bookings the customer made while signed in, newest date first"""
        return (
            BookingRepository._with_relations(db)
            .filter(Booking.customer_id == customer_id, Booking.guest_email.is_(None))
            .order_by(Booking.date.desc(), Booking.created_at.desc())
            .all()
        )

    @staticmethod
    def list_for_worker(
        db: Session, worker_id: str, status: Optional[BookingStatus] = None
    ) -> list[Booking]:
        """Bookings assigned to the worker, upcoming first"""
        query = BookingRepository._with_relations(db).filter(
            Booking.assigned_worker_id == worker_id
        )
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.date.asc(), Booking.created_at.asc()).all()

    @staticmethod
    def list_all(
        db: Session,
        page: int = 1,
        page_size: int = 20,
        status: Optional[BookingStatus] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Booking], int]:
        """Paginated admin listing, newest first. Returns (bookings, total)."""
        query = db.query(Booking)
        if status:
            query = query.filter(Booking.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Booking.service_name.ilike(pattern),
                    Booking.address_line.ilike(pattern),
                    Booking.city.ilike(pattern),
                    Booking.guest_name.ilike(pattern),
                    Booking.guest_email.ilike(pattern),
                    Booking.customer.has(Profile.email.ilike(pattern)),
                )
            )

        total = query.count()
        bookings = (
            query.options(
                joinedload(Booking.customer),
                joinedload(Booking.assigned_worker),
                joinedload(Booking.service),
            )
            .order_by(Booking.created_at.desc(), Booking.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return bookings, total

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def update_booking(db: Session, booking: Booking, **updates) -> Booking:
        """Unconditional update, None values are written (used to clear the worker)"""
        for key, value in updates.items():
            setattr(booking, key, value)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def transition(
        db: Session,
        booking_id: str,
        expected_status: BookingStatus,
        updates: dict,
        worker_id: Optional[str] = None,
    ) -> bool:
        """
        Apply `updates` only if the booking is still in `expected_status`
        (and still assigned to `worker_id` when given).

        Returns False when another request changed the booking first.
        """
        query = db.query(Booking).filter(
            Booking.id == booking_id, Booking.status == expected_status
        )
        if worker_id is not None:
            query = query.filter(Booking.assigned_worker_id == worker_id)

        updated = query.update(updates, synchronize_session=False)
        db.commit()
        return updated == 1

    @staticmethod
    def get_worker(db: Session, worker_id: str) -> Optional[Profile]:
        return (
            db.query(Profile)
            .filter(Profile.id == worker_id, Profile.role == Role.WORKER)
            .first()
        )

    @staticmethod
    def get_profile_by_email(db: Session, email: str) -> Optional[Profile]:
        return db.query(Profile).filter(Profile.email == email).first()
