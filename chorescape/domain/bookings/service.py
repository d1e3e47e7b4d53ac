"""
Booking service - the booking lifecycle manager.

Creation (signed in and guest), customer actions (cancel, reschedule, rebook,
favorite), worker job progression and admin assignment all go through here.
Every status change is checked against the transition table in lifecycle.py
and authorization is re-checked against the freshly loaded booking.

Worker and customer transitions are written with a conditional update on the
status they were validated against, so a concurrent change surfaces as a 409.
Admin assignment and edits are last-writer-wins.
"""

import logging
import math
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ...models import Booking, Profile
from ..catalog.service import CatalogService
from .lifecycle import (
    WORKER_STATUSES,
    BookingAction,
    BookingStatus,
    ensure_transition,
    parse_status,
)
from .repository import BookingRepository
from .schemas import (
    AdminBookingUpdate,
    AssignWorkerRequest,
    BookingCreate,
    BookingFields,
    BookingUpdate,
    GuestBookingCreate,
    RebookRequest,
    RescheduleRequest,
    StatusUpdateRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_PROVINCE = "SK"
DEFAULT_COUNTRY = "Canada"
DEFAULT_PAYMENT_METHOD = "pay_later"
DEFAULT_PAYMENT_STATUS = "pending"
MAX_PAGE_SIZE = 100

# Request field -> column for descriptive edits
EDITABLE_FIELDS = {
    "timeSlot": "time_slot",
    "subService": "sub_service",
    "frequency": "frequency",
    "addressLine": "address_line",
    "city": "city",
    "province": "province",
    "postal": "postal",
    "country": "country",
    "notes": "notes",
    "totalAmount": "total_amount",
}
REQUIRED_COLUMNS = {"address_line", "city", "province", "country"}

# Fields copied onto the new row when a booking is rebooked
REBOOK_COPIED_COLUMNS = (
    "customer_id",
    "service_id",
    "service_name",
    "service_slug",
    "sub_service",
    "frequency",
    "address_line",
    "city",
    "province",
    "postal",
    "country",
    "total_amount",
    "payment_method",
    "notes",
)

STALE_BOOKING_MESSAGE = "Booking was changed by another request. Reload and try again."


class BookingService:
    """Service layer for the booking lifecycle"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.catalog = CatalogService(db)

    # ========================================================================
    # LOOKUPS
    # ========================================================================

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _get_owned_booking(self, booking_id: str, profile: Profile) -> Booking:
        """
        Load a booking the customer owns.

        Guest bookings linked to a profile by email are informational only and
        never count as owned.
        """
        booking = self.get_booking(booking_id)
        if booking.customer_id != profile.id or booking.guest_email is not None:
            logger.warning(f"⚠️ Profile {profile.id} denied access to booking {booking_id}")
            raise AuthorizationError("Not authorized to access this booking")
        return booking

    def _get_assigned_booking(self, booking_id: str, worker: Profile) -> Booking:
        booking = self.get_booking(booking_id)
        if booking.assigned_worker_id != worker.id:
            logger.warning(f"⚠️ Worker {worker.id} denied access to booking {booking_id}")
            raise AuthorizationError("This booking is not assigned to you")
        return booking

    def _apply_transition(
        self,
        booking: Booking,
        action: BookingAction,
        worker_id: Optional[str] = None,
        **updates,
    ) -> Booking:
        """Validate `action` against the table and persist it guarded by the current status"""
        current = booking.status
        target = ensure_transition(action, current)

        applied = self.repo.transition(
            self.db, booking.id, current, {"status": target, **updates}, worker_id=worker_id
        )
        if not applied:
            logger.warning(f"⚠️ Stale {action.value} on booking {booking.id} (was {current.value})")
            raise ConflictError(STALE_BOOKING_MESSAGE)

        logger.info(f"✅ Booking {booking.id} {action.value}: {current.value} -> {target.value}")
        return self.get_booking(booking.id)

    # ========================================================================
    # CREATION
    # ========================================================================

    def _creation_fields(self, data: BookingFields) -> dict:
        """Columns shared by signed-in and guest creation"""
        service = self.catalog.find_by_slug(data.serviceSlug)

        return {
            "service_id": service.id if service else None,
            "service_name": data.serviceName or (service.name if service else None) or "Service",
            "service_slug": data.serviceSlug or (service.slug if service else None),
            "sub_service": data.subService,
            "frequency": data.frequency,
            "date": data.date,
            "time_slot": data.timeSlot,
            "address_line": data.addressLine,
            "city": data.city,
            "province": data.province or DEFAULT_PROVINCE,
            "postal": data.postal,
            "country": data.country or DEFAULT_COUNTRY,
            "notes": data.notes,
            "total_amount": data.totalAmount,
            "payment_method": data.paymentMethod or DEFAULT_PAYMENT_METHOD,
            "payment_status": data.paymentStatus or DEFAULT_PAYMENT_STATUS,
            "status": BookingStatus.PENDING,
        }

    def create_for_customer(self, data: BookingCreate, profile: Profile) -> Booking:
        """Create a booking owned by the signed-in customer"""
        logger.info(f"📥 Creating booking for profile {profile.id}")
        booking = self.repo.create_booking(
            self.db, customer_id=profile.id, **self._creation_fields(data)
        )
        logger.info(f"✅ Booking created: {booking.id} ({booking.service_name})")
        return self.get_booking(booking.id)

    def create_for_guest(self, data: GuestBookingCreate) -> Booking:
        """
        Create a booking without an account.

        A profile with the same email is linked for reference only, it does not
        make the booking that customer's.
        """
        linked = self.repo.get_profile_by_email(self.db, data.guestEmail)
        logger.info(f"📥 Creating guest booking for {data.guestEmail}")

        booking = self.repo.create_booking(
            self.db,
            customer_id=linked.id if linked else None,
            guest_email=data.guestEmail,
            guest_name=data.guestName,
            guest_phone=data.guestPhone,
            **self._creation_fields(data),
        )
        logger.info(f"✅ Guest booking created: {booking.id} ({booking.service_name})")
        return self.get_booking(booking.id)

    # ========================================================================
    # CUSTOMER ACTIONS
    # ========================================================================

    def list_mine(self, profile: Profile) -> list[Booking]:
        return self.repo.list_for_customer(self.db, profile.id)

    def get_for_customer(self, booking_id: str, profile: Profile) -> Booking:
        return self._get_owned_booking(booking_id, profile)

    def update_for_customer(
        self, booking_id: str, data: BookingUpdate, profile: Profile
    ) -> Booking:
        """
        Customer edit of descriptive fields.

        A new date is handled as a reschedule and `status` may only be
        CANCELLED, every other status change belongs to workers and admins.
        """
        booking = self._get_owned_booking(booking_id, profile)
        changes = data.model_dump(exclude_unset=True)

        status = changes.pop("status", None)
        if status is not None and status != BookingStatus.CANCELLED:
            raise AuthorizationError("Customers can only change a booking's status to CANCELLED")

        new_date = changes.pop("date", None)

        updates = {}
        for field, value in changes.items():
            column = EDITABLE_FIELDS[field]
            if value is None and column in REQUIRED_COLUMNS:
                continue
            updates[column] = value

        if updates:
            ensure_transition(BookingAction.EDIT, booking.status)
        if new_date is not None:
            ensure_transition(BookingAction.RESCHEDULE, booking.status)
            updates["date"] = new_date

        # Edits ride along with the guarded status change so a lost race saves nothing
        if status == BookingStatus.CANCELLED:
            booking = self._apply_transition(booking, BookingAction.CANCEL, **updates)
        elif new_date is not None:
            booking = self._apply_transition(booking, BookingAction.RESCHEDULE, **updates)
        elif updates:
            if not self.repo.transition(self.db, booking.id, booking.status, updates):
                logger.warning(f"⚠️ Stale edit on booking {booking.id} (was {booking.status.value})")
                raise ConflictError(STALE_BOOKING_MESSAGE)
            booking = self.get_booking(booking.id)

        if updates:
            logger.info(f"✅ Booking {booking.id} edited by customer: {sorted(updates)}")
        return booking

    def cancel(self, booking_id: str, profile: Profile) -> Booking:
        """Cancel is a status change, the row is kept"""
        booking = self._get_owned_booking(booking_id, profile)
        return self._apply_transition(booking, BookingAction.CANCEL)

    def reschedule(
        self, booking_id: str, data: Optional[RescheduleRequest], profile: Profile
    ) -> Booking:
        if data is None or data.date is None:
            raise ValidationError("Date is required for rescheduling")

        booking = self._get_owned_booking(booking_id, profile)
        return self._apply_transition(
            booking,
            BookingAction.RESCHEDULE,
            date=data.date,
            time_slot=data.timeSlot or booking.time_slot,
        )

    def rebook(self, booking_id: str, data: RebookRequest, profile: Profile) -> Booking:
        """Create a fresh PENDING booking from a cancelled one, the original row is untouched"""
        original = self._get_owned_booking(booking_id, profile)
        target = ensure_transition(BookingAction.REBOOK, original.status)

        copied = {column: getattr(original, column) for column in REBOOK_COPIED_COLUMNS}
        booking = self.repo.create_booking(
            self.db,
            **copied,
            date=data.date or original.date,
            time_slot=data.timeSlot or original.time_slot,
            payment_status=DEFAULT_PAYMENT_STATUS,
            status=target,
        )
        logger.info(f"✅ Booking {original.id} rebooked as {booking.id}")
        return self.get_booking(booking.id)

    def toggle_favorite(self, booking_id: str, profile: Profile) -> Booking:
        booking = self._get_owned_booking(booking_id, profile)
        booking = self.repo.update_booking(self.db, booking, is_favorite=not booking.is_favorite)
        logger.info(f"⭐ Booking {booking.id} favorite={booking.is_favorite}")
        return booking

    # ========================================================================
    # WORKER ACTIONS
    # ========================================================================

    def list_for_worker(self, worker: Profile, status: Optional[str] = None) -> dict:
        """The worker's bookings plus per-status buckets and counts"""
        parsed = parse_status(status) if status else None
        bookings = self.repo.list_for_worker(self.db, worker.id, parsed)

        grouped = {
            "assigned": [b for b in bookings if b.status == BookingStatus.ASSIGNED],
            "accepted": [b for b in bookings if b.status == BookingStatus.ACCEPTED],
            "inProgress": [b for b in bookings if b.status == BookingStatus.IN_PROGRESS],
            "completed": [b for b in bookings if b.status == BookingStatus.COMPLETED],
            "cancelled": [b for b in bookings if b.status == BookingStatus.CANCELLED],
        }
        return {
            "bookings": bookings,
            "grouped": grouped,
            "stats": {
                "total": len(bookings),
                "assigned": len(grouped["assigned"]),
                "accepted": len(grouped["accepted"]),
                "inProgress": len(grouped["inProgress"]),
                "completed": len(grouped["completed"]),
            },
        }

    def accept(self, booking_id: str, worker: Profile) -> Booking:
        booking = self._get_assigned_booking(booking_id, worker)
        return self._apply_transition(booking, BookingAction.ACCEPT, worker_id=worker.id)

    def reject(self, booking_id: str, worker: Profile) -> Booking:
        """Hand the job back, the booking returns to the assignment pool"""
        booking = self._get_assigned_booking(booking_id, worker)
        return self._apply_transition(
            booking, BookingAction.REJECT, worker_id=worker.id, assigned_worker_id=None
        )

    def start(self, booking_id: str, worker: Profile) -> Booking:
        booking = self._get_assigned_booking(booking_id, worker)
        return self._apply_transition(booking, BookingAction.START, worker_id=worker.id)

    def complete(self, booking_id: str, worker: Profile) -> Booking:
        booking = self._get_assigned_booking(booking_id, worker)
        return self._apply_transition(booking, BookingAction.COMPLETE, worker_id=worker.id)

    # ========================================================================
    # ADMIN ACTIONS
    # ========================================================================

    def list_all(
        self,
        page: int = 1,
        page_size: int = 20,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> dict:
        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
        parsed = parse_status(status) if status else None
        search = search.strip() if search else None

        bookings, total = self.repo.list_all(self.db, page, page_size, parsed, search)
        return {
            "bookings": bookings,
            "pagination": {
                "page": page,
                "pageSize": page_size,
                "total": total,
                "totalPages": math.ceil(total / page_size) if total else 0,
            },
        }

    def _get_worker(self, worker_id: str) -> Optional[Profile]:
        return self.repo.get_worker(self.db, worker_id)

    def update_status(self, booking_id: str, data: StatusUpdateRequest, admin: Profile) -> Booking:
        """Admin override, any status may be set"""
        booking = self.get_booking(booking_id)

        if data.status in WORKER_STATUSES and not booking.assigned_worker_id:
            raise ValidationError(
                f"Assign a worker before setting status {data.status.value}"
            )

        updates = {"status": data.status}
        if data.notes is not None:
            updates["notes"] = data.notes

        previous = booking.status
        booking = self.repo.update_booking(self.db, booking, **updates)
        logger.info(
            f"✅ Admin {admin.id} set booking {booking.id} status: {previous.value} -> {booking.status.value}"
        )
        return booking

    def assign_worker(self, booking_id: str, data: AssignWorkerRequest, admin: Profile) -> Booking:
        """Set the worker and ASSIGNED together. Overwrites any previous assignment."""
        booking = self.get_booking(booking_id)

        worker = self._get_worker(data.workerId)
        if not worker:
            raise NotFoundError("Worker not found")
        if not worker.is_active:
            raise ValidationError("Worker account is inactive")

        target = ensure_transition(BookingAction.ASSIGN, booking.status)
        previous_worker = booking.assigned_worker_id
        booking = self.repo.update_booking(
            self.db, booking, assigned_worker_id=worker.id, status=target
        )

        if previous_worker and previous_worker != worker.id:
            logger.info(f"🔄 Booking {booking.id} reassigned from {previous_worker} to {worker.id}")
        logger.info(f"✅ Admin {admin.id} assigned worker {worker.id} to booking {booking.id}")
        return booking

    def unassign_worker(self, booking_id: str, admin: Profile) -> Booking:
        booking = self.get_booking(booking_id)
        target = ensure_transition(BookingAction.UNASSIGN, booking.status)

        booking = self.repo.update_booking(
            self.db, booking, assigned_worker_id=None, status=target
        )
        logger.info(
            f"✅ Admin {admin.id} unassigned booking {booking.id}, status {booking.status.value}"
        )
        return booking

    def admin_update(self, booking_id: str, data: AdminBookingUpdate, admin: Profile) -> Booking:
        """
        Admin full edit. Any subset of fields; assigning a worker forces
        ASSIGNED unless a status is given too, a null worker unassigns.
        """
        booking = self.get_booking(booking_id)
        changes = data.model_dump(exclude_unset=True)

        updates = {}
        for field, value in changes.items():
            if field in ("status", "assignedWorkerId"):
                continue
            if field == "date":
                if value is not None:
                    updates["date"] = value
                continue
            column = EDITABLE_FIELDS[field]
            if value is None and column in REQUIRED_COLUMNS:
                continue
            updates[column] = value

        status = changes.get("status")
        if "assignedWorkerId" in changes:
            worker_id = changes["assignedWorkerId"]
            if worker_id:
                worker = self._get_worker(worker_id)
                if not worker:
                    raise ValidationError("Invalid worker ID")
                if not worker.is_active:
                    raise ValidationError("Worker account is inactive")
                updates["assigned_worker_id"] = worker_id
                updates["status"] = status or BookingStatus.ASSIGNED
            else:
                updates["assigned_worker_id"] = None
                updates["status"] = status or ensure_transition(
                    BookingAction.UNASSIGN, booking.status
                )
        elif status is not None:
            updates["status"] = status

        worker_after = updates.get("assigned_worker_id", booking.assigned_worker_id)
        if status in WORKER_STATUSES and not worker_after:
            raise ValidationError(f"Assign a worker before setting status {status.value}")

        booking = self.repo.update_booking(self.db, booking, **updates)
        logger.info(f"✅ Admin {admin.id} edited booking {booking.id}: {sorted(updates)}")
        return booking
