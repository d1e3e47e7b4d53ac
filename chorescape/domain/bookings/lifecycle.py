"""
Booking lifecycle - statuses and the transition table.

Every status change a customer, worker or admin action can make is listed in
_TRANSITIONS. Services call ensure_transition() before persisting anything;
the admin status override and full edit are the only writes that bypass it.
"""

import enum
from typing import Optional

from ...errors import InvalidTransitionError, ValidationError


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    ASSIGNED = "ASSIGNED"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})
OPEN_STATUSES = frozenset(set(BookingStatus) - TERMINAL_STATUSES)
ALL_STATUSES = frozenset(BookingStatus)
# Statuses that only make sense with a worker attached
WORKER_STATUSES = frozenset(
    {BookingStatus.ASSIGNED, BookingStatus.ACCEPTED, BookingStatus.IN_PROGRESS}
)


class BookingAction(str, enum.Enum):
    ASSIGN = "assign"
    UNASSIGN = "unassign"
    ACCEPT = "accept"
    REJECT = "reject"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"
    REBOOK = "rebook"
    EDIT = "edit"


# action -> (statuses the booking may be in, status it ends up in)
# A target of None leaves the status unchanged, UNASSIGN is resolved below.
_TRANSITIONS: dict[BookingAction, tuple[frozenset, Optional[BookingStatus]]] = {
    # Re-assigning an ASSIGNED booking overwrites the previous worker
    BookingAction.ASSIGN: (
        frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.ASSIGNED}),
        BookingStatus.ASSIGNED,
    ),
    BookingAction.UNASSIGN: (ALL_STATUSES, None),
    BookingAction.ACCEPT: (frozenset({BookingStatus.ASSIGNED}), BookingStatus.ACCEPTED),
    BookingAction.REJECT: (frozenset({BookingStatus.ASSIGNED}), BookingStatus.CONFIRMED),
    BookingAction.START: (frozenset({BookingStatus.ACCEPTED}), BookingStatus.IN_PROGRESS),
    BookingAction.COMPLETE: (frozenset({BookingStatus.IN_PROGRESS}), BookingStatus.COMPLETED),
    # Cancel is not blocked for terminal bookings
    BookingAction.CANCEL: (ALL_STATUSES, BookingStatus.CANCELLED),
    BookingAction.RESCHEDULE: (OPEN_STATUSES, BookingStatus.PENDING),
    # Rebook never touches the source row, the new row starts PENDING
    BookingAction.REBOOK: (frozenset({BookingStatus.CANCELLED}), BookingStatus.PENDING),
    # Customer edits of descriptive fields
    BookingAction.EDIT: (OPEN_STATUSES, None),
}

_PAST_TENSE = {
    BookingAction.ASSIGN: "assigned",
    BookingAction.ACCEPT: "accepted",
    BookingAction.REJECT: "rejected",
    BookingAction.START: "started",
    BookingAction.COMPLETE: "completed",
    BookingAction.CANCEL: "cancelled",
    BookingAction.RESCHEDULE: "rescheduled",
    BookingAction.REBOOK: "rebooked",
    BookingAction.EDIT: "edited",
}

_DENIAL_MESSAGES = {
    (BookingAction.RESCHEDULE, BookingStatus.COMPLETED): "Cannot reschedule a completed booking",
    (BookingAction.RESCHEDULE, BookingStatus.CANCELLED): (
        "Cannot reschedule a cancelled booking. Use rebook instead."
    ),
}


def _ordered(statuses) -> list[str]:
    return [s.value for s in BookingStatus if s in statuses]


def allowed_sources(action: BookingAction) -> list[str]:
    return _ordered(_TRANSITIONS[action][0])


def ensure_transition(action: BookingAction, current) -> BookingStatus:
    """
    Check that `action` may run on a booking in status `current`.

    Returns the status the booking moves to. Raises InvalidTransitionError
    naming the current and the required statuses otherwise.
    """
    current = BookingStatus(current)
    sources, target = _TRANSITIONS[action]

    if current not in sources:
        expected = _ordered(sources)
        message = _DENIAL_MESSAGES.get((action, current))
        if not message:
            message = (
                f"Cannot {action.value} booking with status: {current.value}. "
                f"Only {' or '.join(expected)} bookings can be {_PAST_TENSE[action]}."
            )
        raise InvalidTransitionError(message, current=current.value, expected=expected)

    if action == BookingAction.UNASSIGN:
        # Only ASSIGNED bookings go back to the assignment pool
        return BookingStatus.CONFIRMED if current == BookingStatus.ASSIGNED else current
    return target or current


def parse_status(value) -> BookingStatus:
    """Parse a status string case-insensitively"""
    if isinstance(value, BookingStatus):
        return value
    normalized = str(value or "").strip().upper()
    try:
        return BookingStatus(normalized)
    except ValueError:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(s.value for s in BookingStatus)}",
            data=[{"field": "status", "message": f"Unknown status '{value}'"}],
        ) from None
