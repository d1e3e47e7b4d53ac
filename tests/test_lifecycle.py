import pytest

from chorescape.domain.bookings.lifecycle import (
    BookingAction,
    BookingStatus,
    allowed_sources,
    ensure_transition,
    parse_status,
)
from chorescape.errors import InvalidTransitionError, ValidationError


@pytest.mark.parametrize(
    "action,current,expected",
    [
        (BookingAction.ASSIGN, BookingStatus.PENDING, BookingStatus.ASSIGNED),
        (BookingAction.ASSIGN, BookingStatus.ASSIGNED, BookingStatus.ASSIGNED),
        (BookingAction.ACCEPT, BookingStatus.ASSIGNED, BookingStatus.ACCEPTED),
        (BookingAction.REJECT, BookingStatus.ASSIGNED, BookingStatus.CONFIRMED),
        (BookingAction.START, BookingStatus.ACCEPTED, BookingStatus.IN_PROGRESS),
        (BookingAction.COMPLETE, BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED),
        (BookingAction.CANCEL, BookingStatus.COMPLETED, BookingStatus.CANCELLED),
        (BookingAction.RESCHEDULE, BookingStatus.ACCEPTED, BookingStatus.PENDING),
        (BookingAction.REBOOK, BookingStatus.CANCELLED, BookingStatus.PENDING),
        (BookingAction.EDIT, BookingStatus.CONFIRMED, BookingStatus.CONFIRMED),
    ],
)
def test_allowed_transitions(action, current, expected):
    assert ensure_transition(action, current) == expected


def test_unassign_returns_assigned_bookings_to_the_pool():
    assert ensure_transition(BookingAction.UNASSIGN, BookingStatus.ASSIGNED) == BookingStatus.CONFIRMED
    assert ensure_transition(BookingAction.UNASSIGN, BookingStatus.IN_PROGRESS) == BookingStatus.IN_PROGRESS


def test_worker_steps_cannot_be_skipped():
    with pytest.raises(InvalidTransitionError) as exc_info:
        ensure_transition(BookingAction.START, BookingStatus.ASSIGNED)

    err = exc_info.value
    assert err.status_code == 400
    assert err.current == "ASSIGNED"
    assert err.expected == ["ACCEPTED"]
    assert err.message == (
        "Cannot start booking with status: ASSIGNED. Only ACCEPTED bookings can be started."
    )


def test_assign_message_lists_every_allowed_status():
    with pytest.raises(InvalidTransitionError) as exc_info:
        ensure_transition(BookingAction.ASSIGN, BookingStatus.COMPLETED)
    assert "Only PENDING or CONFIRMED or ASSIGNED bookings can be assigned." in exc_info.value.message
    assert exc_info.value.data == {
        "currentStatus": "COMPLETED",
        "expectedStatus": ["PENDING", "CONFIRMED", "ASSIGNED"],
    }


def test_reschedule_denials_have_specific_messages():
    with pytest.raises(InvalidTransitionError, match="Use rebook instead"):
        ensure_transition(BookingAction.RESCHEDULE, BookingStatus.CANCELLED)
    with pytest.raises(InvalidTransitionError, match="Cannot reschedule a completed booking"):
        ensure_transition(BookingAction.RESCHEDULE, BookingStatus.COMPLETED)


def test_rebook_only_from_cancelled():
    assert allowed_sources(BookingAction.REBOOK) == ["CANCELLED"]
    with pytest.raises(InvalidTransitionError):
        ensure_transition(BookingAction.REBOOK, BookingStatus.PENDING)


def test_parse_status_is_case_insensitive():
    assert parse_status(" in_progress ") == BookingStatus.IN_PROGRESS


def test_parse_status_rejects_unknown_values():
    with pytest.raises(ValidationError, match="Invalid status. Must be one of: PENDING"):
        parse_status("DONE")
