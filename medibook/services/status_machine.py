"""Appointment status transitions."""

from medibook.core.exceptions import InvalidTransitionException
from medibook.schemas.appointments import AppointmentStatus

# Statuses that hold a slot
LIVE_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.RESCHEDULED})

TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.RESCHEDULED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.COMPLETED,
        }
    ),
    AppointmentStatus.RESCHEDULED: frozenset(
        {
            AppointmentStatus.RESCHEDULED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.COMPLETED,
        }
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

# Only cancelled appointments may be removed
DELETABLE_STATUSES = frozenset({AppointmentStatus.CANCELLED})


def is_live(status: AppointmentStatus | str) -> bool:
    """Check whether an appointment in this status occupies its slot."""
    return AppointmentStatus(status) in LIVE_STATUSES


def is_terminal(status: AppointmentStatus | str) -> bool:
    """Check whether no further status change is possible."""
    return not TRANSITIONS[AppointmentStatus(status)]


def can_transition(current: AppointmentStatus | str, target: AppointmentStatus | str) -> bool:
    """Check whether ``current -> target`` is a legal edge."""
    return AppointmentStatus(target) in TRANSITIONS[AppointmentStatus(current)]


def validate_transition(
    current: AppointmentStatus | str,
    target: AppointmentStatus | str,
) -> AppointmentStatus:
    """
    Validate a status change.

    Args:
        current: Status the appointment has now
        target: Requested status

    Returns:
        The target status

    Raises:
        InvalidTransitionException: If the edge is not allowed
    """
    current_status = AppointmentStatus(current)
    target_status = AppointmentStatus(target)
    if target_status not in TRANSITIONS[current_status]:
        raise InvalidTransitionException(current_status.value, target_status.value)
    return target_status


def validate_status_update(
    current: AppointmentStatus | str,
    target: AppointmentStatus | str,
) -> AppointmentStatus:
    """
    Validate a plain status update (no new date or slot).

    Rescheduling needs a new date and slot, so it is only reachable through
    the reschedule operation.
    """
    current_status = AppointmentStatus(current)
    target_status = AppointmentStatus(target)
    if target_status == AppointmentStatus.RESCHEDULED:
        raise InvalidTransitionException(
            current_status.value,
            target_status.value,
            message="Rescheduling requires a new date and time slot",
        )
    return validate_transition(current_status, target_status)


def validate_delete(current: AppointmentStatus | str) -> None:
    """Ensure an appointment may be permanently removed."""
    current_status = AppointmentStatus(current)
    if current_status not in DELETABLE_STATUSES:
        raise InvalidTransitionException(
            current_status.value,
            "deleted",
            message="Only cancelled appointments can be deleted",
        )
