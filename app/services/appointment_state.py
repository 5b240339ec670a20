"""Transition rules for appointment status and clinical flow."""

from app.core.exceptions import InvalidTransition
from app.schemas.appointments import AppointmentStatus, FlowStatus

# Allowed status transitions; cancelled is terminal
STATUS_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.CANCELLED}),
    AppointmentStatus.CANCELLED: frozenset(),
}

# Intended visit order. Not enforced: staff may correct a step backwards.
FLOW_ORDER: tuple[FlowStatus, ...] = (
    FlowStatus.CHECKED_IN,
    FlowStatus.VITALS,
    FlowStatus.CONSULTING,
    FlowStatus.COMPLETE,
)


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Whether ``current -> target`` is a legal status change."""
    return target in STATUS_TRANSITIONS[current]


def check_status_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    """
    Validate a status change.

    Raises:
        InvalidTransition: If the change is not allowed
    """
    if not can_transition(current, target):
        raise InvalidTransition(
            f"Cannot change appointment status from {current.value} to {target.value}",
            current=current.value,
            target=target.value,
        )


def check_flow_update(status: AppointmentStatus, target: FlowStatus) -> None:
    """
    Validate a flow update against the appointment status.

    Any flow step may follow any other while the appointment is confirmed.

    Raises:
        InvalidTransition: If the appointment is not confirmed
    """
    if status != AppointmentStatus.CONFIRMED:
        raise InvalidTransition(
            f"Visit flow can only be updated on confirmed appointments (status is {status.value})",
            current=status.value,
            target=target.value,
        )


def is_backward_flow(current: FlowStatus | None, target: FlowStatus) -> bool:
    """Whether ``target`` precedes ``current`` in the intended visit order."""
    if current is None:
        return False
    return FLOW_ORDER.index(target) < FLOW_ORDER.index(current)
