# backend/tablebook/services/reservation_lifecycle.py
"""
Reservation lifecycle state machine.

    PENDING --> CONFIRMED --> COMPLETED
       |            |
       +--> CANCELLED <--+

CANCELLED and COMPLETED are terminal. Only operators and admins move a
reservation; diners create it (PENDING) and nothing else.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from ..core.enums import RoleName
from ..core.exceptions import ForbiddenException, InvalidTransitionException
from ..models.reservation import ReservationStatus
from ..principal import Principal

STAFF_ROLES: FrozenSet[RoleName] = frozenset({RoleName.ADMIN, RoleName.OPERATOR})

LEGAL_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.COMPLETED, ReservationStatus.CANCELLED}),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
}

RESCHEDULABLE_STATUSES: FrozenSet[ReservationStatus] = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.CONFIRMED}
)


class NotificationTarget(str, Enum):
    """Who hears about a lifecycle event."""

    DINER = "diner"
    OPERATOR = "operator"


@dataclass(frozen=True)
class TransitionOutcome:
    previous: ReservationStatus
    current: ReservationStatus
    notify: Optional[NotificationTarget]


def allowed_targets(status: ReservationStatus) -> FrozenSet[ReservationStatus]:
    return LEGAL_TRANSITIONS[status]


def is_legal(current: ReservationStatus, requested: ReservationStatus) -> bool:
    return requested in LEGAL_TRANSITIONS[current]


def notification_for(status: ReservationStatus) -> Optional[NotificationTarget]:
    """Who is told when a reservation enters ``status``."""
    if status == ReservationStatus.PENDING:
        return NotificationTarget.OPERATOR
    if status in (ReservationStatus.CONFIRMED, ReservationStatus.COMPLETED):
        return NotificationTarget.DINER
    return None


def validate_transition(
    principal: Principal,
    current: ReservationStatus,
    requested: ReservationStatus,
) -> TransitionOutcome:
    """
    Validate a status change requested by ``principal``.

    Raises:
        ForbiddenException: the principal's role can never move reservations
        InvalidTransitionException: the move is not an edge of the graph
    """
    if principal.role not in STAFF_ROLES:
        raise ForbiddenException(
            "Only restaurant staff can change a reservation's status",
            details={"from": current.value, "to": requested.value},
        )
    if not is_legal(current, requested):
        raise InvalidTransitionException(current.value, requested.value)
    return TransitionOutcome(previous=current, current=requested, notify=notification_for(requested))


def validate_reschedule(current: ReservationStatus) -> None:
    """Rescheduling is only possible before the reservation reaches a terminal state."""
    if current not in RESCHEDULABLE_STATUSES:
        raise InvalidTransitionException(current.value, current.value)
