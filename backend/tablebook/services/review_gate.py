# backend/tablebook/services/review_gate.py
"""Eligibility rules for attaching, editing and deleting reviews."""

from ..core.enums import RoleName
from ..core.exceptions import (
    AlreadyReviewedException,
    ForbiddenException,
    NotEligibleException,
)
from ..models.reservation import Reservation, ReservationStatus
from ..models.review import Review
from ..principal import Principal


def can_create_review(principal: Principal, reservation: Reservation, already_reviewed: bool) -> bool:
    """The reservation's own diner, a completed reservation, and no review yet."""
    return (
        principal.role == RoleName.DINER
        and reservation.diner_id == principal.id
        and reservation.status == ReservationStatus.COMPLETED.value
        and not already_reviewed
    )


def can_edit_or_delete(principal: Principal, review: Review) -> bool:
    if principal.role == RoleName.ADMIN:
        return True
    return principal.role == RoleName.DINER and review.diner_id == principal.id


def ensure_can_create_review(
    principal: Principal, reservation: Reservation, already_reviewed: bool
) -> None:
    """
    Raise the specific refusal when ``can_create_review`` does not hold.

    Ownership is checked first so a stranger learns nothing about the
    reservation's status or review.
    """
    if principal.role != RoleName.DINER or reservation.diner_id != principal.id:
        raise ForbiddenException(
            "Only the diner who made this reservation can review it",
            details={"reservation_id": reservation.id},
        )
    if reservation.status != ReservationStatus.COMPLETED.value:
        raise NotEligibleException(reservation.id, reservation.status)
    if already_reviewed:
        raise AlreadyReviewedException(reservation.id)


def ensure_can_edit_or_delete(principal: Principal, review: Review) -> None:
    if not can_edit_or_delete(principal, review):
        raise ForbiddenException(
            "You can only change your own reviews",
            details={"review_id": review.id},
        )
