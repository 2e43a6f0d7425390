# backend/tablebook/services/booking_service.py
"""
Booking Service for the Tablebook platform

Handles all reservation business logic including:
- Creating reservations for diners (PENDING)
- Moving reservations through their lifecycle (staff only)
- Rescheduling to another table or instant (admin only)
- Deleting reservations
- Role-scoped queries

Every operation loads the resource first (NotFound), then asks the access
guard (Forbidden), then checks the slot and the lifecycle, and only then
writes. Notifications go out after the commit and can never fail the
operation.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.enums import Action
from ..core.exceptions import (
    DependencyFailureException,
    DomainException,
    NotFoundException,
    StaleWriteException,
    ValidationException,
)
from ..models.reservation import Reservation, ReservationStatus
from ..models.restaurant import DiningTable, Restaurant
from ..models.types import ensure_utc
from ..principal import Principal
from ..repositories.factory import RepositoryFactory
from . import reservation_lifecycle as lifecycle
from .access_guard import (
    GuardedResource,
    ResourceKind,
    ensure_can_access,
    ensure_can_mutate,
    read_scope,
)
from .availability_checker import AvailabilityChecker
from .base import BaseService
from .notification_service import NotificationService
from .principal_resolver import DirectoryPrincipalResolver

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    """
    Service layer for reservation operations.

    Centralizes all reservation business logic and coordinates
    with the availability checker and notification boundary.
    """

    def __init__(
        self,
        db: Session,
        availability_checker: Optional[AvailabilityChecker] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        super().__init__(db)
        self.repository = RepositoryFactory.create_reservation_repository(db)
        self.table_repository = RepositoryFactory.create_table_repository(db)
        self.restaurant_repository = RepositoryFactory.create_restaurant_repository(db)
        self.availability_checker = availability_checker or AvailabilityChecker(
            db, repository=self.repository
        )
        self.notification_service = notification_service or NotificationService(
            DirectoryPrincipalResolver(db)
        )

    # ------------------------------------------------------------------
    # Loading helpers
    # ------------------------------------------------------------------

    def _load_reservation(self, reservation_id: int) -> Tuple[Reservation, GuardedResource]:
        loaded = self.repository.get_with_owner(reservation_id)
        if loaded is None:
            raise NotFoundException(
                f"Reservation {reservation_id} not found", details={"reservation_id": reservation_id}
            )
        reservation, owner_id = loaded
        return reservation, GuardedResource.reservation(owner_id, reservation.diner_id, reservation.id)

    def _load_table(self, table_id: int) -> Tuple[DiningTable, Optional[str]]:
        loaded = self.table_repository.get_with_owner(table_id)
        if loaded is None:
            raise NotFoundException(f"Table {table_id} not found", details={"table_id": table_id})
        return loaded

    def _load_restaurant(self, restaurant_id: int) -> Restaurant:
        restaurant = self.restaurant_repository.get_by_id(restaurant_id)
        if restaurant is None:
            raise NotFoundException(
                f"Restaurant {restaurant_id} not found", details={"restaurant_id": restaurant_id}
            )
        return restaurant

    @staticmethod
    def _normalize_instant(value: datetime) -> datetime:
        if not isinstance(value, datetime):
            raise ValidationException(
                "reserved_at must be a datetime", details={"reserved_at": repr(value)}
            )
        return ensure_utc(value)

    @staticmethod
    def _check_version(reservation: Reservation, expected_version: Optional[int]) -> None:
        if expected_version is not None and reservation.version != expected_version:
            raise StaleWriteException(
                "Reservation",
                reservation.id,
                expected_version=expected_version,
                actual_version=reservation.version,
            )

    def _slot_claim_failure(
        self, error: IntegrityError, table_id: int, instant: datetime
    ) -> DomainException:
        """
        Map a write-time IntegrityError to the error the caller should see.

        Only called after the transaction has rolled back, with plain values,
        so nothing here touches expired ORM state.
        """
        check = self.availability_checker.classify_write_error(error, table_id, instant)
        if check is not None:
            return self.availability_checker.unavailable(check)
        return DependencyFailureException(
            f"Failed to save reservation: {error.orig}",
            details={"table_id": table_id},
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_reservation")
    def create_reservation(self, principal: Principal, table_id: int, reserved_at: datetime) -> Reservation:
        """
        Reserve ``table_id`` at ``reserved_at`` for the calling diner.

        Raises:
            NotFoundException: table does not exist
            ForbiddenException: caller is not a diner
            ValidationException: malformed instant
            SlotUnavailableException: the slot is already taken (checked or raced)
        """
        self.log_operation(
            "create_reservation", principal_id=principal.id, table_id=table_id, reserved_at=str(reserved_at)
        )

        table, owner_id = self._load_table(table_id)
        ensure_can_mutate(
            principal, GuardedResource.reservation(owner_id, principal.id), Action.CREATE
        )
        instant = self._normalize_instant(reserved_at)
        restaurant = self._load_restaurant(table.restaurant_id)

        # Advisory only; the unique index below is what actually serializes writers
        self.availability_checker.ensure_available(table_id, instant)

        try:
            with self.transaction():
                reservation = self.repository.create_reservation(
                    table_id=table_id,
                    diner_id=principal.id,
                    reserved_at=instant,
                    status=ReservationStatus.PENDING.value,
                )
        except IntegrityError as exc:
            raise self._slot_claim_failure(exc, table_id, instant) from exc

        self.logger.info(
            f"Reservation {reservation.id} created: table {table_id} at {instant.isoformat()} "
            f"for diner {principal.id}"
        )

        self.notification_service.reservation_requested(reservation, table, restaurant)
        return reservation

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @BaseService.measure_operation("update_reservation_status")
    def update_status(
        self,
        principal: Principal,
        reservation_id: int,
        new_status: ReservationStatus,
        expected_version: Optional[int] = None,
    ) -> Reservation:
        """
        Move a reservation to ``new_status``.

        Raises:
            NotFoundException, ForbiddenException, InvalidTransitionException,
            StaleWriteException
        """
        self.log_operation(
            "update_reservation_status",
            principal_id=principal.id,
            reservation_id=reservation_id,
            new_status=new_status.value,
        )

        reservation, guarded = self._load_reservation(reservation_id)
        ensure_can_access(principal, guarded)
        ensure_can_mutate(principal, guarded, Action.UPDATE_STATUS)
        outcome = lifecycle.validate_transition(principal, reservation.status_enum, new_status)
        self._check_version(reservation, expected_version)

        if outcome.notify == lifecycle.NotificationTarget.DINER:
            table, _ = self._load_table(reservation.table_id)
            restaurant = self._load_restaurant(table.restaurant_id)

        with self.transaction():
            reservation.status = outcome.current.value
            try:
                self.db.flush()
            except StaleDataError as exc:
                raise StaleWriteException("Reservation", reservation_id) from exc

        self.logger.info(
            f"Reservation {reservation_id}: {outcome.previous.value} -> {outcome.current.value} "
            f"by {principal.role.value} {principal.id}"
        )

        if outcome.notify == lifecycle.NotificationTarget.DINER:
            if outcome.current == ReservationStatus.CONFIRMED:
                self.notification_service.reservation_confirmed(reservation, table, restaurant)
            else:
                self.notification_service.reservation_completed(reservation, table, restaurant)
        return reservation

    def confirm(self, principal: Principal, reservation_id: int, expected_version: Optional[int] = None) -> Reservation:
        return self.update_status(principal, reservation_id, ReservationStatus.CONFIRMED, expected_version)

    def complete(self, principal: Principal, reservation_id: int, expected_version: Optional[int] = None) -> Reservation:
        return self.update_status(principal, reservation_id, ReservationStatus.COMPLETED, expected_version)

    def cancel(self, principal: Principal, reservation_id: int, expected_version: Optional[int] = None) -> Reservation:
        return self.update_status(principal, reservation_id, ReservationStatus.CANCELLED, expected_version)

    @BaseService.measure_operation("reschedule_reservation")
    def reschedule(
        self,
        principal: Principal,
        reservation_id: int,
        *,
        table_id: Optional[int] = None,
        reserved_at: Optional[datetime] = None,
        expected_version: Optional[int] = None,
    ) -> Reservation:
        """
        Move a non-terminal reservation to another table and/or instant (admin only).

        The new slot is checked excluding the reservation itself; on any
        failure the stored table and instant are left untouched.
        """
        if table_id is None and reserved_at is None:
            raise ValidationException("Provide a new table or a new time to reschedule")

        self.log_operation(
            "reschedule_reservation",
            principal_id=principal.id,
            reservation_id=reservation_id,
            table_id=table_id,
            reserved_at=str(reserved_at) if reserved_at else None,
        )

        reservation, guarded = self._load_reservation(reservation_id)
        ensure_can_access(principal, guarded)
        ensure_can_mutate(principal, guarded, Action.RESCHEDULE)
        lifecycle.validate_reschedule(reservation.status_enum)
        self._check_version(reservation, expected_version)

        target_table_id = reservation.table_id
        if table_id is not None and table_id != reservation.table_id:
            target_table, _ = self._load_table(table_id)
            target_table_id = target_table.id
        target_instant = (
            self._normalize_instant(reserved_at) if reserved_at is not None else reservation.reserved_at
        )

        self.availability_checker.ensure_available(
            target_table_id, target_instant, excluding_reservation_id=reservation.id
        )

        try:
            with self.transaction():
                reservation.table_id = target_table_id
                reservation.reserved_at = target_instant
                try:
                    self.db.flush()
                except StaleDataError as exc:
                    raise StaleWriteException("Reservation", reservation_id) from exc
        except IntegrityError as exc:
            raise self._slot_claim_failure(exc, target_table_id, target_instant) from exc

        self.logger.info(
            f"Reservation {reservation_id} rescheduled to table {target_table_id} "
            f"at {target_instant.isoformat()}"
        )
        return reservation

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @BaseService.measure_operation("delete_reservation")
    def delete_reservation(
        self, principal: Principal, reservation_id: int, expected_version: Optional[int] = None
    ) -> None:
        self.log_operation("delete_reservation", principal_id=principal.id, reservation_id=reservation_id)

        reservation, guarded = self._load_reservation(reservation_id)
        ensure_can_access(principal, guarded)
        ensure_can_mutate(principal, guarded, Action.DELETE)
        self._check_version(reservation, expected_version)

        with self.transaction():
            self.db.delete(reservation)
            try:
                self.db.flush()
            except StaleDataError as exc:
                raise StaleWriteException("Reservation", reservation_id) from exc

        self.logger.info(f"Reservation {reservation_id} deleted by {principal.id}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @BaseService.measure_operation("get_reservation")
    def get_reservation(self, principal: Principal, reservation_id: int) -> Reservation:
        reservation, guarded = self._load_reservation(reservation_id)
        ensure_can_access(principal, guarded)
        return reservation

    @BaseService.measure_operation("list_reservations")
    def list_reservations(
        self,
        principal: Principal,
        status: Optional[ReservationStatus] = None,
        table_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Reservation]:
        """Reservations visible to the principal: all, on own tables, or own."""
        scope = read_scope(principal, ResourceKind.RESERVATION)
        return self.repository.list_scoped(scope, status=status, table_id=table_id, skip=skip, limit=limit)

    def is_available(
        self, table_id: int, reserved_at: datetime, excluding_reservation_id: Optional[int] = None
    ) -> bool:
        self._load_table(table_id)
        return self.availability_checker.is_available(
            table_id, self._normalize_instant(reserved_at), excluding_reservation_id
        )
