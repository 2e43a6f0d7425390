# backend/tablebook/services/availability_checker.py
"""
Availability Checker Service for the Tablebook platform

Decides whether a table is free at an instant. Two paths produce the same
answer:

- the fast path queries for an active reservation on (table, instant)
  before the write, so callers get a friendly conflict without touching
  the constraint;
- the authoritative path classifies the IntegrityError raised by the
  ``uq_reservations_active_slot`` partial unique index when two writers
  race past the fast path.

Both yield a ``SlotCheck``; a taken slot always becomes
``SlotUnavailableException`` with the same message.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.constants import ACTIVE_SLOT_INDEX_NAME
from ..core.exceptions import SlotUnavailableException
from ..models.types import ensure_utc
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.reservation_repository import ReservationRepository
from .base import BaseService

logger = logging.getLogger(__name__)

SLOT_UNAVAILABLE_MESSAGE = "This table is not available at the requested time"

# SQLite reports unique index violations by column list rather than index name
_SQLITE_SLOT_SIGNATURE = "reservations.table_id, reservations.reserved_at"


@dataclass(frozen=True)
class SlotCheck:
    """Outcome of an availability decision for one (table, instant) slot."""

    table_id: int
    instant: datetime
    available: bool
    source: str = "precheck"
    conflicting_reservation_id: Optional[int] = None

    def details(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {
            "table_id": self.table_id,
            "reserved_at": self.instant.isoformat(),
        }
        if self.conflicting_reservation_id is not None:
            details["conflicting_reservation_id"] = self.conflicting_reservation_id
        return details


def is_slot_violation(error: IntegrityError) -> bool:
    """True when ``error`` was raised by the active-slot uniqueness index."""
    orig = getattr(error, "orig", None)
    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag is not None else None
    if constraint_name:
        return constraint_name == ACTIVE_SLOT_INDEX_NAME

    text = str(orig if orig is not None else error)
    return ACTIVE_SLOT_INDEX_NAME in text or _SQLITE_SLOT_SIGNATURE in text


class AvailabilityChecker(BaseService):
    """
    Service for checking table availability.

    The in-process check is advisory; the database index is the guarantee.
    """

    def __init__(self, db: Session, repository: Optional[ReservationRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_reservation_repository(db)

    @BaseService.measure_operation("check_slot")
    def check_slot(
        self,
        table_id: int,
        instant: datetime,
        excluding_reservation_id: Optional[int] = None,
    ) -> SlotCheck:
        """
        Check (table_id, instant) against active reservations.

        Args:
            table_id: Table to check
            instant: Requested time; naive values are treated as UTC
            excluding_reservation_id: Reservation to ignore (the one being rescheduled)
        """
        instant_utc = ensure_utc(instant)
        holder = self.repository.find_active_at(table_id, instant_utc, excluding_reservation_id)
        if holder is None:
            return SlotCheck(table_id=table_id, instant=instant_utc, available=True)

        self.logger.info(
            f"Slot taken: table {table_id} at {instant_utc.isoformat()} held by reservation {holder.id}"
        )
        return SlotCheck(
            table_id=table_id,
            instant=instant_utc,
            available=False,
            conflicting_reservation_id=holder.id,
        )

    def is_available(
        self,
        table_id: int,
        instant: datetime,
        excluding_reservation_id: Optional[int] = None,
    ) -> bool:
        return self.check_slot(table_id, instant, excluding_reservation_id).available

    def classify_write_error(
        self, error: IntegrityError, table_id: int, instant: datetime
    ) -> Optional[SlotCheck]:
        """
        Map a write-time IntegrityError to a taken ``SlotCheck``.

        Returns None when the error came from some other constraint, so the
        caller can treat it as a generic write failure.
        """
        if not is_slot_violation(error):
            return None
        self.logger.warning(
            f"Lost slot race: table {table_id} at {ensure_utc(instant).isoformat()} "
            f"claimed concurrently"
        )
        return SlotCheck(
            table_id=table_id,
            instant=ensure_utc(instant),
            available=False,
            source="constraint",
        )

    def ensure_available(
        self,
        table_id: int,
        instant: datetime,
        excluding_reservation_id: Optional[int] = None,
    ) -> SlotCheck:
        """Return the check when the slot is free, else raise SlotUnavailableException."""
        check = self.check_slot(table_id, instant, excluding_reservation_id)
        if not check.available:
            raise self.unavailable(check)
        return check

    @staticmethod
    def unavailable(check: SlotCheck) -> SlotUnavailableException:
        """Build the conflict error for a taken slot, whichever path detected it."""
        prometheus_metrics.inc_slot_conflict(check.source)
        return SlotUnavailableException(SLOT_UNAVAILABLE_MESSAGE, details=check.details())
