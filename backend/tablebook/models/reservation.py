# backend/tablebook/models/reservation.py
"""
Reservation model for the Tablebook platform.

A reservation claims one table at one UTC instant for one diner. The
``uq_reservations_active_slot`` partial unique index is what actually keeps
two active reservations off the same slot; application checks only give a
friendlier message before the write.
"""

from enum import Enum
import logging
from typing import Any

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, text

from ..core.constants import ACTIVE_SLOT_INDEX_NAME
from ..database import Base
from .types import UTCDateTime, utc_now

logger = logging.getLogger(__name__)


class ReservationStatus(str, Enum):
    """Reservation lifecycle statuses."""

    PENDING = "PENDING"  # Default - awaiting the restaurant
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

    @property
    def is_terminal(self) -> bool:
        return self in (ReservationStatus.CANCELLED, ReservationStatus.COMPLETED)

    @property
    def is_active(self) -> bool:
        return self != ReservationStatus.CANCELLED


ACTIVE_SLOT_PREDICATE = text("status <> 'CANCELLED'")


class Reservation(Base):
    """A diner's claim on a table at an instant."""

    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_id = Column(
        Integer, ForeignKey("dining_tables.id", ondelete="CASCADE"), nullable=False
    )
    diner_id = Column(String(64), nullable=False)
    reserved_at = Column(UTCDateTime, nullable=False)
    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING.value)

    # Optimistic concurrency token, bumped by the ORM on every UPDATE
    version = Column(Integer, nullable=False)

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utc_now)

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'CANCELLED', 'COMPLETED')",
            name="ck_reservations_status",
        ),
        Index(
            ACTIVE_SLOT_INDEX_NAME,
            "table_id",
            "reserved_at",
            unique=True,
            postgresql_where=ACTIVE_SLOT_PREDICATE,
            sqlite_where=ACTIVE_SLOT_PREDICATE,
        ),
        Index("idx_reservations_table_time", "table_id", "reserved_at"),
        Index("idx_reservations_diner", "diner_id"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __init__(self, **kwargs: Any) -> None:
        """Initialize as PENDING unless told otherwise."""
        super().__init__(**kwargs)
        if not self.status:
            self.status = ReservationStatus.PENDING.value

    @property
    def status_enum(self) -> ReservationStatus:
        return ReservationStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.status_enum.is_active

    def __repr__(self) -> str:
        return (
            f"<Reservation {self.id}: table={self.table_id}, diner={self.diner_id}, "
            f"at={self.reserved_at}, status={self.status}, v{self.version}>"
        )
