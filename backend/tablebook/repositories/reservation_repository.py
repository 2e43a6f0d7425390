# backend/tablebook/repositories/reservation_repository.py
"""
Reservation Repository for the Tablebook platform

Implements all data access operations for reservation management,
including slot lookups for the availability checker and role-scoped
listings.

Slot-claiming writes (``create_reservation`` and ``flush`` after a
reschedule) deliberately let ``IntegrityError`` escape so the service layer
can tell a lost slot race apart from any other write failure.
"""

from datetime import datetime
import logging
from typing import Any, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..core.scopes import ReadScope
from ..models.reservation import Reservation, ReservationStatus
from ..models.restaurant import DiningTable, Restaurant
from ..models.review import Review
from .base_repository import BaseRepository, scope_clause

logger = logging.getLogger(__name__)


class ReservationRepository(BaseRepository[Reservation]):
    """Repository for reservation data access."""

    def __init__(self, db: Session):
        super().__init__(db, Reservation)

    def _with_owner_query(self) -> Any:
        return (
            self.db.query(Reservation, Restaurant.owner_id)
            .join(DiningTable, DiningTable.id == Reservation.table_id)
            .join(Restaurant, Restaurant.id == DiningTable.restaurant_id)
        )

    def get_with_owner(self, reservation_id: int) -> Optional[Tuple[Reservation, Optional[str]]]:
        """Load a reservation together with the owner of the restaurant it belongs to."""
        try:
            row = self._with_owner_query().filter(Reservation.id == reservation_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading reservation {reservation_id}: {e}")
            raise RepositoryException(f"Failed to load reservation: {e}")
        if row is None:
            return None
        return row[0], row[1]

    def find_active_at(
        self,
        table_id: int,
        instant: datetime,
        exclude_reservation_id: Optional[int] = None,
    ) -> Optional[Reservation]:
        """Return the active reservation holding (table_id, instant), if any."""
        try:
            query = self.db.query(Reservation).filter(
                Reservation.table_id == table_id,
                Reservation.reserved_at == instant,
                Reservation.status != ReservationStatus.CANCELLED.value,
            )
            if exclude_reservation_id is not None:
                query = query.filter(Reservation.id != exclude_reservation_id)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking slot for table {table_id} at {instant}: {e}")
            raise RepositoryException(f"Failed to check slot availability: {e}")

    def create_reservation(self, **kwargs: Any) -> Reservation:
        """Insert and flush a reservation; uniqueness violations propagate unchanged."""
        reservation = Reservation(**kwargs)
        self.db.add(reservation)
        self.db.flush()
        return reservation

    def list_scoped(
        self,
        scope: ReadScope,
        status: Optional[ReservationStatus] = None,
        table_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Reservation]:
        try:
            query = (
                self.db.query(Reservation)
                .join(DiningTable, DiningTable.id == Reservation.table_id)
                .join(Restaurant, Restaurant.id == DiningTable.restaurant_id)
                .filter(scope_clause(scope, Restaurant.owner_id, Reservation.diner_id))
            )
            if status is not None:
                query = query.filter(Reservation.status == status.value)
            if table_id is not None:
                query = query.filter(Reservation.table_id == table_id)
            return (
                query.order_by(Reservation.reserved_at, Reservation.id)
                .offset(skip)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing reservations: {e}")
            raise RepositoryException(f"Failed to list reservations: {e}")

    def list_reviewable(self, diner_id: str) -> List[Reservation]:
        """Completed reservations of the diner that have no review yet."""
        try:
            return (
                self.db.query(Reservation)
                .outerjoin(Review, Review.reservation_id == Reservation.id)
                .filter(
                    Reservation.diner_id == diner_id,
                    Reservation.status == ReservationStatus.COMPLETED.value,
                    Review.id.is_(None),
                )
                .order_by(Reservation.reserved_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing reviewable reservations for {diner_id}: {e}")
            raise RepositoryException(f"Failed to list reviewable reservations: {e}")
