# backend/tablebook/repositories/restaurant_repository.py
"""
Repositories for restaurants and their tables.

Follows repository pattern: no business logic, DB-only operations.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..core.scopes import ReadScope
from ..models.reservation import Reservation, ReservationStatus
from ..models.restaurant import DiningTable, Restaurant
from .base_repository import BaseRepository, scope_clause

logger = logging.getLogger(__name__)

ACTIVE_UPCOMING_STATUSES = (ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value)


class RestaurantRepository(BaseRepository[Restaurant]):
    """Data access for `Restaurant`."""

    def __init__(self, db: Session):
        super().__init__(db, Restaurant)

    def list_scoped(self, scope: ReadScope, skip: int = 0, limit: int = 100) -> List[Restaurant]:
        try:
            return (
                self.db.query(Restaurant)
                .filter(scope_clause(scope, Restaurant.owner_id))
                .order_by(Restaurant.name, Restaurant.id)
                .offset(skip)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing restaurants: {e}")
            raise RepositoryException(f"Failed to list restaurants: {e}")

    def has_open_reservations(self, restaurant_id: int) -> bool:
        """True when any table of the restaurant has a PENDING or CONFIRMED reservation."""
        try:
            return (
                self.db.query(Reservation.id)
                .join(DiningTable, DiningTable.id == Reservation.table_id)
                .filter(
                    DiningTable.restaurant_id == restaurant_id,
                    Reservation.status.in_(ACTIVE_UPCOMING_STATUSES),
                )
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking reservations for restaurant {restaurant_id}: {e}")
            raise RepositoryException(f"Failed to check restaurant reservations: {e}")


class TableRepository(BaseRepository[DiningTable]):
    """Data access for `DiningTable`."""

    def __init__(self, db: Session):
        super().__init__(db, DiningTable)

    def get_with_owner(self, table_id: int) -> Optional[Tuple[DiningTable, Optional[str]]]:
        """Load a table together with the owner of its restaurant."""
        try:
            row = (
                self.db.query(DiningTable, Restaurant.owner_id)
                .join(Restaurant, Restaurant.id == DiningTable.restaurant_id)
                .filter(DiningTable.id == table_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading table {table_id}: {e}")
            raise RepositoryException(f"Failed to load table: {e}")
        if row is None:
            return None
        return row[0], row[1]

    def lock_tables(self, restaurant_id: Optional[int] = None, table_id: Optional[int] = None) -> List[int]:
        """
        Lock the given table rows (or every table of a restaurant) until commit.

        On PostgreSQL ``FOR UPDATE`` conflicts with the key-share lock a
        reservation insert takes on its table, so no reservation can be added
        to a locked table until the locking transaction ends. SQLite ignores
        the clause and relies on its single writer.
        """
        try:
            query = self.db.query(DiningTable.id)
            if restaurant_id is not None:
                query = query.filter(DiningTable.restaurant_id == restaurant_id)
            if table_id is not None:
                query = query.filter(DiningTable.id == table_id)
            return [row[0] for row in query.order_by(DiningTable.id).with_for_update().all()]
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking tables (restaurant={restaurant_id}, table={table_id}): {e}")
            raise RepositoryException(f"Failed to lock tables: {e}")

    def list_scoped(
        self,
        scope: ReadScope,
        restaurant_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[DiningTable]:
        try:
            query = (
                self.db.query(DiningTable)
                .join(Restaurant, Restaurant.id == DiningTable.restaurant_id)
                .filter(scope_clause(scope, Restaurant.owner_id))
            )
            if restaurant_id is not None:
                query = query.filter(DiningTable.restaurant_id == restaurant_id)
            return query.order_by(DiningTable.restaurant_id, DiningTable.code).offset(skip).limit(limit).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing tables: {e}")
            raise RepositoryException(f"Failed to list tables: {e}")

    def has_open_reservations(self, table_id: int) -> bool:
        try:
            return (
                self.db.query(Reservation.id)
                .filter(
                    Reservation.table_id == table_id,
                    Reservation.status.in_(ACTIVE_UPCOMING_STATUSES),
                )
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking reservations for table {table_id}: {e}")
            raise RepositoryException(f"Failed to check table reservations: {e}")
