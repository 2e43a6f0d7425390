# backend/tablebook/repositories/review_repository.py
"""
Repository for reviews.

Follows repository pattern: no business logic, DB-only operations.
"""

import logging
from typing import Any, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..core.scopes import ReadScope
from ..models.reservation import Reservation
from ..models.restaurant import DiningTable, Restaurant
from ..models.review import Review
from .base_repository import BaseRepository, scope_clause

logger = logging.getLogger(__name__)


class ReviewRepository(BaseRepository[Review]):
    """Data access for `Review`."""

    def __init__(self, db: Session):
        super().__init__(db, Review)

    def _scoped_query(self) -> Any:
        return (
            self.db.query(Review, Restaurant.owner_id)
            .join(Reservation, Reservation.id == Review.reservation_id)
            .join(DiningTable, DiningTable.id == Reservation.table_id)
            .join(Restaurant, Restaurant.id == DiningTable.restaurant_id)
        )

    def create_review(self, **kwargs: Any) -> Review:
        """Insert and flush; a duplicate for the same reservation raises IntegrityError."""
        review = Review(**kwargs)
        self.db.add(review)
        self.db.flush()
        return review

    def exists_for_reservation(self, reservation_id: int) -> bool:
        try:
            return (
                self.db.query(Review.id).filter(Review.reservation_id == reservation_id).first()
                is not None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking review for reservation {reservation_id}: {e}")
            raise RepositoryException(f"Failed to check review existence: {e}")

    def get_with_owner(self, review_id: int) -> Optional[Tuple[Review, Optional[str]]]:
        try:
            row = self._scoped_query().filter(Review.id == review_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading review {review_id}: {e}")
            raise RepositoryException(f"Failed to load review: {e}")
        if row is None:
            return None
        return row[0], row[1]

    def list_scoped(self, scope: ReadScope, skip: int = 0, limit: int = 100) -> List[Review]:
        try:
            rows = (
                self._scoped_query()
                .filter(scope_clause(scope, Restaurant.owner_id, Review.diner_id))
                .order_by(Review.created_at.desc(), Review.id.desc())
                .offset(skip)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing reviews: {e}")
            raise RepositoryException(f"Failed to list reviews: {e}")
        return [row[0] for row in rows]
