# backend/tablebook/services/review_service.py
"""
Review Service for the Tablebook platform

Diners review their own completed reservations, once each. Edits and
deletions are open to the review's author and to admins.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.constants import (
    MAX_REVIEW_COMMENT_LENGTH,
    MAX_REVIEW_RATING,
    MIN_REVIEW_RATING,
    REVIEW_UNIQUE_CONSTRAINT_NAME,
)
from ..core.enums import Action
from ..core.exceptions import (
    AlreadyReviewedException,
    DependencyFailureException,
    NotFoundException,
    ValidationException,
)
from ..models.reservation import Reservation
from ..models.review import Review
from ..principal import Principal
from ..repositories.factory import RepositoryFactory
from . import review_gate
from .access_guard import (
    GuardedResource,
    ResourceKind,
    ensure_can_access,
    ensure_can_mutate,
    read_scope,
)
from .base import BaseService

logger = logging.getLogger(__name__)

_UNSET = object()


def _validate_rating(rating: int) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationException("Rating must be a whole number", details={"rating": repr(rating)})
    if not MIN_REVIEW_RATING <= rating <= MAX_REVIEW_RATING:
        raise ValidationException(
            f"Rating must be between {MIN_REVIEW_RATING} and {MAX_REVIEW_RATING}",
            details={"rating": rating},
        )
    return rating


def _validate_comment(comment: Optional[str]) -> Optional[str]:
    if comment is None:
        return None
    comment = comment.strip()
    if len(comment) > MAX_REVIEW_COMMENT_LENGTH:
        raise ValidationException(
            f"Comment cannot exceed {MAX_REVIEW_COMMENT_LENGTH} characters",
            details={"length": len(comment)},
        )
    return comment or None


def _is_duplicate_review(error: IntegrityError) -> bool:
    text = str(getattr(error, "orig", error))
    return REVIEW_UNIQUE_CONSTRAINT_NAME in text or "reviews.reservation_id" in text


class ReviewService(BaseService):
    """Create, edit, delete and list reviews."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_review_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)

    def _load_reservation(self, reservation_id: int) -> Tuple[Reservation, Optional[str]]:
        loaded = self.reservation_repository.get_with_owner(reservation_id)
        if loaded is None:
            raise NotFoundException(
                f"Reservation {reservation_id} not found", details={"reservation_id": reservation_id}
            )
        return loaded

    def _load_review(self, review_id: int) -> Tuple[Review, GuardedResource]:
        loaded = self.repository.get_with_owner(review_id)
        if loaded is None:
            raise NotFoundException(f"Review {review_id} not found", details={"review_id": review_id})
        review, owner_id = loaded
        return review, GuardedResource.review(owner_id, review.diner_id, review.id)

    @BaseService.measure_operation("create_review")
    def create_review(
        self,
        principal: Principal,
        reservation_id: int,
        rating: int,
        comment: Optional[str] = None,
    ) -> Review:
        """
        Attach a review to one of the caller's completed reservations.

        Raises:
            ValidationException: rating outside 1..5 or comment too long
            NotFoundException: reservation does not exist
            ForbiddenException: not the reservation's diner
            NotEligibleException: reservation is not COMPLETED
            AlreadyReviewedException: a review already exists
        """
        self.log_operation("create_review", principal_id=principal.id, reservation_id=reservation_id)

        rating = _validate_rating(rating)
        comment = _validate_comment(comment)

        reservation, owner_id = self._load_reservation(reservation_id)
        already_reviewed = self.repository.exists_for_reservation(reservation.id)
        review_gate.ensure_can_create_review(principal, reservation, already_reviewed)
        ensure_can_mutate(
            principal, GuardedResource.review(owner_id, principal.id), Action.CREATE
        )

        try:
            with self.transaction():
                review = self.repository.create_review(
                    reservation_id=reservation_id,
                    diner_id=principal.id,
                    rating=rating,
                    comment=comment,
                )
        except IntegrityError as exc:
            # Lost the race against a concurrent review of the same reservation
            if _is_duplicate_review(exc):
                raise AlreadyReviewedException(reservation_id) from exc
            raise DependencyFailureException(f"Failed to save review: {exc.orig}") from exc

        self.logger.info(f"Review {review.id} created for reservation {reservation_id} ({rating}/5)")
        return review

    @BaseService.measure_operation("update_review")
    def update_review(
        self,
        principal: Principal,
        review_id: int,
        rating: Optional[int] = None,
        comment: object = _UNSET,
    ) -> Review:
        """Change rating and/or comment. Passing ``comment=None`` clears it."""
        self.log_operation("update_review", principal_id=principal.id, review_id=review_id)

        review, guarded = self._load_review(review_id)
        review_gate.ensure_can_edit_or_delete(principal, review)
        ensure_can_mutate(principal, guarded, Action.UPDATE)

        new_rating = _validate_rating(rating) if rating is not None else review.rating
        new_comment = review.comment if comment is _UNSET else _validate_comment(comment)  # type: ignore[arg-type]

        with self.transaction():
            review.rating = new_rating
            review.comment = new_comment

        return review

    @BaseService.measure_operation("delete_review")
    def delete_review(self, principal: Principal, review_id: int) -> None:
        self.log_operation("delete_review", principal_id=principal.id, review_id=review_id)

        review, guarded = self._load_review(review_id)
        review_gate.ensure_can_edit_or_delete(principal, review)
        ensure_can_mutate(principal, guarded, Action.DELETE)

        with self.transaction():
            self.db.delete(review)

        self.logger.info(f"Review {review_id} deleted by {principal.id}")

    @BaseService.measure_operation("get_review")
    def get_review(self, principal: Principal, review_id: int) -> Review:
        review, guarded = self._load_review(review_id)
        ensure_can_access(principal, guarded)
        return review

    @BaseService.measure_operation("list_reviews")
    def list_reviews(self, principal: Principal, skip: int = 0, limit: int = 100) -> List[Review]:
        scope = read_scope(principal, ResourceKind.REVIEW)
        return self.repository.list_scoped(scope, skip=skip, limit=limit)

    @BaseService.measure_operation("list_reviewable_reservations")
    def list_reviewable_reservations(self, principal: Principal) -> List[Reservation]:
        """The caller's completed reservations that do not have a review yet."""
        if not principal.is_diner:
            return []
        return self.reservation_repository.list_reviewable(principal.id)
