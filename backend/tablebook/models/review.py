# backend/tablebook/models/review.py
"""
Review model.

Design notes:
- One review per reservation (DB unique constraint)
- diner_id duplicates the reservation's diner so reads can be scoped without a join
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, UniqueConstraint

from ..core.constants import MAX_REVIEW_COMMENT_LENGTH, REVIEW_UNIQUE_CONSTRAINT_NAME
from ..database import Base
from .types import UTCDateTime, utc_now


class Review(Base):
    """Diner feedback on a completed reservation."""

    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reservation_id = Column(
        Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False
    )
    diner_id = Column(String(64), nullable=False)

    rating = Column(Integer, nullable=False)
    comment = Column(String(MAX_REVIEW_COMMENT_LENGTH), nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("reservation_id", name=REVIEW_UNIQUE_CONSTRAINT_NAME),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        CheckConstraint(
            f"(comment IS NULL) OR (length(comment) <= {MAX_REVIEW_COMMENT_LENGTH})",
            name="ck_reviews_comment_length",
        ),
        Index("idx_reviews_diner", "diner_id"),
    )

    def __repr__(self) -> str:
        return f"<Review {self.id}: reservation={self.reservation_id} rating={self.rating}>"
