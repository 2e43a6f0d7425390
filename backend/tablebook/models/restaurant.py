# backend/tablebook/models/restaurant.py
"""
Restaurant and table models.

A restaurant may be unclaimed (no owner) or owned by one operator principal.
Tables reference their restaurant by foreign key only; listing a
restaurant's tables is a query, not a navigable collection.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String

from ..core.constants import (
    MAX_TABLE_CAPACITY,
    MIN_TABLE_CAPACITY,
    RESTAURANT_ADDRESS_MAX_LENGTH,
    RESTAURANT_NAME_MAX_LENGTH,
    RESTAURANT_PHONE_MAX_LENGTH,
    TABLE_CODE_MAX_LENGTH,
)
from ..database import Base
from .types import UTCDateTime, utc_now


class Restaurant(Base):
    """A venue whose tables can be booked."""

    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(RESTAURANT_NAME_MAX_LENGTH), nullable=False)
    address = Column(String(RESTAURANT_ADDRESS_MAX_LENGTH), nullable=False)
    phone = Column(String(RESTAURANT_PHONE_MAX_LENGTH), nullable=False)

    # Owning operator principal; NULL for unclaimed restaurants
    owner_id = Column(String(64), nullable=True, index=True)

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utc_now)

    def __repr__(self) -> str:
        return f"<Restaurant {self.id}: {self.name!r} owner={self.owner_id}>"


class DiningTable(Base):
    """A bookable table inside a restaurant."""

    __tablename__ = "dining_tables"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(TABLE_CODE_MAX_LENGTH), nullable=False)
    capacity = Column(Integer, nullable=False)
    restaurant_id = Column(
        Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            f"capacity >= {MIN_TABLE_CAPACITY} AND capacity <= {MAX_TABLE_CAPACITY}",
            name="ck_dining_tables_capacity_range",
        ),
        Index("idx_dining_tables_restaurant", "restaurant_id"),
    )

    @property
    def display_info(self) -> str:
        return f"{self.code} (capacity {self.capacity})"

    def __repr__(self) -> str:
        return f"<DiningTable {self.id}: {self.code} cap={self.capacity} restaurant={self.restaurant_id}>"
