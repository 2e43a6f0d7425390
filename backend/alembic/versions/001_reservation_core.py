# backend/alembic/versions/001_reservation_core.py
"""Reservation core - restaurants, tables, reservations, reviews, principal directory

Revision ID: 001_reservation_core
Revises:
Create Date: 2025-01-06 00:00:00.000000

Creates the whole reservation schema. The partial unique index
uq_reservations_active_slot is the storage-level guarantee that a table has
at most one non-cancelled reservation per instant; cancelled rows drop out
of the index so the slot can be booked again.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_reservation_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_SLOT_PREDICATE = sa.text("status <> 'CANCELLED'")


def upgrade() -> None:
    """Create reservation core tables, constraints and indexes."""
    print("Creating reservation core tables...")

    op.create_table(
        "restaurants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("address", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        # NULL owner = unclaimed restaurant
        sa.Column("owner_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_restaurants_owner_id", "restaurants", ["owner_id"])

    op.create_table(
        "dining_tables",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(10), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("restaurant_id", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "capacity >= 1 AND capacity <= 20", name="ck_dining_tables_capacity_range"
        ),
    )
    op.create_index("idx_dining_tables_restaurant", "dining_tables", ["restaurant_id"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("table_id", sa.Integer(), nullable=False),
        sa.Column("diner_id", sa.String(64), nullable=False),
        sa.Column("reserved_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["table_id"], ["dining_tables.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'CANCELLED', 'COMPLETED')",
            name="ck_reservations_status",
        ),
    )
    op.create_index(
        "uq_reservations_active_slot",
        "reservations",
        ["table_id", "reserved_at"],
        unique=True,
        postgresql_where=ACTIVE_SLOT_PREDICATE,
        sqlite_where=ACTIVE_SLOT_PREDICATE,
    )
    op.create_index("idx_reservations_table_time", "reservations", ["table_id", "reserved_at"])
    op.create_index("idx_reservations_diner", "reservations", ["diner_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("reservation_id", sa.Integer(), nullable=False),
        sa.Column("diner_id", sa.String(64), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("reservation_id", name="uq_reviews_reservation"),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        sa.CheckConstraint(
            "(comment IS NULL) OR (length(comment) <= 500)", name="ck_reviews_comment_length"
        ),
    )
    op.create_index("idx_reviews_diner", "reviews", ["diner_id"])

    op.create_table(
        "principal_contacts",
        sa.Column("principal_id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint("principal_id"),
        sa.CheckConstraint(
            "role IN ('admin', 'restaurant_operator', 'diner')", name="ck_principal_contacts_role"
        ),
    )

    print("Reservation core tables created successfully!")


def downgrade() -> None:
    """Drop reservation core tables."""
    print("Dropping reservation core tables...")

    op.drop_table("principal_contacts")

    op.drop_index("idx_reviews_diner", table_name="reviews")
    op.drop_table("reviews")

    op.drop_index("idx_reservations_diner", table_name="reservations")
    op.drop_index("idx_reservations_table_time", table_name="reservations")
    op.drop_index("uq_reservations_active_slot", table_name="reservations")
    op.drop_table("reservations")

    op.drop_index("idx_dining_tables_restaurant", table_name="dining_tables")
    op.drop_table("dining_tables")

    op.drop_index("ix_restaurants_owner_id", table_name="restaurants")
    op.drop_table("restaurants")

    print("Reservation core tables dropped successfully!")
