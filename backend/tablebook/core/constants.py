# backend/tablebook/core/constants.py
"""Shared constants for the Tablebook platform."""

BRAND_NAME = "Tablebook"

MIN_TABLE_CAPACITY = 1
MAX_TABLE_CAPACITY = 20
MIN_REVIEW_RATING = 1
MAX_REVIEW_RATING = 5
MAX_REVIEW_COMMENT_LENGTH = 500

RESTAURANT_NAME_MAX_LENGTH = 100
RESTAURANT_ADDRESS_MAX_LENGTH = 200
RESTAURANT_PHONE_MAX_LENGTH = 20
TABLE_CODE_MAX_LENGTH = 10

# Name of the partial unique index guarding (table_id, reserved_at) for active reservations
ACTIVE_SLOT_INDEX_NAME = "uq_reservations_active_slot"
REVIEW_UNIQUE_CONSTRAINT_NAME = "uq_reviews_reservation"

API_TITLE = f"{BRAND_NAME} API"
API_DESCRIPTION = f"Backend API for {BRAND_NAME} - table reservations for diners and restaurant operators"
API_VERSION = "1.0.0"
