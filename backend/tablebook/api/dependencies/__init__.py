# backend/tablebook/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_principal
from .database import get_db
from .services import (
    get_booking_service,
    get_notification_service,
    get_restaurant_service,
    get_review_service,
)

__all__ = [
    # Auth
    "get_current_principal",
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_notification_service",
    "get_restaurant_service",
    "get_review_service",
]
