# backend/tablebook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.notification_service import NotificationService
from ...services.principal_resolver import DirectoryPrincipalResolver
from ...services.restaurant_service import RestaurantService
from ...services.review_service import ReviewService
from .database import get_db

logger = logging.getLogger(__name__)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """
    Get notification service instance.

    Recipients are looked up in the principal directory on the request's
    session; delivery uses the process-wide worker pool.
    """
    return NotificationService(DirectoryPrincipalResolver(db))


def get_booking_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingService:
    """Get BookingService instance with proper dependencies."""
    return BookingService(db, notification_service=notification_service)


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


def get_restaurant_service(db: Session = Depends(get_db)) -> RestaurantService:
    return RestaurantService(db)
