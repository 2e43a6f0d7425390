# backend/tablebook/repositories/factory.py
"""
Repository Factory for the Tablebook platform

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from sqlalchemy.orm import Session

from .principal_contact_repository import PrincipalContactRepository
from .reservation_repository import ReservationRepository
from .restaurant_repository import RestaurantRepository, TableRepository
from .review_repository import ReviewRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_restaurant_repository(db: Session) -> RestaurantRepository:
        return RestaurantRepository(db)

    @staticmethod
    def create_table_repository(db: Session) -> TableRepository:
        return TableRepository(db)

    @staticmethod
    def create_reservation_repository(db: Session) -> ReservationRepository:
        return ReservationRepository(db)

    @staticmethod
    def create_review_repository(db: Session) -> ReviewRepository:
        return ReviewRepository(db)

    @staticmethod
    def create_principal_contact_repository(db: Session) -> PrincipalContactRepository:
        return PrincipalContactRepository(db)
