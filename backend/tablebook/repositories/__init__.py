# backend/tablebook/repositories/__init__.py
"""
Repository Pattern Implementation for the Tablebook platform

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories (primary-key lookups, scope filters)
- IRepository: Interface defining required methods for all repositories
- RepositoryFactory: Factory for creating repository instances
- ReservationRepository: Slot lookups and role-scoped reservation listings
- ReviewRepository, RestaurantRepository, TableRepository
- PrincipalContactRepository: Read-only contact directory

Usage:
    from tablebook.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_reservation_repository(db)
    holder = repository.find_active_at(table_id, instant)
"""

from .base_repository import BaseRepository, IRepository, scope_clause
from .factory import RepositoryFactory
from .principal_contact_repository import PrincipalContactRepository
from .reservation_repository import ReservationRepository
from .restaurant_repository import RestaurantRepository, TableRepository
from .review_repository import ReviewRepository

__all__ = [
    "BaseRepository",
    "IRepository",
    "PrincipalContactRepository",
    "RepositoryFactory",
    "ReservationRepository",
    "RestaurantRepository",
    "ReviewRepository",
    "TableRepository",
    "scope_clause",
]
