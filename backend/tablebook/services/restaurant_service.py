# backend/tablebook/services/restaurant_service.py
"""
Restaurant Service for the Tablebook platform

Handles restaurants and their dining tables:
- Operators manage their own restaurants and tables
- Admins manage everything and are the only ones who delete restaurants
- Deletion is refused while PENDING or CONFIRMED reservations exist
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import (
    MAX_TABLE_CAPACITY,
    MIN_TABLE_CAPACITY,
    RESTAURANT_ADDRESS_MAX_LENGTH,
    RESTAURANT_NAME_MAX_LENGTH,
    RESTAURANT_PHONE_MAX_LENGTH,
    TABLE_CODE_MAX_LENGTH,
)
from ..core.enums import Action
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..models.restaurant import DiningTable, Restaurant
from ..principal import Principal
from ..repositories.factory import RepositoryFactory
from .access_guard import (
    GuardedResource,
    ResourceKind,
    ensure_can_access,
    ensure_can_mutate,
    read_scope,
)
from .base import BaseService

logger = logging.getLogger(__name__)

_RESTAURANT_LIMITS = {
    "name": RESTAURANT_NAME_MAX_LENGTH,
    "address": RESTAURANT_ADDRESS_MAX_LENGTH,
    "phone": RESTAURANT_PHONE_MAX_LENGTH,
}


def _clean_text(field: str, value: Any, max_length: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationException(f"{field} is required", details={"field": field})
    value = value.strip()
    if len(value) > max_length:
        raise ValidationException(
            f"{field} cannot exceed {max_length} characters",
            details={"field": field, "length": len(value)},
        )
    return value


def _validate_capacity(capacity: Any) -> int:
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise ValidationException("Capacity must be a whole number", details={"capacity": repr(capacity)})
    if not MIN_TABLE_CAPACITY <= capacity <= MAX_TABLE_CAPACITY:
        raise ValidationException(
            f"Capacity must be between {MIN_TABLE_CAPACITY} and {MAX_TABLE_CAPACITY}",
            details={"capacity": capacity},
        )
    return capacity


class RestaurantService(BaseService):
    """Service layer for restaurants and tables."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_restaurant_repository(db)
        self.table_repository = RepositoryFactory.create_table_repository(db)

    def _load_restaurant(self, restaurant_id: int) -> Restaurant:
        restaurant = self.repository.get_by_id(restaurant_id)
        if restaurant is None:
            raise NotFoundException(
                f"Restaurant {restaurant_id} not found", details={"restaurant_id": restaurant_id}
            )
        return restaurant

    def _load_table(self, table_id: int) -> Tuple[DiningTable, Optional[str]]:
        loaded = self.table_repository.get_with_owner(table_id)
        if loaded is None:
            raise NotFoundException(f"Table {table_id} not found", details={"table_id": table_id})
        return loaded

    # Restaurants

    @BaseService.measure_operation("create_restaurant")
    def create_restaurant(
        self,
        principal: Principal,
        name: str,
        address: str,
        phone: str,
        owner_id: Optional[str] = None,
    ) -> Restaurant:
        """
        Create a restaurant.

        Operators always own what they create; admins may assign any owner
        or leave the restaurant unclaimed.
        """
        if principal.is_operator and owner_id is None:
            owner_id = principal.id

        ensure_can_mutate(principal, GuardedResource.restaurant(owner_id), Action.CREATE)
        values = {
            "name": _clean_text("name", name, RESTAURANT_NAME_MAX_LENGTH),
            "address": _clean_text("address", address, RESTAURANT_ADDRESS_MAX_LENGTH),
            "phone": _clean_text("phone", phone, RESTAURANT_PHONE_MAX_LENGTH),
        }
        self.log_operation("create_restaurant", principal_id=principal.id, owner_id=owner_id)

        with self.transaction():
            restaurant = Restaurant(owner_id=owner_id, **values)
            self.db.add(restaurant)
            self.db.flush()

        self.logger.info(f"Restaurant {restaurant.id} created by {principal.id}")
        return restaurant

    @BaseService.measure_operation("update_restaurant")
    def update_restaurant(self, principal: Principal, restaurant_id: int, **changes: Any) -> Restaurant:
        """Apply ``changes`` (name, address, phone, owner_id). Reassigning the owner is admin-only."""
        restaurant = self._load_restaurant(restaurant_id)
        guarded = GuardedResource.restaurant(restaurant.owner_id, restaurant.id)
        ensure_can_access(principal, guarded)
        ensure_can_mutate(principal, guarded, Action.UPDATE)

        updates: Dict[str, Any] = {}
        for field, max_length in _RESTAURANT_LIMITS.items():
            if changes.get(field) is not None:
                updates[field] = _clean_text(field, changes[field], max_length)
        if "owner_id" in changes and changes["owner_id"] != restaurant.owner_id:
            if not principal.is_admin:
                raise ForbiddenException(
                    "Only admins can reassign a restaurant", details={"restaurant_id": restaurant.id}
                )
            updates["owner_id"] = changes["owner_id"]

        unknown = set(changes) - set(_RESTAURANT_LIMITS) - {"owner_id"}
        if unknown:
            raise ValidationException("Unknown restaurant fields", details={"fields": sorted(unknown)})

        self.log_operation("update_restaurant", principal_id=principal.id, restaurant_id=restaurant_id)
        with self.transaction():
            for field, value in updates.items():
                setattr(restaurant, field, value)
        return restaurant

    @BaseService.measure_operation("delete_restaurant")
    def delete_restaurant(self, principal: Principal, restaurant_id: int) -> None:
        restaurant = self._load_restaurant(restaurant_id)
        guarded = GuardedResource.restaurant(restaurant.owner_id, restaurant.id)
        ensure_can_access(principal, guarded)
        ensure_can_mutate(principal, guarded, Action.DELETE)

        self.log_operation("delete_restaurant", principal_id=principal.id, restaurant_id=restaurant_id)
        with self.transaction():
            # Checked under the table locks so no reservation can slip in before the cascade
            self.table_repository.lock_tables(restaurant_id=restaurant_id)
            if self.repository.has_open_reservations(restaurant_id):
                raise ConflictException(
                    "Restaurant has pending or confirmed reservations",
                    code="ACTIVE_RESERVATIONS",
                    details={"restaurant_id": restaurant_id},
                )
            self.db.delete(restaurant)
        self.logger.info(f"Restaurant {restaurant_id} deleted by {principal.id}")

    @BaseService.measure_operation("get_restaurant")
    def get_restaurant(self, principal: Principal, restaurant_id: int) -> Restaurant:
        restaurant = self._load_restaurant(restaurant_id)
        ensure_can_access(principal, GuardedResource.restaurant(restaurant.owner_id, restaurant.id))
        return restaurant

    @BaseService.measure_operation("list_restaurants")
    def list_restaurants(self, principal: Principal, skip: int = 0, limit: int = 100) -> List[Restaurant]:
        scope = read_scope(principal, ResourceKind.RESTAURANT)
        return self.repository.list_scoped(scope, skip=skip, limit=limit)

    # Tables

    @BaseService.measure_operation("create_table")
    def create_table(self, principal: Principal, restaurant_id: int, code: str, capacity: int) -> DiningTable:
        restaurant = self._load_restaurant(restaurant_id)
        ensure_can_mutate(
            principal, GuardedResource.table(restaurant.owner_id), Action.CREATE
        )
        code = _clean_text("code", code, TABLE_CODE_MAX_LENGTH)
        capacity = _validate_capacity(capacity)

        self.log_operation("create_table", principal_id=principal.id, restaurant_id=restaurant_id)
        with self.transaction():
            table = DiningTable(restaurant_id=restaurant.id, code=code, capacity=capacity)
            self.db.add(table)
            self.db.flush()

        self.logger.info(f"Table {table.id} ({table.display_info}) added to restaurant {restaurant.id}")
        return table

    @BaseService.measure_operation("update_table")
    def update_table(
        self,
        principal: Principal,
        table_id: int,
        code: Optional[str] = None,
        capacity: Optional[int] = None,
    ) -> DiningTable:
        table, owner_id = self._load_table(table_id)
        guarded = GuardedResource.table(owner_id, table.id)
        ensure_can_access(principal, guarded)
        ensure_can_mutate(principal, guarded, Action.UPDATE)

        new_code = _clean_text("code", code, TABLE_CODE_MAX_LENGTH) if code is not None else table.code
        new_capacity = _validate_capacity(capacity) if capacity is not None else table.capacity

        with self.transaction():
            table.code = new_code
            table.capacity = new_capacity
        return table

    @BaseService.measure_operation("delete_table")
    def delete_table(self, principal: Principal, table_id: int) -> None:
        table, owner_id = self._load_table(table_id)
        guarded = GuardedResource.table(owner_id, table.id)
        ensure_can_access(principal, guarded)
        ensure_can_mutate(principal, guarded, Action.DELETE)

        self.log_operation("delete_table", principal_id=principal.id, table_id=table_id)
        with self.transaction():
            self.table_repository.lock_tables(table_id=table_id)
            if self.table_repository.has_open_reservations(table_id):
                raise ConflictException(
                    "Table has pending or confirmed reservations",
                    code="ACTIVE_RESERVATIONS",
                    details={"table_id": table_id},
                )
            self.db.delete(table)

    @BaseService.measure_operation("get_table")
    def get_table(self, principal: Principal, table_id: int) -> DiningTable:
        table, owner_id = self._load_table(table_id)
        ensure_can_access(principal, GuardedResource.table(owner_id, table.id))
        return table

    @BaseService.measure_operation("list_tables")
    def list_tables(
        self,
        principal: Principal,
        restaurant_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[DiningTable]:
        if restaurant_id is not None:
            self._load_restaurant(restaurant_id)
        scope = read_scope(principal, ResourceKind.TABLE)
        return self.table_repository.list_scoped(scope, restaurant_id=restaurant_id, skip=skip, limit=limit)
