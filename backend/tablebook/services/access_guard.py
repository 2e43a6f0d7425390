# backend/tablebook/services/access_guard.py
"""
Access guard for the Tablebook platform.

Pure decisions about what a principal may read or mutate. Nothing here
touches the database: callers load the resource first (so a missing row is
reported as NotFound), describe it with a ``GuardedResource`` and then ask
the guard. Listing endpoints use ``read_scope`` so that list filters and
single-resource checks come from the same table of rules:

    Resource     Admin        Operator                    Diner
    restaurant   all          own (read/write, no delete) read all
    table        all          own restaurant's tables     read all
    reservation  all          on own tables, status only  own, create only
    review       all          read own restaurant's       own
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.enums import Action, RoleName
from ..core.exceptions import ForbiddenException
from ..core.scopes import ReadScope
from ..principal import Principal


class ResourceKind(str, Enum):
    RESTAURANT = "restaurant"
    TABLE = "table"
    RESERVATION = "reservation"
    REVIEW = "review"


@dataclass(frozen=True)
class GuardedResource:
    """
    What the guard needs to know about one resource instance.

    ``owner_id`` is the owning operator of the restaurant the resource hangs
    off (None for unclaimed restaurants); ``diner_id`` is set for
    reservations and reviews.
    """

    kind: ResourceKind
    owner_id: Optional[str] = None
    diner_id: Optional[str] = None
    resource_id: Optional[int] = None

    @classmethod
    def restaurant(cls, owner_id: Optional[str], resource_id: Optional[int] = None) -> "GuardedResource":
        return cls(ResourceKind.RESTAURANT, owner_id=owner_id, resource_id=resource_id)

    @classmethod
    def table(cls, owner_id: Optional[str], resource_id: Optional[int] = None) -> "GuardedResource":
        return cls(ResourceKind.TABLE, owner_id=owner_id, resource_id=resource_id)

    @classmethod
    def reservation(
        cls, owner_id: Optional[str], diner_id: str, resource_id: Optional[int] = None
    ) -> "GuardedResource":
        return cls(ResourceKind.RESERVATION, owner_id=owner_id, diner_id=diner_id, resource_id=resource_id)

    @classmethod
    def review(
        cls, owner_id: Optional[str], diner_id: str, resource_id: Optional[int] = None
    ) -> "GuardedResource":
        return cls(ResourceKind.REVIEW, owner_id=owner_id, diner_id=diner_id, resource_id=resource_id)


def read_scope(principal: Principal, kind: ResourceKind) -> ReadScope:
    """Rows of ``kind`` the principal is allowed to see."""
    if principal.role == RoleName.ADMIN:
        return ReadScope.everything()

    if principal.role == RoleName.OPERATOR:
        return ReadScope.owned_by(principal.id)

    if principal.role == RoleName.DINER:
        if kind in (ResourceKind.RESTAURANT, ResourceKind.TABLE):
            return ReadScope.everything()
        return ReadScope.dined_by(principal.id)

    return ReadScope.nothing()


def can_access(principal: Principal, resource: GuardedResource) -> bool:
    """Whether the principal may read this resource instance."""
    scope = read_scope(principal, resource.kind)
    return scope.admits(resource.owner_id, resource.diner_id)


def _owns(principal: Principal, resource: GuardedResource) -> bool:
    return resource.owner_id is not None and resource.owner_id == principal.id


def _dines(principal: Principal, resource: GuardedResource) -> bool:
    return resource.diner_id is not None and resource.diner_id == principal.id


def can_mutate(principal: Principal, resource: GuardedResource, action: Action) -> bool:
    """
    Whether the principal may perform ``action`` on this resource instance.

    For CREATE, ``resource`` describes the row about to be created (its
    would-be owner or diner).
    """
    if action == Action.READ:
        return can_access(principal, resource)

    role = principal.role
    kind = resource.kind

    if kind == ResourceKind.RESTAURANT:
        if role == RoleName.ADMIN:
            return True
        if role == RoleName.OPERATOR:
            # Operators cannot delete restaurants, even their own
            return action in (Action.CREATE, Action.UPDATE) and _owns(principal, resource)
        return False

    if kind == ResourceKind.TABLE:
        if role == RoleName.ADMIN:
            return True
        if role == RoleName.OPERATOR:
            return action in (Action.CREATE, Action.UPDATE, Action.DELETE) and _owns(
                principal, resource
            )
        return False

    if kind == ResourceKind.RESERVATION:
        if action == Action.CREATE:
            return role == RoleName.DINER and _dines(principal, resource)
        if role == RoleName.ADMIN:
            return action in (Action.UPDATE_STATUS, Action.RESCHEDULE, Action.UPDATE, Action.DELETE)
        if role == RoleName.OPERATOR:
            return action in (Action.UPDATE_STATUS, Action.DELETE) and _owns(principal, resource)
        return False

    if kind == ResourceKind.REVIEW:
        if action == Action.CREATE:
            return role == RoleName.DINER and _dines(principal, resource)
        if action in (Action.UPDATE, Action.DELETE):
            return role == RoleName.ADMIN or (role == RoleName.DINER and _dines(principal, resource))
        return False

    return False


def ensure_can_access(principal: Principal, resource: GuardedResource) -> None:
    """Raise ForbiddenException unless ``can_access`` holds."""
    if not can_access(principal, resource):
        raise ForbiddenException(
            f"You do not have access to this {resource.kind.value}",
            details={"resource": resource.kind.value, "id": resource.resource_id},
        )


def ensure_can_mutate(principal: Principal, resource: GuardedResource, action: Action) -> None:
    """Raise ForbiddenException unless ``can_mutate`` holds."""
    if not can_mutate(principal, resource, action):
        raise ForbiddenException(
            f"You are not allowed to {action.value.replace('_', ' ')} this {resource.kind.value}",
            details={
                "resource": resource.kind.value,
                "id": resource.resource_id,
                "action": action.value,
            },
        )
