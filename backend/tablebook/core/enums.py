# backend/tablebook/core/enums.py
"""
Core enums for the Tablebook platform.

Role claims carried by an authenticated principal and the actions the
access guard decides on.
"""

from enum import Enum


class RoleName(str, Enum):
    """
    Role claims recognized by the platform.

    Every authenticated principal carries exactly one of these.
    """

    ADMIN = "admin"
    OPERATOR = "restaurant_operator"
    DINER = "diner"


class Action(str, Enum):
    """Mutations (and reads) the access guard can be asked about."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    UPDATE_STATUS = "update_status"
    RESCHEDULE = "reschedule"
    DELETE = "delete"
