"""Pydantic request/response models for the HTTP layer."""

from .reservation import (
    ReservationCreate,
    ReservationReschedule,
    ReservationResponse,
    ReservationStatusUpdate,
)
from .restaurant import (
    RestaurantCreate,
    RestaurantResponse,
    RestaurantUpdate,
    TableCreate,
    TableResponse,
    TableUpdate,
)
from .review import ReviewCreate, ReviewResponse, ReviewUpdate

__all__ = [
    "ReservationCreate",
    "ReservationReschedule",
    "ReservationResponse",
    "ReservationStatusUpdate",
    "RestaurantCreate",
    "RestaurantResponse",
    "RestaurantUpdate",
    "ReviewCreate",
    "ReviewResponse",
    "ReviewUpdate",
    "TableCreate",
    "TableResponse",
    "TableUpdate",
]
