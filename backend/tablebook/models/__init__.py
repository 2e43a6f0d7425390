"""
Database models for the Tablebook platform.

The models are organized by functionality:
- Restaurants and their tables
- Reservations and their lifecycle status
- Reviews of completed reservations
- Principal contact directory (notification addresses)

Foreign keys point one way only (review -> reservation -> table ->
restaurant); reverse navigation is done with repository queries.
"""

from .principal_contact import PrincipalContact
from .reservation import Reservation, ReservationStatus
from .restaurant import DiningTable, Restaurant
from .review import Review

__all__ = [
    "DiningTable",
    "PrincipalContact",
    "Reservation",
    "ReservationStatus",
    "Restaurant",
    "Review",
]
