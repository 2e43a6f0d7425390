# backend/tablebook/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
All new endpoints should be added here.
"""

from . import reservations, restaurants, reviews

__all__ = [
    "reservations",
    "restaurants",
    "reviews",
]
