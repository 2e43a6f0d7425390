# backend/tablebook/repositories/principal_contact_repository.py
"""Read-only access to the principal contact directory."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.principal_contact import PrincipalContact
from .base_repository import BaseRepository


class PrincipalContactRepository(BaseRepository[PrincipalContact]):
    """Data access for `PrincipalContact`."""

    def __init__(self, db: Session):
        super().__init__(db, PrincipalContact)

    def get_contact(self, principal_id: str) -> Optional[PrincipalContact]:
        return self.get_by_id(principal_id)
