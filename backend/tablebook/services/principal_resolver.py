# backend/tablebook/services/principal_resolver.py
"""Lookup of contact details for opaque principal ids."""

from dataclasses import dataclass
import logging
from typing import Optional, Protocol, runtime_checkable

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPrincipal:
    principal_id: str
    email: str
    role: RoleName


@runtime_checkable
class PrincipalResolver(Protocol):
    def resolve(self, principal_id: str) -> Optional[ResolvedPrincipal]:
        ...


class DirectoryPrincipalResolver:
    """Resolves principals from the ``principal_contacts`` table."""

    def __init__(self, db: Session):
        self.repository = RepositoryFactory.create_principal_contact_repository(db)

    def resolve(self, principal_id: str) -> Optional[ResolvedPrincipal]:
        contact = self.repository.get_contact(principal_id)
        if contact is None:
            logger.debug(f"No contact on file for principal {principal_id}")
            return None
        return ResolvedPrincipal(
            principal_id=contact.principal_id,
            email=contact.email,
            role=RoleName(contact.role),
        )
