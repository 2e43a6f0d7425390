"""
Base Repository Pattern for the Tablebook platform

Provides the foundation for all repository classes with:
- Primary-key lookups
- Type safety with generics
- Translation of AccessGuard read scopes into SQL filters

Transactions are managed by the service layer; repositories only flush.
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import false, or_, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..core.scopes import ReadScope

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class IRepository(ABC, Generic[T]):
    """Abstract repository interface shared by every repository."""

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[T]:
        """
        Retrieve an entity by its primary key.

        Returns:
            The entity if found, None otherwise
        """


class BaseRepository(IRepository[T]):
    """
    Concrete base repository implementation.

    Attributes:
        db: SQLAlchemy session
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: Any) -> Optional[T]:
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")


def scope_clause(scope: ReadScope, owner_column: Any, diner_column: Any = None) -> Any:
    """
    Translate a ``ReadScope`` into a SQL filter expression.

    Returns ``true()`` for unrestricted scopes so callers can always pass the
    result to ``Query.filter``.
    """
    if scope.unrestricted:
        return true()
    clauses = []
    if scope.owner_id is not None:
        clauses.append(owner_column == scope.owner_id)
    if scope.diner_id is not None and diner_column is not None:
        clauses.append(diner_column == scope.diner_id)
    if not clauses:
        return false()
    return or_(*clauses)
