# backend/tablebook/core/scopes.py
"""
Read scopes produced by the access guard.

A scope is a small, composable description of which rows a principal may
see. Repositories translate it to SQL filters; the guard evaluates the same
scope against a single loaded resource, so list and detail reads never
disagree.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ReadScope:
    """
    Row filter for a resource kind.

    ``unrestricted`` admits everything. Otherwise a row is admitted when its
    restaurant is owned by ``owner_id`` or its diner is ``diner_id``; a scope
    with neither set admits nothing.
    """

    unrestricted: bool = False
    owner_id: Optional[str] = None
    diner_id: Optional[str] = None

    @classmethod
    def everything(cls) -> "ReadScope":
        return cls(unrestricted=True)

    @classmethod
    def nothing(cls) -> "ReadScope":
        return cls()

    @classmethod
    def owned_by(cls, owner_id: str) -> "ReadScope":
        return cls(owner_id=owner_id)

    @classmethod
    def dined_by(cls, diner_id: str) -> "ReadScope":
        return cls(diner_id=diner_id)

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and self.owner_id is None and self.diner_id is None

    def admits(self, owner_id: Optional[str], diner_id: Optional[str] = None) -> bool:
        if self.unrestricted:
            return True
        if self.owner_id is not None and owner_id == self.owner_id:
            return True
        if self.diner_id is not None and diner_id == self.diner_id:
            return True
        return False
