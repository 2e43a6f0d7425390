"""Principal abstraction for authenticated callers."""

from __future__ import annotations

from dataclasses import dataclass

from .core.enums import RoleName


@dataclass(frozen=True)
class Principal:
    """The authenticated identity making a request, with its role claim."""

    id: str
    role: RoleName

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN

    @property
    def is_operator(self) -> bool:
        return self.role == RoleName.OPERATOR

    @property
    def is_diner(self) -> bool:
        return self.role == RoleName.DINER
