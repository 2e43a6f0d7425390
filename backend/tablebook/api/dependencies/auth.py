# backend/tablebook/api/dependencies/auth.py
"""
Principal extraction for requests.

Authentication happens upstream; the gateway forwards the verified identity
in two trusted headers. A request without both, or with an unknown role,
is rejected with 401 before any service runs.
"""

import logging
from typing import Optional

from fastapi import Request

from ...core.config import settings
from ...core.enums import RoleName
from ...core.exceptions import UnauthorizedException
from ...principal import Principal

logger = logging.getLogger(__name__)

_ROLE_ALIASES = {
    "admin": RoleName.ADMIN,
    "restaurant_operator": RoleName.OPERATOR,
    "operator": RoleName.OPERATOR,
    "diner": RoleName.DINER,
}


def parse_role(raw: Optional[str]) -> Optional[RoleName]:
    if not raw:
        return None
    return _ROLE_ALIASES.get(raw.strip().lower())


def get_current_principal(request: Request) -> Principal:
    """
    Build the calling Principal from the gateway headers.

    Raises:
        HTTPException: 401 when a header is missing or the role is unknown
    """
    principal_id = (request.headers.get(settings.principal_id_header) or "").strip()
    role = parse_role(request.headers.get(settings.principal_role_header))

    if not principal_id or role is None:
        logger.warning(
            f"Rejected request to {request.url.path}: missing or invalid principal headers"
        )
        raise UnauthorizedException(
            "Authentication required", code="UNAUTHENTICATED"
        ).to_http_exception()

    return Principal(id=principal_id, role=role)
