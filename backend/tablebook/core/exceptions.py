# backend/tablebook/core/exceptions.py
"""
Domain-specific exceptions for the Tablebook platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input is malformed (e.g. capacity outside 1..20)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when no authenticated principal accompanies the request."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the principal may not read or mutate an existing resource."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        code: Optional[str] = "ACCESS_DENIED",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class DependencyFailureException(ServiceException):
    """Raised when the persistence store or another collaborator fails."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: str = "A required dependency failed",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="DEPENDENCY_FAILURE", details=details)


# Specific business exceptions


class SlotUnavailableException(ConflictException):
    """Raised when a table already has an active reservation at the instant."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This table is not available at the requested time",
            code="SLOT_UNAVAILABLE",
            details=details or {},
        )


class InvalidTransitionException(BusinessRuleException):
    """Raised when a reservation status change is not in the lifecycle graph."""

    def __init__(self, current_status: str, requested_status: str):
        super().__init__(
            message=f"Cannot move a reservation from {current_status} to {requested_status}",
            code="INVALID_TRANSITION",
            details={"from": current_status, "to": requested_status},
        )


class NotEligibleException(BusinessRuleException):
    """Raised when a review is submitted for a reservation that is not completed."""

    def __init__(self, reservation_id: int, status_value: str):
        super().__init__(
            message="Only completed reservations can be reviewed",
            code="NOT_ELIGIBLE",
            details={"reservation_id": reservation_id, "status": status_value},
        )


class AlreadyReviewedException(ConflictException):
    """Raised when a reservation already carries a review."""

    def __init__(self, reservation_id: int):
        super().__init__(
            message="This reservation has already been reviewed",
            code="ALREADY_REVIEWED",
            details={"reservation_id": reservation_id},
        )


class StaleWriteException(ConflictException):
    """Raised when a concurrent edit changed the record since it was read."""

    def __init__(
        self,
        entity: str,
        entity_id: Any,
        *,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ):
        details: Dict[str, Any] = {"entity": entity, "id": entity_id}
        if expected_version is not None:
            details["expected_version"] = expected_version
        if actual_version is not None:
            details["actual_version"] = actual_version
        super().__init__(
            message=f"{entity} {entity_id} was modified by another request; reload and retry",
            code="STALE_WRITE",
            details=details,
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues or query failures.
    """
