# backend/travelgraph/core/exceptions.py
"""
Domain-specific exceptions for the travelgraph social engine.

These exceptions provide clear, business-focused error messages. Services
raise them; the action boundary turns them into failed results and the HTTP
layer maps their codes to status codes.
"""

from typing import Any, Dict, Optional

from fastapi import status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    default_code = "DOMAIN_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(DomainException):
    """Raised when business validation fails."""

    default_code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    default_code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    default_code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    default_code = "BUSINESS_RULE"
    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when the caller is not a legitimate party to the entity."""

    default_code = "UNAUTHORIZED"
    status_code = status.HTTP_403_FORBIDDEN


class ForbiddenException(DomainException):
    """Raised when an otherwise legitimate action is blocked."""

    default_code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    default_code = "SERVICE_ERROR"


# Specific relationship exceptions


class AlreadyExistsException(ConflictException):
    """Raised when a relationship row already exists for the pair."""

    default_code = "ALREADY_EXISTS"


class AlreadyResolvedException(ConflictException):
    """Raised when a request has already left the pending state."""

    default_code = "ALREADY_RESOLVED"

    def __init__(self, current_status: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Request is already {current_status}.",
            details={"status": current_status},
        )


class SelfReferenceException(ValidationException):
    """Raised when a pair relationship is attempted with oneself."""

    default_code = "SELF_REFERENCE"


class CapacityExceededException(BusinessRuleException):
    """Raised when a trip has no free seats."""

    default_code = "CAPACITY_EXCEEDED"

    def __init__(
        self,
        max_group_size: Optional[int] = None,
        current_group_size: Optional[int] = None,
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message or "This trip is already full.",
            details={
                "max_group_size": max_group_size,
                "current_group_size": current_group_size,
            },
        )


class InvalidStateException(BusinessRuleException):
    """Raised when a transition is not permitted by the state machine."""

    default_code = "INVALID_STATE"


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


_STATUS_BY_CODE: Dict[str, int] = {
    cls.default_code: cls.status_code
    for cls in (
        ValidationException,
        NotFoundException,
        ConflictException,
        BusinessRuleException,
        UnauthorizedException,
        ForbiddenException,
        ServiceException,
        AlreadyExistsException,
        AlreadyResolvedException,
        SelfReferenceException,
        CapacityExceededException,
        InvalidStateException,
    )
}


def status_for_code(code: Optional[str]) -> int:
    """HTTP status for a domain error code; unknown codes map to 500."""
    if not code:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return _STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
