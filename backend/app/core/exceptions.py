# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the Jawla platform.

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
    """Raised when business validation fails."""

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
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific scheduling and booking exceptions


class DuplicateSlotException(ConflictException):
    """Raised when a trip already has a slot at the exact date and time."""

    def __init__(self, trip_id: str, slot_date: str, slot_time: str):
        super().__init__(
            message=f"Trip already has a slot on {slot_date} at {slot_time}",
            code="DUPLICATE_SLOT",
            details={"trip_id": trip_id, "date": slot_date, "time": slot_time},
        )


class SlotNotFoundException(NotFoundException):
    """Raised when a booking targets a time the trip does not offer."""

    def __init__(self, trip_id: str, slot_date: str, slot_time: str):
        super().__init__(
            message="No such time available for this trip",
            code="SLOT_NOT_FOUND",
            details={"trip_id": trip_id, "date": slot_date, "time": slot_time},
        )


class SlotTakenException(ConflictException):
    """Raised when the guide is already committed at the requested instant."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time is no longer available",
            code="SLOT_TAKEN",
            details=details or {},
        )


class IllegalTransitionException(ConflictException):
    """Raised when a status change is not permitted by the booking state machine."""

    def __init__(self, current_status: str, requested_status: str, reason: Optional[str] = None):
        super().__init__(
            message=reason
            or f"Booking cannot move from {current_status} to {requested_status}",
            code="ILLEGAL_TRANSITION",
            details={"current_status": current_status, "requested_status": requested_status},
        )


class NotAuthorizedException(ForbiddenException):
    """
    Raised when the actor may not act on a booking.

    The payload never varies with whether the booking exists.
    """

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message=message or "You are not allowed to perform this action",
            code="NOT_AUTHORIZED",
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
