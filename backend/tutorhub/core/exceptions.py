# backend/tutorhub/core/exceptions.py
"""
Domain-specific exceptions for the TutorHub platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.

Each exception carries a ``kind`` (Forbidden, NotFound, Conflict, Invalid)
so callers outside HTTP can distinguish failure classes without
inspecting status codes.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    kind = "Error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

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
                "kind": self.kind,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input is malformed (bad date, bad duration, schema violation)."""

    kind = "Invalid"
    status_code = HTTP_422_UNPROCESSABLE


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data or configuration."""

    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    kind = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "kind": self.kind,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class DayUnavailableException(ConflictException):
    """Raised when the tutor has not opened the requested weekday."""

    def __init__(self, day_key: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Tutor is not available this day",
            code="DAY_UNAVAILABLE",
            details={"day": day_key, **(details or {})},
        )


class OutsideAvailabilityWindowException(ConflictException):
    """Raised when a requested interval is not contained in the day's window."""

    def __init__(self, window: str, requested: str):
        super().__init__(
            message="Requested time is outside the tutor's availability window",
            code="OUTSIDE_AVAILABILITY_WINDOW",
            details={"window": window, "requested": requested},
        )


class BookingConflictException(ConflictException):
    """Raised when a booking conflicts with existing bookings."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot is already booked",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class InvalidStatusTransitionException(ConflictException):
    """Raised when a session status change is not allowed by the state machine."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            message=f"Cannot change session status from {current} to {requested}",
            code="INVALID_STATUS_TRANSITION",
            details={"current_status": current, "requested_status": requested},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
