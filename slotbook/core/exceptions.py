"""
Domain exceptions for the booking API.

Services raise these; the API layer turns them into HTTP responses via
``to_http_exception``. Validator rejections (blackout, past date, advance
notice...) are returned as values and never raised.
"""

from typing import Any

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: str | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_http_exception(self) -> HTTPException:
        detail: dict[str, Any] = {"error": self.message}
        if self.details:
            detail["details"] = self.details
        return HTTPException(status_code=self.status_code, detail=detail)


class ValidationException(DomainException):
    """Malformed input: bad date/time strings, invalid schedule, bad slug."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """A template, booking link or booking does not exist (or a reference dangles)."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenException(DomainException):
    status_code = status.HTTP_403_FORBIDDEN


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class SlotTakenError(ConflictException):
    """The storage layer refused a booking because the slot is held by another booking."""

    def __init__(self, message: str = "This time slot is no longer available", details: str | None = None) -> None:
        super().__init__(message, details)


class GoneException(DomainException):
    """The booking can no longer be modified (cancelled or already happened)."""

    status_code = status.HTTP_410_GONE
