"""
Domain exceptions for appointment handling.

Services raise these; the HTTP layer turns them into JSON error responses
through ``to_http_exception``.
"""

from typing import Any

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "error": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input is malformed or missing required fields."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationException(DomainException):
    """Raised when no verified identity accompanies the request."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the actor is not allowed to touch the resource."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundException(DomainException):
    """Raised when a requested resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when a write collides with an already booked slot."""

    status_code = status.HTTP_409_CONFLICT
