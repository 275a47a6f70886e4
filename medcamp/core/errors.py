# medcamp/core/errors.py
"""
Domain errors raised by the auth pipeline and the services.

Each error is an HTTPException carrying its own status code, so it can be
raised anywhere a plain HTTPException would be. The handlers in
`medcamp.main` render every one of them as JSON:

    {"message": "...", ...extra fields}
"""
from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class: status code + human-readable message + optional extras."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Server error"

    def __init__(
        self,
        message: str | None = None,
        headers: dict[str, str] | None = None,
        **extra: Any,
    ):
        super().__init__(
            status_code=type(self).status_code,
            detail=message or type(self).message,
            headers=headers,
        )
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        return {"message": self.detail, **self.extra}


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authorized, token failed"

    def __init__(self, message: str | None = None, **extra: Any):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"}, **extra)


class ProfileUnavailable(AppError):
    """Profile row is missing and could not be provisioned."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = (
        "User profile not found and could not be created. "
        "Please contact support."
    )


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Not authorized, user role not found"

    def __init__(self, role: str | None = None):
        if role:
            super().__init__(
                f"Not authorized, role '{role}' is not allowed "
                "to access this resource",
                role=role,
            )
        else:
            super().__init__(role=None)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation error"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "You already have an active appointment at this date and time."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class StoreError(AppError):
    """Unexpected failure from the database; `error` holds the raw message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Database error"
