"""
Scheduling errors raised by the service layer.

Services never build HTTP responses; routers (or the app-level handler in
``glambook.main``) turn these into ``HTTPException`` via ``to_http_exception``.
"""

from typing import Any

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class SchedulingError(Exception):
    """Base class for recoverable booking/availability errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

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
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class InvalidSlotError(SchedulingError):
    """Requested start is not one of the artist's generated slots."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(SchedulingError):
    """Slot is valid but already taken by an active booking."""

    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(SchedulingError):
    status_code = status.HTTP_409_CONFLICT


class ConfigurationError(SchedulingError):
    """Availability config is malformed."""

    status_code = HTTP_422_UNPROCESSABLE


class InvalidDateRangeError(SchedulingError):
    status_code = status.HTTP_400_BAD_REQUEST


class ArtistNotFoundError(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND


class BookingNotFoundError(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(SchedulingError):
    status_code = status.HTTP_403_FORBIDDEN
