"""Domain exceptions raised by the booking core.

Services raise these; the API layer turns them into HTTP responses through
the handler registered in ``app.main``. Nothing here is retried: the caller
must resubmit with different inputs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import status

if TYPE_CHECKING:
    from app.services.availability import Conflict


class BookingError(Exception):
    """Base exception for all booking-domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

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

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}


class ValidationError(BookingError):
    """A required field is missing or malformed. Caller's fault."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(BookingError):
    """Unknown member, resource, booking or voucher id."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BookingError):
    """The request collides with existing state (overlap, hold, maintenance,
    reservation) or violates a payment invariant.
    """

    status_code = status.HTTP_409_CONFLICT

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        conflict: Conflict | None = None,
    ) -> None:
        super().__init__(message, code, details)
        self.conflict = conflict

    @classmethod
    def from_conflict(cls, conflict: Conflict) -> ConflictError:
        """Wrap a structured availability conflict."""
        return cls(
            conflict.message,
            code=conflict.code.value,
            details=dict(conflict.details),
            conflict=conflict,
        )


class InvalidPaymentError(ConflictError):
    """Requested paid amount is inconsistent with the payment status."""
