from __future__ import annotations

from dataclasses import dataclass

from .exceptions import ApiError, TransportError
from .validation import ClientValidationError


@dataclass(frozen=True)
class UserFacingError:
    message: str
    details: str | None = None
    trace_id: str | None = None

    @property
    def technical_details(self) -> str | None:
        if self.details:
            return self.details
        return None


def to_user_facing_error(exc: Exception, fallback: str = "Request failed") -> UserFacingError:
    if isinstance(exc, ClientValidationError):
        return UserFacingError(message=exc.issues[0].reason if exc.issues else fallback)
    if not isinstance(exc, ApiError):
        return UserFacingError(message=fallback, details=str(exc) or None)
    primary = exc.message.strip() or fallback
    details = f"{exc.code} (HTTP {exc.status_code})"
    if exc.details and not isinstance(exc, TransportError):
        details = f"{details}: {exc.details}"
    return UserFacingError(message=primary, details=details, trace_id=exc.trace_id)
