from __future__ import annotations

from dataclasses import dataclass, field

from whs_client_sdk import to_user_facing_error
from whs_client_sdk.exceptions import (
    ApiError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    NotLoggedInError,
    ServerError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from whs_client_sdk.validation import ClientValidationError


@dataclass(frozen=True)
class ServiceError(RuntimeError):
    """Failure surfaced to views: a readable message plus what the view needs to react."""

    message: str
    category: str = "unknown"
    details: str | None = None
    trace_id: str | None = None
    field_errors: dict[str, str] = field(default_factory=dict)
    cancelled: bool = False
    local: bool = False

    def __str__(self) -> str:
        return self.message


def _category(exc: ApiError) -> str:
    if isinstance(exc, TransportError):
        return "transport"
    if isinstance(exc, (NotLoggedInError, UnauthorizedError)):
        return "auth"
    if isinstance(exc, ForbiddenError):
        return "permission_denied"
    if isinstance(exc, ValidationError):
        return "validation"
    if isinstance(exc, ConflictError):
        return "conflict"
    if isinstance(exc, NotFoundError):
        return "not_found"
    if isinstance(exc, ServerError) or exc.status_code >= 500:
        return "server"
    return "unknown"


def normalize_error(exc: Exception, fallback: str) -> ServiceError:
    if isinstance(exc, ServiceError):
        return exc
    if isinstance(exc, ClientValidationError):
        return ServiceError(
            message=exc.issues[0].reason if exc.issues else fallback,
            category="validation",
            details="CLIENT_VALIDATION",
            field_errors=exc.field_errors,
            local=True,
        )
    if isinstance(exc, ApiError):
        user_facing = to_user_facing_error(exc, fallback)
        field_errors: dict[str, str] = {}
        if isinstance(exc, ValidationError):
            field_errors = {key: ", ".join(messages) for key, messages in exc.field_errors.items()}
        return ServiceError(
            message=user_facing.message,
            category=_category(exc),
            details=user_facing.technical_details,
            trace_id=user_facing.trace_id,
            field_errors=field_errors,
            cancelled=isinstance(exc, TransportError) and exc.cancelled,
        )
    return ServiceError(message=str(exc) or fallback)
