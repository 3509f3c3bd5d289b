from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class UnauthorizedError(ApiError):
    pass


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    @property
    def field_errors(self) -> dict[str, list[str]]:
        if isinstance(self.details, dict):
            return {
                str(key): [str(item) for item in value] if isinstance(value, list) else [str(value)]
                for key, value in self.details.items()
            }
        return {}


class AuthError(UnauthorizedError):
    """Authentication failed or session is invalid."""


class NotLoggedInError(AuthError):
    """No usable access token; raised before any request is sent."""


class PermissionError(ForbiddenError):
    """Authorization denied by the backend role checks."""


class ConflictError(ApiError):
    """409 or conflict-style errors."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""

    @property
    def cancelled(self) -> bool:
        return self.code == "REQUEST_CANCELLED"


class DispatchStateError(ValidationError):
    pass


class DispatchActionForbiddenError(ForbiddenError):
    pass


class BreakageStateError(ValidationError):
    pass


class BreakageActionForbiddenError(ForbiddenError):
    pass
