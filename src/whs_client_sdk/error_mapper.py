from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)

_PDO_MARKERS = ("prepared statement", "pdo_stmt", "database error")
_TRANSACTION_MARKERS = (
    "transaction is aborted",
    "in failed sql transaction",
    "commands ignored until end of transaction",
    "current transaction is aborted",
)
_TYPE_MARKERS = (
    "invalid input syntax for type boolean",
    "invalid text representation",
    "type mismatch",
    "cannot cast",
)

FRIENDLY_DATABASE_MESSAGES = {
    "DATABASE_ERROR": "A database error occurred. Please refresh the page or contact support if this continues.",
    "DATABASE_TRANSACTION_ERROR": "A database transaction error occurred. Please try again or contact support.",
    "DATABASE_TYPE_ERROR": "A database type error occurred. Please check your input or contact support.",
}


def flatten_message(message: object) -> str:
    if isinstance(message, str):
        return message
    if isinstance(message, Mapping):
        parts: list[str] = []
        for value in message.values():
            if isinstance(value, (list, tuple)):
                parts.extend(str(item) for item in value)
            elif value is not None:
                parts.append(str(value))
        return ", ".join(parts)
    return ""


def database_error_code(message: str) -> str | None:
    lowered = message.lower()
    if any(marker in lowered for marker in _PDO_MARKERS):
        return "DATABASE_ERROR"
    if any(marker in lowered for marker in _TRANSACTION_MARKERS):
        return "DATABASE_TRANSACTION_ERROR"
    if any(marker in lowered for marker in _TYPE_MARKERS):
        return "DATABASE_TYPE_ERROR"
    return None


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    payload = payload or {}
    raw_message = payload.get("message")
    message = flatten_message(raw_message) or "An unknown API error occurred."
    details = payload.get("errors") or payload.get("details")
    if details is None and isinstance(raw_message, Mapping):
        details = dict(raw_message)
    payload_trace_id = payload.get("trace_id")
    resolved_trace_id = str(payload_trace_id) if payload_trace_id is not None else trace_id

    db_code = database_error_code(message)
    code = str(payload.get("code") or db_code or "HTTP_ERROR")
    if db_code:
        message = FRIENDLY_DATABASE_MESSAGES[db_code]

    mapped: type[ApiError]
    if status_code in {401}:
        mapped = AuthError
    elif status_code in {403}:
        mapped = PermissionError
    elif status_code in {404}:
        mapped = NotFoundError
    elif status_code in {400, 422} or (details is not None and status_code < 500):
        mapped = ValidationError
    elif status_code == 409:
        mapped = ConflictError
    elif status_code == 429:
        mapped = RateLimitError
    elif status_code >= 500 or db_code:
        mapped = ServerError
    else:
        mapped = ApiError
    if mapped is ServerError and status_code == 500 and not db_code:
        message = (
            f"Server error (500): {message}. The server is experiencing issues. "
            "Please try again later or contact support."
        )
    return mapped(
        code=code,
        message=message,
        details=details,
        trace_id=resolved_trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )
