from __future__ import annotations

from typing import Any

from ...services.errors import ServiceError
from .error_presenter import ErrorPresenter
from .notification_center import NotificationCenter

_presenter = ErrorPresenter()


def failure_result(
    notifications: NotificationCenter,
    error: ServiceError,
    *,
    action: str,
    fallback: str,
) -> dict[str, Any]:
    """Toast a failed mutation and build the result dict views return.

    Cancelled requests belong to a closed view: nothing is shown.
    """
    if error.cancelled:
        return {"ok": False, "cancelled": True, "error": None, "field_errors": {}}
    presented = _presenter.present(error, action=action, fallback=fallback)
    notifications.error(presented.user_message, details=presented.details)
    return {
        "ok": False,
        "cancelled": False,
        "error": presented.user_message,
        "field_errors": dict(error.field_errors),
        "category": presented.category,
        "trace_id": error.trace_id,
        "safe_to_retry": presented.safe_to_retry,
    }


def rejected(message: str) -> dict[str, Any]:
    return {"ok": False, "cancelled": False, "error": message, "field_errors": {}}
