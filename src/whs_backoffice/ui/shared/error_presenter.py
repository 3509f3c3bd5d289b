from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ...services.errors import ServiceError


@dataclass(frozen=True)
class PresentedError:
    category: str
    user_message: str
    safe_to_retry: bool
    details: dict[str, Any]


class ErrorPresenter:
    """Turns a ServiceError into the toast text a view shows."""

    _CATEGORY_MESSAGES = {
        "validation": "Please review the highlighted fields and try again.",
        "permission_denied": "You do not have permission to perform this action.",
        "auth": "You are not logged in. Please sign in and try again.",
        "conflict": "This action cannot be completed in the current state.",
        "not_found": "The requested record was not found.",
        "transport": "Temporary connectivity issue. Please retry.",
        "server": "Service error. Try again shortly or contact support.",
        "unknown": "Unexpected error. Please try again.",
    }

    def present(self, error: ServiceError, *, action: str, fallback: str | None = None) -> PresentedError:
        category = error.category if error.category in self._CATEGORY_MESSAGES else "unknown"
        message = error.message or fallback or self._CATEGORY_MESSAGES[category]
        return PresentedError(
            category=category,
            user_message=message,
            safe_to_retry=category in {"transport", "server"},
            details={
                "trace_id": error.trace_id,
                "action": action,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "raw_details": error.details,
                "hint": self._CATEGORY_MESSAGES[category],
            },
        )
