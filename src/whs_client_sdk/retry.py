from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from .exceptions import ApiError, AuthError, ForbiddenError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(exc: Exception) -> bool:
    if isinstance(exc, TransportError) and exc.cancelled:
        return False
    if isinstance(exc, (AuthError, ForbiddenError)):
        return False
    return isinstance(exc, (ApiError, ValueError))


def retry_call(
    fn: Callable[[], T],
    *,
    attempts: int = 3,
    delay_seconds: float = 1.0,
    factor: float = 1.5,
    sleeper: Callable[[float], None] = time.sleep,
    label: str = "call",
) -> T:
    """Run ``fn`` up to ``attempts`` times, waiting delay * factor**n between tries."""
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return fn()
        except Exception as exc:
            if attempt >= attempts - 1 or not is_retryable(exc):
                raise
            wait = delay_seconds * (factor**attempt)
            logger.warning(
                "retry_scheduled",
                extra={"label": label, "attempt": attempt + 1, "max_attempts": attempts, "wait_seconds": wait},
            )
            sleeper(wait)
    raise RuntimeError(f"retry_call exhausted without result: {label}")
