from __future__ import annotations

import pytest

from whs_client_sdk.exceptions import AuthError, ServerError, TransportError
from whs_client_sdk.retry import is_retryable, retry_call


def _server_error() -> ServerError:
    return ServerError(code="HTTP_ERROR", message="down", details=None, trace_id=None, status_code=503)


def test_retry_call_backs_off_by_factor() -> None:
    waits: list[float] = []
    calls = {"count": 0}

    def flaky() -> str:
        calls["count"] += 1
        if calls["count"] < 3:
            raise _server_error()
        return "ok"

    assert retry_call(flaky, attempts=3, delay_seconds=1.0, factor=1.5, sleeper=waits.append) == "ok"
    assert waits == [1.0, 1.5]


def test_retry_call_raises_last_error_when_exhausted() -> None:
    waits: list[float] = []

    def always_down() -> None:
        raise _server_error()

    with pytest.raises(ServerError):
        retry_call(always_down, attempts=2, sleeper=waits.append)
    assert len(waits) == 1


def test_auth_and_cancellation_are_not_retried() -> None:
    auth = AuthError(code="HTTP_ERROR", message="expired", details=None, trace_id=None, status_code=401)
    cancelled = TransportError(code="REQUEST_CANCELLED", message="x", details=None, trace_id=None, status_code=0)
    assert not is_retryable(auth)
    assert not is_retryable(cancelled)
    assert is_retryable(_server_error())
    assert not is_retryable(KeyError("boom"))

    waits: list[float] = []

    def unauthorized() -> None:
        raise auth

    with pytest.raises(AuthError):
        retry_call(unauthorized, sleeper=waits.append)
    assert waits == []
