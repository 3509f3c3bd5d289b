from __future__ import annotations

import pytest

from whs_client_sdk.error_mapper import FRIENDLY_DATABASE_MESSAGES, flatten_message, map_error
from whs_client_sdk.exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (401, AuthError),
        (403, PermissionError),
        (404, NotFoundError),
        (400, ValidationError),
        (422, ValidationError),
        (409, ConflictError),
        (429, RateLimitError),
        (503, ServerError),
        (418, ApiError),
    ],
)
def test_status_maps_to_error_type(status: int, expected: type[ApiError]) -> None:
    error = map_error(status, {"message": "nope"}, "trace-1")
    assert type(error) is expected
    assert error.status_code == status
    assert error.trace_id == "trace-1"


def test_validation_details_become_field_errors() -> None:
    error = map_error(422, {"message": "Invalid", "errors": {"name": ["required"], "price": "must be >= 0"}}, None)
    assert isinstance(error, ValidationError)
    assert error.field_errors == {"name": ["required"], "price": ["must be >= 0"]}


def test_message_dict_is_flattened_and_kept_as_details() -> None:
    payload = {"message": {"quantity": ["too large"], "id": "unknown"}}
    error = map_error(400, payload, None)
    assert error.message == "too large, unknown"
    assert error.details == {"quantity": ["too large"], "id": "unknown"}
    assert flatten_message(None) == ""


def test_database_messages_are_replaced() -> None:
    error = map_error(500, {"message": "SQLSTATE: current transaction is aborted"}, None)
    assert isinstance(error, ServerError)
    assert error.code == "DATABASE_TRANSACTION_ERROR"
    assert error.message == FRIENDLY_DATABASE_MESSAGES["DATABASE_TRANSACTION_ERROR"]


def test_plain_500_message_is_prefixed() -> None:
    error = map_error(500, {"message": "boom"}, None)
    assert error.message.startswith("Server error (500): boom.")


def test_payload_trace_id_wins() -> None:
    error = map_error(404, {"message": "missing", "trace_id": "from-body"}, "from-header")
    assert error.trace_id == "from-body"
