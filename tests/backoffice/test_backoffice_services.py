from __future__ import annotations

import json

import pytest
import responses

from whs_backoffice.services.breakage_service import BreakageService
from whs_backoffice.services.dispatch_service import DispatchService
from whs_backoffice.services.errors import ServiceError, normalize_error
from whs_backoffice.services.reference_data_service import ReferenceDataService
from whs_client_sdk.auth_store import AuthStore
from whs_client_sdk.config import load_config
from whs_client_sdk.exceptions import ConflictError, TransportError
from whs_client_sdk.models_breakages import Breakage
from whs_client_sdk.session import ApiSession
from whs_client_sdk.validation import ClientValidationError, ValidationIssue

BASE = "https://api.example.com"


@pytest.fixture
def session(http, tmp_path) -> ApiSession:
    return ApiSession(config=load_config(), auth_store=AuthStore(base_dir=tmp_path), http=http, token="tok")


def test_normalize_error_categories() -> None:
    local = normalize_error(ClientValidationError([ValidationIssue(0, "quantity", "Quantity must be greater than 0")]), "x")
    assert local.local and local.category == "validation"
    assert local.field_errors == {"items[0].quantity": "Quantity must be greater than 0"}

    conflict = normalize_error(
        ConflictError(code="HTTP_ERROR", message="Already exists", details=None, trace_id="t-9", status_code=409), "x"
    )
    assert conflict.category == "conflict"
    assert conflict.trace_id == "t-9"

    cancelled = normalize_error(
        TransportError(code="REQUEST_CANCELLED", message="cancelled", details=None, trace_id=None, status_code=0), "x"
    )
    assert cancelled.cancelled

    assert normalize_error(RuntimeError(""), "Failed to load").message == "Failed to load"


@responses.activate
def test_service_wraps_api_errors(session: ApiSession) -> None:
    responses.add(responses.GET, f"{BASE}/whs/dispatches", json={"message": "Forbidden"}, status=403)
    with pytest.raises(ServiceError) as exc:
        DispatchService(session).list_dispatches({"type": "internal"})
    assert exc.value.category == "permission_denied"
    assert responses.calls[0].request.params == {"type": "internal"}


@responses.activate
def test_closed_context_cancels_late_detail_response(session: ApiSession) -> None:
    service = DispatchService(session)

    def _close_then_answer(request):
        service.close_context("dispatch_detail:7:1")
        return (200, {}, json.dumps({"data": {"id": 7}}))

    responses.add_callback(responses.GET, f"{BASE}/whs/dispatches/7", callback=_close_then_answer)

    with pytest.raises(ServiceError) as exc:
        service.get_dispatch("7", context_key="dispatch_detail:7:1")
    assert exc.value.cancelled


@responses.activate
def test_reference_data_retries_and_reports_partial_failure(session: ApiSession) -> None:
    waits: list[float] = []
    responses.add(responses.GET, f"{BASE}/stores", json={"stores": [{"id": 1, "name": "North"}]})
    responses.add(responses.GET, f"{BASE}/users", json={"message": "down"}, status=503)
    responses.add(
        responses.GET,
        f"{BASE}/products",
        json={"data": {"data": [{"id": 4, "name": "Drill", "stock_quantity": 8}]}},
    )
    session.http.enable_get_cache = False

    result = ReferenceDataService(session, sleeper=waits.append).dispatch_lookups()

    assert [store.name for store in result.values["stores"]] == ["North"]
    assert result.values["users"] == []
    assert result.values["products"][0].stock_quantity == 8
    assert sorted(result.failures) == ["users"]
    assert result.failure_summary() == "Some form data could not be loaded: users"
    assert waits == [1.0, 1.5]


@responses.activate
def test_replacement_dispatch_then_status_update(session: ApiSession) -> None:
    responses.add(responses.POST, f"{BASE}/whs/dispatches", json={"status": "success", "dispatch": {"id": 30}})
    responses.add(responses.PUT, f"{BASE}/whs/breakages/5", json={"status": "success"})
    breakage = Breakage.model_validate(
        {
            "id": 5,
            "breakage_number": "BRK-5",
            "approval_status": "approved",
            "reported_by": 2,
            "items": [{"id": 1, "product_id": 8, "quantity": 1, "cause": "accident", "replacement_requested": True}],
        }
    )

    outcome = BreakageService(session).create_replacement_dispatch(breakage, from_store_id="s1")

    assert outcome.status_updated and outcome.warning is None
    sent = json.loads(responses.calls[0].request.body)
    assert sent["type"] == "internal"
    assert sent["to_user_id"] == "2"
    assert sent["items"][0]["is_returnable"] is False
    assert json.loads(responses.calls[1].request.body) == {"status": "dispatch_initiated"}


@responses.activate
def test_replacement_status_failure_becomes_warning(session: ApiSession) -> None:
    responses.add(responses.POST, f"{BASE}/whs/dispatches", json={"status": "success", "dispatch": {"id": 30}})
    responses.add(responses.PUT, f"{BASE}/whs/breakages/5", json={"message": "boom"}, status=500)
    breakage = Breakage.model_validate(
        {
            "id": 5,
            "approval_status": "approved",
            "reported_by": 2,
            "items": [{"id": 1, "product_id": 8, "quantity": 1, "replacement_requested": True}],
        }
    )

    outcome = BreakageService(session).create_replacement_dispatch(breakage, from_store_id="s1")

    assert outcome.status_updated is False
    assert outcome.dispatch.record.id == "30"
    assert outcome.warning.startswith("Server error (500)")


@responses.activate
def test_mark_dispatch_initiated_sends_only_the_status(session: ApiSession) -> None:
    responses.add(responses.PUT, f"{BASE}/whs/breakages/5", json={"status": "success"})

    BreakageService(session).mark_dispatch_initiated("5")

    assert len(responses.calls) == 1
    assert json.loads(responses.calls[0].request.body) == {"status": "dispatch_initiated"}


def test_replacement_without_store_fails_locally(session: ApiSession) -> None:
    breakage = Breakage.model_validate(
        {"id": 5, "approval_status": "approved", "reported_by": 2, "items": [{"id": 1, "product_id": 8, "quantity": 1, "replacement_requested": True}]}
    )
    with responses.RequestsMock() as rsps:
        with pytest.raises(ServiceError) as exc:
            BreakageService(session).create_replacement_dispatch(breakage, from_store_id=None)
        assert len(rsps.calls) == 0
    assert exc.value.field_errors == {"from_store_id": "From store is required"}
