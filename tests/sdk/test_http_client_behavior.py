from __future__ import annotations

import pytest
import responses

from whs_client_sdk.exceptions import AuthError, ServerError, TransportError, ValidationError
from whs_client_sdk.http_client import NON_JSON_MESSAGE, HttpClient, RetryNotice

BASE = "https://api.example.com"


@responses.activate
def test_get_is_cached_until_a_mutation_invalidates_it(http: HttpClient) -> None:
    responses.add(responses.GET, f"{BASE}/whs/dispatches", json={"value": 1})
    responses.add(responses.GET, f"{BASE}/whs/dispatches", json={"value": 2})
    responses.add(responses.DELETE, f"{BASE}/whs/dispatches/9", json={"status": "success"})

    assert http.request("GET", "/whs/dispatches") == {"value": 1}
    assert http.request("GET", "/whs/dispatches") == {"value": 1}
    http.request("DELETE", "/whs/dispatches/9", invalidate_paths=["/whs/dispatches"])
    assert http.request("GET", "/whs/dispatches") == {"value": 2}
    assert len(responses.calls) == 3


@responses.activate
def test_get_retries_server_errors_with_backoff(http: HttpClient) -> None:
    waits: list[float] = []
    notices: list[RetryNotice] = []
    http.sleeper = waits.append
    http.on_retry = notices.append
    responses.add(responses.GET, f"{BASE}/products", json={"message": "busy"}, status=503)
    responses.add(responses.GET, f"{BASE}/products", json={"data": {"data": []}})

    assert http.request("GET", "/products") == {"data": {"data": []}}
    assert waits == [http.config.retry_backoff_seconds]
    assert notices[0].reason == "HTTP 503"


@responses.activate
def test_database_failures_on_updates_retry_with_linear_delay(http: HttpClient) -> None:
    waits: list[float] = []
    http.sleeper = waits.append
    failed = {"status": "failed", "message": "SQLSTATE[25P02]: current transaction is aborted"}
    responses.add(responses.PUT, f"{BASE}/whs/breakages/4", json=failed, status=500)
    responses.add(responses.PUT, f"{BASE}/whs/breakages/4", json=failed, status=500)
    responses.add(responses.PUT, f"{BASE}/whs/breakages/4", json={"status": "success"})

    assert http.request("PUT", "/whs/breakages/4", json_body={"status": "replaced"}) == {"status": "success"}
    step = http.config.retry_backoff_seconds
    assert waits == [step, step * 2]


@responses.activate
def test_post_is_not_retried(http: HttpClient) -> None:
    responses.add(responses.POST, f"{BASE}/products", json={"message": "busy"}, status=503)
    with pytest.raises(ServerError):
        http.request("POST", "/products", json_body={"name": "x"})
    assert len(responses.calls) == 1


@responses.activate
def test_html_body_is_reported_as_non_json(http: HttpClient) -> None:
    responses.add(
        responses.GET,
        f"{BASE}/stores",
        body="<!DOCTYPE html><html>login</html>",
        status=200,
        content_type="text/html",
    )
    with pytest.raises(ServerError) as exc:
        http.request("GET", "/stores")
    assert exc.value.code == "NON_JSON_RESPONSE"
    assert exc.value.message == NON_JSON_MESSAGE


@responses.activate
def test_failed_envelope_on_200_is_an_error(http: HttpClient) -> None:
    responses.add(
        responses.PATCH,
        f"{BASE}/whs/dispatches/1/acknowledge",
        json={"status": "failed", "message": {"items": ["Received quantity exceeds dispatched"]}},
        status=200,
    )
    with pytest.raises(ValidationError) as exc:
        http.request("PATCH", "/whs/dispatches/1/acknowledge", json_body={"items": []})
    assert exc.value.status_code == 400
    assert exc.value.message == "Received quantity exceeds dispatched"


@responses.activate
def test_unauthorized_maps_to_auth_error_with_trace(http: HttpClient) -> None:
    responses.add(
        responses.GET,
        f"{BASE}/users/1",
        json={"message": "Unauthenticated."},
        status=401,
        headers={"X-Trace-ID": "srv-trace"},
    )
    with pytest.raises(AuthError) as exc:
        http.request("GET", "/users/1")
    assert exc.value.trace_id == "srv-trace"


@responses.activate
def test_context_switch_cancels_in_flight_response(http: HttpClient) -> None:
    def _switch_then_answer(request):
        http.switch_context("dispatch_detail")
        return (200, {}, '{"data": {"id": 1}}')

    responses.add_callback(responses.GET, f"{BASE}/whs/dispatches/1", callback=_switch_then_answer)

    with pytest.raises(TransportError) as exc:
        http.request("GET", "/whs/dispatches/1", context_key="dispatch_detail")
    assert exc.value.cancelled


def test_stale_context_version_is_cancelled_before_dispatch(http: HttpClient) -> None:
    version = http.get_context_version("breakages")
    http.switch_context("breakages")
    with pytest.raises(TransportError) as exc:
        http.request("GET", "/whs/breakages", context_key="breakages", context_version=version)
    assert exc.value.cancelled


@responses.activate
def test_connection_error_becomes_transport_error(http: HttpClient) -> None:
    with pytest.raises(TransportError) as exc:
        http.request("GET", "/stores")
    assert exc.value.code == "TRANSPORT_ERROR"
    assert exc.value.status_code == 0


@responses.activate
def test_gateway_request_id_is_kept_per_operation(http: HttpClient) -> None:
    responses.add(responses.GET, f"{BASE}/stores", json={"data": []}, headers={"X-Request-ID": "gw-1"})

    http.request("GET", "/stores", module="directory", operation="list_stores")

    assert http.trace.trace_id == "gw-1"
    assert http.trace.for_operation("list_stores") == "gw-1"
    assert responses.calls[0].request.headers["X-Trace-ID"]
