from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from whs_backoffice.logging_setup import ActionLog
from whs_backoffice.services.errors import ServiceError
from whs_backoffice.services.permissions_service import (
    DISPATCH_CREATE,
    DISPATCH_UPDATE,
    DISPATCH_VIEW,
    PermissionGate,
)
from whs_backoffice.services.reference_data_service import LookupResult
from whs_backoffice.ui.dispatch.dispatch_delete_view import DispatchDeleteView
from whs_backoffice.ui.dispatch.dispatch_detail_view import STALE_DISPATCH_MESSAGE, DispatchDetailView
from whs_backoffice.ui.dispatch.dispatch_form_view import DispatchFormView
from whs_backoffice.ui.dispatch.dispatch_list_view import DispatchListView
from whs_backoffice.ui.dispatch.dispatch_return_view import DispatchReturnView
from whs_client_sdk.models_dispatch import Dispatch, DispatchListResponse, DispatchMutationResponse
from whs_client_sdk.models_products import Product

CANCELLED = ServiceError(message="Request cancelled due to context switch", category="transport", cancelled=True)


def _dispatch(dispatch_id: str = "1", **overrides: Any) -> Dispatch:
    data = {
        "id": dispatch_id,
        "dispatch_number": f"DSP-{dispatch_id}",
        "to_entity": "warehouse",
        "dispatch_items": [
            {"id": "10", "quantity": 4, "received_quantity": 0, "is_returnable": True, "product": {"name": "Drill"}},
            {"id": "11", "quantity": 2, "received_quantity": 0},
        ],
    }
    data.update(overrides)
    return Dispatch.model_validate(data)


def _received(dispatch_id: str = "1") -> Dispatch:
    return _dispatch(
        dispatch_id,
        dispatch_items=[
            {"id": "10", "quantity": 4, "received_quantity": 4, "is_returnable": True},
            {"id": "11", "quantity": 2, "received_quantity": 2},
        ],
    )


def _gate(*keys: str) -> PermissionGate:
    return PermissionGate([{"key": key, "allowed": True} for key in keys])


@dataclass
class FakeDispatchService:
    dispatches: list[Dispatch] = field(default_factory=list)
    fresh: Dispatch | None = None
    error: ServiceError | None = None
    mutation: DispatchMutationResponse | None = None
    on_call: Callable[[], None] | None = None
    calls: list[tuple[str, Any]] = field(default_factory=list)
    closed: list[str] = field(default_factory=list)

    def _maybe_fail(self) -> None:
        if self.on_call:
            self.on_call()
        if self.error:
            raise self.error

    def list_dispatches(self, filters=None) -> DispatchListResponse:
        self.calls.append(("list", filters))
        self._maybe_fail()
        return DispatchListResponse.model_validate(
            {"dispatches": {"data": [row.model_dump() for row in self.dispatches], "total": len(self.dispatches)}}
        )

    def get_dispatch(self, dispatch_id, *, context_key=None) -> Dispatch:
        self.calls.append(("get", context_key))
        self._maybe_fail()
        return self.fresh

    def acknowledge_receipt(self, dispatch_id, lines, *, current=None, context_key=None):
        self.calls.append(("acknowledge", lines))
        self._maybe_fail()
        return self.mutation

    def return_items(self, dispatch_id, lines, *, current=None, context_key=None):
        self.calls.append(("return", lines))
        self._maybe_fail()
        return self.mutation

    def mark_items_returned(self, dispatch_id, lines, *, current=None, context_key=None):
        self.calls.append(("mark_returned", lines))
        self._maybe_fail()
        return self.mutation

    def create_dispatch(self, payload, *, stock_levels=None, context_key=None):
        self.calls.append(("create", (payload, stock_levels)))
        self._maybe_fail()
        return self.mutation

    def update_dispatch(self, dispatch_id, payload, *, current=None, stock_levels=None, context_key=None):
        self.calls.append(("update", payload))
        self._maybe_fail()
        return self.mutation

    def delete_dispatch(self, dispatch_id, *, context_key=None):
        self.calls.append(("delete", dispatch_id))
        self._maybe_fail()
        return self.mutation or DispatchMutationResponse(status="success")

    def close_context(self, context_key: str) -> None:
        self.closed.append(context_key)


@dataclass
class FakeLookups:
    result: LookupResult

    def dispatch_lookups(self) -> LookupResult:
        return self.result


def test_list_without_permission_never_calls_service() -> None:
    service = FakeDispatchService()
    view = DispatchListView(service=service, gate=_gate())
    assert view.load() is False
    assert service.calls == []
    assert view.render()["view_state"]["status"] == "no_permission"


def test_list_rows_derive_status_and_actions(timers) -> None:
    service = FakeDispatchService(dispatches=[_dispatch("1"), _received("2")])
    view = DispatchListView(service=service, gate=_gate(DISPATCH_VIEW, DISPATCH_UPDATE), timer_factory=timers)
    assert view.load({"type": "internal"})

    rows = {row["id"]: row for row in view.render()["rows"]}
    assert rows["1"]["status"] == "Pending"
    assert rows["1"]["actions"]["can_acknowledge"] and rows["1"]["actions"]["can_delete"]
    assert rows["2"]["status"] == "Received"
    assert rows["2"]["progress"] == 100
    assert not rows["2"]["actions"]["can_edit"]
    assert view.render()["stats"] == {"total": 2, "pending": 1, "completed": 1, "with_returns": 0}


def test_list_load_failure_toasts_and_clears_loading() -> None:
    service = FakeDispatchService(error=ServiceError(message="Failed to load dispatches", trace_id="t-1"))
    view = DispatchListView(service=service, gate=_gate(DISPATCH_VIEW))
    assert view.load() is False
    assert view.is_loading is False
    assert view.notifications.last()["message"] == "Failed to load dispatches"
    assert view.render()["view_state"]["status"] == "fatal_error"


def test_list_search_is_debounced_and_cancelled_on_close(timers) -> None:
    service = FakeDispatchService(dispatches=[_dispatch("1"), _dispatch("2", to_entity="store")])
    view = DispatchListView(service=service, gate=_gate(DISPATCH_VIEW), timer_factory=timers)
    view.load()

    view.search("stor")
    assert view.render()["search_pending"]
    assert len(view.rows()) == 2
    timers.last.fire()
    assert [row["id"] for row in view.rows()] == ["2"]

    view.search("warehouse")
    view.close()
    timers.last.fn()
    assert [row["id"] for row in view.rows()] == ["2"]


def test_detail_open_refreshes_from_server() -> None:
    service = FakeDispatchService(fresh=_received())
    view = DispatchDetailView(service=service, gate=_gate(DISPATCH_VIEW, DISPATCH_UPDATE))
    assert view.open(_dispatch())
    assert view.render()["dispatch"]["status"] == "Received"
    assert service.calls[0][1].startswith("dispatch_detail:1:")


def test_detail_refresh_failure_keeps_row_as_stale() -> None:
    service = FakeDispatchService(error=ServiceError(message="boom", category="server"))
    view = DispatchDetailView(service=service, gate=_gate(DISPATCH_VIEW))
    assert view.open(_dispatch()) is False

    rendered = view.render()
    assert rendered["stale"] is True
    assert rendered["dispatch"]["id"] == "1"
    assert rendered["view_state"]["status"] == "stale"
    assert view.notifications.last()["level"] == "warning"
    assert view.notifications.last()["message"] == STALE_DISPATCH_MESSAGE


def test_acknowledge_applies_returned_dispatch() -> None:
    service = FakeDispatchService(fresh=_dispatch(), mutation=DispatchMutationResponse(status="success", dispatch=_received()))
    view = DispatchDetailView(service=service, gate=_gate(DISPATCH_VIEW, DISPATCH_UPDATE))
    view.open(_dispatch())
    assert view.ack_lines == {"10": 4, "11": 2}
    view.set_received("11", 0)

    result = view.acknowledge()

    assert result["ok"]
    assert service.calls[-1] == ("acknowledge", [{"id": "10", "received_quantity": 4}, {"id": "11", "received_quantity": 0}])
    assert view.render()["dispatch"]["status"] == "Received"
    assert view.notifications.last()["message"] == "Receipt acknowledged successfully"
    assert view.is_submitting is False


def test_acknowledge_writes_one_action_line(caplog) -> None:
    caplog.set_level(logging.INFO)
    actions = ActionLog(logger=logging.getLogger("tests.dispatch_actions"))
    service = FakeDispatchService(fresh=_dispatch(), mutation=DispatchMutationResponse(status="success", dispatch=_received()))
    view = DispatchDetailView(service=service, gate=_gate(DISPATCH_VIEW, DISPATCH_UPDATE), actions=actions)
    view.open(_dispatch())

    view.acknowledge()

    lines = [json.loads(record.message) for record in caplog.records if record.name == "tests.dispatch_actions"]
    assert len(lines) == 1
    assert lines[0]["module"] == "dispatch"
    assert lines[0]["action"] == "acknowledge"
    assert lines[0]["outcome"] == "success"
    assert lines[0]["dispatch_id"] == "1"
    assert lines[0]["lines"] == 2


def test_second_acknowledge_while_submitting_is_rejected() -> None:
    service = FakeDispatchService(fresh=_dispatch(), mutation=DispatchMutationResponse(status="success", dispatch=_received()))
    view = DispatchDetailView(service=service, gate=_gate(DISPATCH_VIEW, DISPATCH_UPDATE))
    view.open(_dispatch())
    nested: list[dict[str, Any]] = []
    service.on_call = lambda: nested.append(view.acknowledge())

    assert view.acknowledge()["ok"]
    assert nested[0] == {"ok": False, "cancelled": False, "error": "Acknowledgement already in progress", "field_errors": {}}
    assert [name for name, _ in service.calls].count("acknowledge") == 1


def test_acknowledge_validation_error_surfaces_field_errors() -> None:
    service = FakeDispatchService(fresh=_dispatch())
    view = DispatchDetailView(service=service, gate=_gate(DISPATCH_VIEW, DISPATCH_UPDATE))
    view.open(_dispatch())
    service.error = ServiceError(
        message="Maximum receivable quantity is 4",
        category="validation",
        field_errors={"items[0].received_quantity": "Maximum receivable quantity is 4"},
        local=True,
    )
    view.set_received("10", 9)

    result = view.acknowledge()

    assert not result["ok"]
    assert result["field_errors"] == {"items[0].received_quantity": "Maximum receivable quantity is 4"}
    assert view.render()["field_errors"] == result["field_errors"]
    assert view.notifications.last()["level"] == "error"


def test_acknowledge_hidden_without_manage_permission() -> None:
    view = DispatchDetailView(service=FakeDispatchService(fresh=_dispatch()), gate=_gate(DISPATCH_VIEW))
    view.open(_dispatch())
    assert view.render()["actions"]["can_acknowledge"] is False
    assert view.acknowledge()["error"] == "Nothing left to acknowledge on this dispatch"


def test_closed_detail_discards_late_failure() -> None:
    service = FakeDispatchService(fresh=_dispatch())
    view = DispatchDetailView(service=service, gate=_gate(DISPATCH_VIEW, DISPATCH_UPDATE))
    view.open(_dispatch())
    service.error = CANCELLED
    service.on_call = view.close

    result = view.acknowledge()

    assert result["cancelled"] is True
    assert service.closed == [view.context_key]
    assert view.notifications.messages == []


def test_cancelled_refresh_is_silent() -> None:
    view = DispatchDetailView(service=FakeDispatchService(error=CANCELLED), gate=_gate(DISPATCH_VIEW))
    assert view.open(_dispatch()) is False
    assert view.is_stale is False
    assert view.notifications.messages == []


def test_return_view_submits_positive_lines_only_to_service() -> None:
    received = _received()
    returned = _dispatch(
        dispatch_items=[{"id": "10", "quantity": 4, "received_quantity": 4, "returned_quantity": 4, "is_returnable": True, "is_returned": True}]
    )
    service = FakeDispatchService(mutation=DispatchMutationResponse(status="success", dispatch=returned))
    view = DispatchReturnView(service=service, gate=_gate(DISPATCH_UPDATE), dispatch=received)
    assert view.quantities == {"10": 0}
    view.set_quantity("10", 4, notes="all back")

    result = view.submit()

    assert result["ok"]
    assert service.calls == [("return", [{"id": "10", "returned_quantity": 4, "return_notes": "all back"}])]
    assert view.render()["items"] == []
    assert view.can_return() is False


def test_delete_only_for_pending() -> None:
    service = FakeDispatchService()
    view = DispatchDeleteView(service=service, gate=_gate(DISPATCH_UPDATE))
    assert view.confirm(_received())["error"] == "Only pending dispatches can be deleted"
    assert service.calls == []
    assert view.confirm(_dispatch())["ok"]
    assert view.notifications.last()["message"] == "Dispatch DSP-1 deleted"


def test_form_warns_on_partial_lookups_and_passes_stock_levels() -> None:
    lookups = FakeLookups(
        LookupResult(
            values={"stores": [], "users": [], "products": [Product.model_validate({"id": 5, "name": "Drill", "stock_quantity": 3})]},
            failures={"users": ServiceError(message="Failed to load users")},
        )
    )
    service = FakeDispatchService(mutation=DispatchMutationResponse(status="success", message="Dispatch created"))
    view = DispatchFormView(service=service, lookups=lookups, gate=_gate(DISPATCH_CREATE))

    assert view.load_options() is False
    assert view.notifications.last()["message"] == "Some form data could not be loaded: users"

    view.set_value("from_store_id", "1")
    view.add_item("5", 2)
    result = view.submit()

    assert result["ok"]
    payload, stock_levels = service.calls[-1][1]
    assert payload["type"] == "internal"
    assert payload["items"] == [{"product_id": "5", "quantity": 2}]
    assert stock_levels == {"5": 3}
    assert view.notifications.last()["message"] == "Dispatch created"


def test_form_edit_blocked_once_received() -> None:
    service = FakeDispatchService()
    view = DispatchFormView(service=service, lookups=FakeLookups(LookupResult()), gate=_gate(DISPATCH_UPDATE), dispatch=_received())
    assert view.submit()["error"] == "Only pending dispatches can be edited"
    assert service.calls == []
