from __future__ import annotations

import itertools
from dataclasses import asdict, dataclass, field
from typing import Any

from whs_client_sdk.dispatch_state import (
    derive_dispatch_status,
    dispatch_action_availability,
    dispatch_totals,
    item_remaining_quantity,
    item_returnable_balance,
    receipt_progress,
    status_badge,
)
from whs_client_sdk.dispatch_validation import default_acknowledge_lines
from whs_client_sdk.models_dispatch import Dispatch, DispatchMutationResponse

from ...logging_setup import ActionLog
from ...services.dispatch_service import DispatchService
from ...services.errors import ServiceError
from ...services.permissions_service import DISPATCH_UPDATE, DISPATCH_VIEW, PermissionGate
from ..shared.feedback import failure_result, rejected
from ..shared.notification_center import NotificationCenter
from ..shared.state_widgets import StateWidget
from ..shared.view_state import resolve_state

_sequence = itertools.count(1)

STALE_DISPATCH_MESSAGE = "Could not refresh dispatch details. Showing the last loaded data."


@dataclass
class DispatchDetailView:
    """Detail modal: item table, receipt progress and the acknowledge form."""

    service: DispatchService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    actions: ActionLog = field(default_factory=ActionLog)
    dispatch: Dispatch | None = None
    ack_lines: dict[str, int] = field(default_factory=dict)
    field_errors: dict[str, str] = field(default_factory=dict)
    is_loading: bool = False
    is_submitting: bool = False
    is_stale: bool = False
    closed: bool = False
    error_message: str | None = None
    trace_id: str | None = None
    context_key: str = ""

    def can_view(self) -> bool:
        return self.gate.is_allowed(DISPATCH_VIEW)

    def can_manage(self) -> bool:
        return self.gate.is_allowed(DISPATCH_UPDATE)

    def open(self, row: Dispatch) -> bool:
        """Show ``row`` at once, then refresh it from the server.

        If the refresh fails the row stays on screen, flagged stale.
        """
        self.context_key = f"dispatch_detail:{row.id}:{next(_sequence)}"
        self.closed = False
        self.dispatch = row
        self._reset_form()
        if not self.can_view():
            self.error_message = "You do not have permission to view dispatches"
            return False
        self.is_loading = True
        try:
            fresh = self.service.get_dispatch(row.id, context_key=self.context_key)
        except ServiceError as exc:
            if exc.cancelled or self.closed:
                return False
            self.is_stale = True
            self.trace_id = exc.trace_id
            self.notifications.warning(STALE_DISPATCH_MESSAGE, details={"trace_id": exc.trace_id, "reason": exc.message})
            return False
        finally:
            self.is_loading = False
        if self.closed:
            return False
        self._apply(fresh)
        self.is_stale = False
        return True

    def set_received(self, item_id: str, quantity: int) -> None:
        self.ack_lines[item_id] = quantity

    def acknowledge(self) -> dict[str, Any]:
        if self.dispatch is None:
            return rejected("No dispatch selected")
        availability = dispatch_action_availability(self.dispatch, can_manage=self.can_manage())
        if not availability.can_acknowledge:
            return rejected("Nothing left to acknowledge on this dispatch")
        if self.is_submitting:
            return rejected("Acknowledgement already in progress")
        self.is_submitting = True
        self.field_errors = {}
        lines = [{"id": item_id, "received_quantity": qty} for item_id, qty in self.ack_lines.items()]
        try:
            response = self.service.acknowledge_receipt(
                self.dispatch.id, lines, current=self.dispatch, context_key=self.context_key
            )
        except ServiceError as exc:
            if self.closed:
                return {"ok": False, "cancelled": True, "error": None, "field_errors": {}}
            self.actions.failed("dispatch", "acknowledge", exc, dispatch_id=self.dispatch.id)
            result = failure_result(self.notifications, exc, action="dispatch.acknowledge", fallback="Failed to acknowledge receipt")
            self.field_errors = result["field_errors"]
            return result
        finally:
            self.is_submitting = False
        if self.closed:
            return {"ok": False, "cancelled": True, "error": None, "field_errors": {}}
        self.actions.record(
            "dispatch", "acknowledge", "success", dispatch_id=self.dispatch.id, lines=len(lines)
        )
        self._apply_response(response)
        self.notifications.success(response.message or "Receipt acknowledged successfully")
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}, "dispatch": self.dispatch}

    def close(self) -> None:
        """Later responses for this modal are discarded."""
        self.closed = True
        if self.context_key:
            self.service.close_context(self.context_key)

    def _apply_response(self, response: DispatchMutationResponse) -> None:
        record = response.record
        if record is not None:
            self._apply(record)
            return
        try:
            self._apply(self.service.get_dispatch(self.dispatch.id, context_key=self.context_key))
        except ServiceError as exc:
            if not exc.cancelled:
                self.is_stale = True
                self.notifications.warning(STALE_DISPATCH_MESSAGE, details={"trace_id": exc.trace_id})

    def _apply(self, dispatch: Dispatch) -> None:
        self.dispatch = dispatch
        self._reset_form()

    def _reset_form(self) -> None:
        self.field_errors = {}
        self.error_message = None
        self.ack_lines = {line.id: line.received_quantity for line in default_acknowledge_lines(self.dispatch)}

    def items(self) -> list[dict[str, Any]]:
        if self.dispatch is None:
            return []
        return [
            {
                "id": item.id,
                "product_name": item.product_name,
                "variant_name": item.variant_name,
                "quantity": item.quantity,
                "received_quantity": item.received_quantity,
                "returned_quantity": item.returned_quantity,
                "remaining": item_remaining_quantity(item),
                "returnable_balance": item_returnable_balance(item) if item.is_returnable else 0,
                "is_returnable": item.is_returnable,
                "is_returned": item.is_returned,
                "return_date": item.return_date,
                "acknowledge_quantity": self.ack_lines.get(item.id, 0),
            }
            for item in self.dispatch.dispatch_items
        ]

    def render(self) -> dict[str, Any]:
        dispatch = self.dispatch
        state = resolve_state(
            can_view=self.can_view(),
            is_loading=self.is_loading,
            error=self.error_message,
            has_data=dispatch is not None,
            trace_id=self.trace_id,
            stale=self.is_stale,
        )
        payload: dict[str, Any] = {
            "loading": self.is_loading,
            "submitting": self.is_submitting,
            "stale": self.is_stale,
            "field_errors": self.field_errors,
            "view_state": StateWidget(state).render(),
            "notifications": self.notifications.render(),
        }
        if dispatch is None:
            return {**payload, "dispatch": None, "items": [], "actions": None}
        status = derive_dispatch_status(dispatch)
        return {
            **payload,
            "dispatch": {
                "id": dispatch.id,
                "dispatch_number": dispatch.dispatch_number,
                "type": dispatch.type,
                "from_store": dispatch.from_store.name if dispatch.from_store else None,
                "to_entity": dispatch.to_entity,
                "to_user": dispatch.to_user.display_name if dispatch.to_user else None,
                "acknowledged_by": dispatch.acknowledged_by.display_name if dispatch.acknowledged_by else None,
                "notes": dispatch.notes,
                "status": status.value,
                "badge": status_badge(status),
            },
            "totals": asdict(dispatch_totals(dispatch)),
            "progress": receipt_progress(dispatch),
            "items": self.items(),
            "actions": asdict(dispatch_action_availability(dispatch, can_manage=self.can_manage())),
        }
