from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from whs_client_sdk.dispatch_state import dispatch_action_availability, item_returnable_balance
from whs_client_sdk.dispatch_validation import returnable_items
from whs_client_sdk.models_dispatch import Dispatch

from ...logging_setup import ActionLog
from ...services.dispatch_service import DispatchService
from ...services.errors import ServiceError
from ...services.permissions_service import DISPATCH_UPDATE, PermissionGate
from ..shared.feedback import failure_result, rejected
from ..shared.notification_center import NotificationCenter

RETURN_MODES = ("return", "mark_returned")


@dataclass
class DispatchReturnView:
    service: DispatchService
    gate: PermissionGate
    dispatch: Dispatch
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    actions: ActionLog = field(default_factory=ActionLog)
    quantities: dict[str, int] = field(default_factory=dict)
    notes: dict[str, str] = field(default_factory=dict)
    field_errors: dict[str, str] = field(default_factory=dict)
    is_submitting: bool = False
    closed: bool = False
    context_key: str = ""

    def __post_init__(self) -> None:
        self.context_key = self.context_key or f"dispatch_return:{self.dispatch.id}"
        self.quantities = {item.id: 0 for item in returnable_items(self.dispatch)}

    def can_return(self) -> bool:
        availability = dispatch_action_availability(self.dispatch, can_manage=self.gate.is_allowed(DISPATCH_UPDATE))
        return availability.can_return

    def set_quantity(self, item_id: str, quantity: int, notes: str | None = None) -> None:
        self.quantities[item_id] = quantity
        if notes is not None:
            self.notes[item_id] = notes

    def submit(self, mode: str = "return") -> dict[str, Any]:
        if mode not in RETURN_MODES:
            raise ValueError(f"Unknown return mode: {mode}")
        if not self.can_return():
            return rejected("No items on this dispatch can be returned")
        if self.is_submitting:
            return rejected("Return already in progress")
        self.is_submitting = True
        self.field_errors = {}
        lines = [
            {"id": item_id, "returned_quantity": qty, "return_notes": self.notes.get(item_id)}
            for item_id, qty in self.quantities.items()
        ]
        operation = self.service.return_items if mode == "return" else self.service.mark_items_returned
        try:
            response = operation(self.dispatch.id, lines, current=self.dispatch, context_key=self.context_key)
        except ServiceError as exc:
            if self.closed:
                return {"ok": False, "cancelled": True, "error": None, "field_errors": {}}
            self.actions.failed("dispatch", mode, exc, dispatch_id=self.dispatch.id)
            result = failure_result(self.notifications, exc, action=f"dispatch.{mode}", fallback="Failed to return items")
            self.field_errors = result["field_errors"]
            return result
        finally:
            self.is_submitting = False
        if self.closed:
            return {"ok": False, "cancelled": True, "error": None, "field_errors": {}}
        returned = sum(qty for qty in self.quantities.values() if qty > 0)
        self.actions.record("dispatch", mode, "success", dispatch_id=self.dispatch.id, returned=returned)
        if response.record is not None:
            self.dispatch = response.record
            self.quantities = {item.id: 0 for item in returnable_items(self.dispatch)}
        self.notifications.success(response.message or "Items returned successfully")
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}, "dispatch": response.record}

    def close(self) -> None:
        self.closed = True
        self.service.close_context(self.context_key)

    def render(self) -> dict[str, Any]:
        return {
            "can_return": self.can_return(),
            "submitting": self.is_submitting,
            "field_errors": self.field_errors,
            "items": [
                {
                    "id": item.id,
                    "product_name": item.product_name,
                    "variant_name": item.variant_name,
                    "received_quantity": item.received_quantity,
                    "returned_quantity": item.returned_quantity,
                    "max_returnable": item_returnable_balance(item),
                    "return_quantity": self.quantities.get(item.id, 0),
                    "return_notes": self.notes.get(item.id),
                }
                for item in returnable_items(self.dispatch)
            ],
            "notifications": self.notifications.render(),
        }
