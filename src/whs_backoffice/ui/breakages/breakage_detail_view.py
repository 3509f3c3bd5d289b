from __future__ import annotations

import itertools
from dataclasses import asdict, dataclass, field
from typing import Any

from whs_client_sdk.breakage_state import (
    BreakageActionAvailability,
    breakage_action_availability,
    replacement_items,
)
from whs_client_sdk.models_breakages import ApprovalStatus, Breakage, BreakageMutationResponse

from ...logging_setup import ActionLog
from ...services.breakage_service import BreakageService
from ...services.errors import ServiceError
from ...services.permissions_service import BREAKAGE_APPROVE, BREAKAGE_UPDATE, BREAKAGE_VIEW, PermissionGate
from ..shared.feedback import failure_result, rejected
from ..shared.notification_center import NotificationCenter
from ..shared.state_widgets import StateWidget
from ..shared.view_state import resolve_state

_sequence = itertools.count(1)

STALE_BREAKAGE_MESSAGE = "Could not refresh breakage details. Showing the last loaded data."


@dataclass
class BreakageDetailView:
    """Detail modal with the approve and reject decisions."""

    service: BreakageService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    actions: ActionLog = field(default_factory=ActionLog)
    breakage: Breakage | None = None
    decision_notes: str | None = None
    is_loading: bool = False
    is_submitting: bool = False
    is_stale: bool = False
    closed: bool = False
    error_message: str | None = None
    trace_id: str | None = None
    context_key: str = ""

    def can_view(self) -> bool:
        return self.gate.is_allowed(BREAKAGE_VIEW)

    def availability(self) -> BreakageActionAvailability | None:
        if self.breakage is None:
            return None
        return breakage_action_availability(
            self.breakage,
            can_manage=self.gate.is_allowed(BREAKAGE_UPDATE),
            can_approve=self.gate.is_allowed(BREAKAGE_APPROVE),
        )

    def open(self, row: Breakage) -> bool:
        self.context_key = f"breakage_detail:{row.id}:{next(_sequence)}"
        self.closed = False
        self.breakage = row
        self.decision_notes = None
        if not self.can_view():
            self.error_message = "You do not have permission to view breakages"
            return False
        self.is_loading = True
        try:
            fresh = self.service.get_breakage(row.id, context_key=self.context_key)
        except ServiceError as exc:
            if exc.cancelled or self.closed:
                return False
            self.is_stale = True
            self.trace_id = exc.trace_id
            self.notifications.warning(STALE_BREAKAGE_MESSAGE, details={"trace_id": exc.trace_id, "reason": exc.message})
            return False
        finally:
            self.is_loading = False
        if self.closed:
            return False
        self.breakage = fresh
        self.is_stale = False
        return True

    def approve(self) -> dict[str, Any]:
        return self._decide(ApprovalStatus.APPROVED.value)

    def reject(self) -> dict[str, Any]:
        return self._decide(ApprovalStatus.REJECTED.value)

    def _decide(self, decision: str) -> dict[str, Any]:
        availability = self.availability()
        if availability is None:
            return rejected("No breakage selected")
        allowed = availability.can_approve if decision == ApprovalStatus.APPROVED.value else availability.can_reject
        if not allowed:
            return rejected("This breakage is no longer awaiting approval")
        if self.is_submitting:
            return rejected("Decision already in progress")
        self.is_submitting = True
        try:
            response = self.service.decide(
                self.breakage.id, decision, notes=self.decision_notes, context_key=self.context_key
            )
        except ServiceError as exc:
            if self.closed:
                return {"ok": False, "cancelled": True, "error": None, "field_errors": {}}
            self.actions.failed("breakage", decision, exc, breakage_id=self.breakage.id)
            fallback = "Failed to approve breakage" if decision == ApprovalStatus.APPROVED.value else "Failed to reject breakage"
            return failure_result(self.notifications, exc, action=f"breakage.{decision}", fallback=fallback)
        finally:
            self.is_submitting = False
        if self.closed:
            return {"ok": False, "cancelled": True, "error": None, "field_errors": {}}
        self.actions.record("breakage", decision, "success", breakage_id=self.breakage.id)
        self._apply_response(response)
        self.notifications.success(response.message or f"Breakage {decision} successfully")
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}, "breakage": self.breakage}

    def _apply_response(self, response: BreakageMutationResponse) -> None:
        if response.breakage is not None:
            self.breakage = response.breakage
            return
        try:
            self.breakage = self.service.get_breakage(self.breakage.id, context_key=self.context_key)
        except ServiceError as exc:
            if not exc.cancelled:
                self.is_stale = True
                self.notifications.warning(STALE_BREAKAGE_MESSAGE, details={"trace_id": exc.trace_id})

    def close(self) -> None:
        self.closed = True
        if self.context_key:
            self.service.close_context(self.context_key)

    def render(self) -> dict[str, Any]:
        breakage = self.breakage
        state = resolve_state(
            can_view=self.can_view(),
            is_loading=self.is_loading,
            error=self.error_message,
            has_data=breakage is not None,
            trace_id=self.trace_id,
            stale=self.is_stale,
        )
        payload: dict[str, Any] = {
            "loading": self.is_loading,
            "submitting": self.is_submitting,
            "stale": self.is_stale,
            "view_state": StateWidget(state).render(),
            "notifications": self.notifications.render(),
        }
        if breakage is None:
            return {**payload, "breakage": None, "items": [], "actions": None}
        return {
            **payload,
            "breakage": {
                "id": breakage.id,
                "breakage_number": breakage.breakage_number,
                "status": breakage.status,
                "approval_status": breakage.approval_status,
                "reporter": breakage.reporter.display_name if breakage.reporter else None,
                "approver": breakage.approver.display_name if breakage.approver else None,
                "approved_at": breakage.approved_at.isoformat() if breakage.approved_at else None,
                "notes": breakage.notes,
                "total_quantity": breakage.total_quantity,
            },
            "items": [
                {
                    "id": item.id,
                    "product_name": item.product_name,
                    "variant_name": item.variant_name,
                    "quantity": item.quantity,
                    "cause": item.cause,
                    "replacement_requested": item.replacement_requested,
                    "notes": item.notes,
                    "image_path": item.image_path,
                }
                for item in breakage.items
            ],
            "replacement_count": len(replacement_items(breakage)),
            "actions": asdict(self.availability()),
        }
