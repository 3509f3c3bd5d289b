from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from whs_client_sdk.breakage_state import breakage_action_availability, replacement_items
from whs_client_sdk.models_breakages import Breakage, BreakageStatus

from ...logging_setup import ActionLog
from ...services.breakage_service import BreakageService
from ...services.errors import ServiceError
from ...services.permissions_service import BREAKAGE_REPLACE, DISPATCH_CREATE, PermissionGate
from ...services.reference_data_service import ReferenceDataService
from ..shared.feedback import failure_result, rejected
from ..shared.notification_center import NotificationCenter


@dataclass
class ReplacementDispatchView:
    """Send replacements for an approved breakage as an internal dispatch."""

    service: BreakageService
    lookups: ReferenceDataService
    gate: PermissionGate
    breakage: Breakage
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    actions: ActionLog = field(default_factory=ActionLog)
    from_store_id: str | None = None
    to_user_id: str | None = None
    notes: str | None = None
    stores: list[Any] = field(default_factory=list)
    is_loading: bool = False
    is_submitting: bool = False
    dispatch_created: bool = False
    status_update_pending: bool = False

    def can_create(self) -> bool:
        if self.dispatch_created:
            return False
        can_manage = self.gate.allows_any(BREAKAGE_REPLACE, DISPATCH_CREATE)
        return breakage_action_availability(self.breakage, can_manage=can_manage).can_create_dispatch

    def load_options(self) -> bool:
        self.is_loading = True
        try:
            result = self.lookups.stores()
        finally:
            self.is_loading = False
        self.stores = result.values.get("stores", [])
        if not result.ok:
            self.notifications.warning(result.failure_summary() or "Failed to load stores")
        return result.ok

    def submit(self) -> dict[str, Any]:
        """Create the replacement dispatch once.

        After the dispatch exists, submitting again only retries the status update.
        """
        if self.status_update_pending:
            return self.retry_status_update()
        if not self.can_create():
            return rejected("A replacement dispatch cannot be created for this breakage")
        if not self.from_store_id:
            return {
                "ok": False,
                "cancelled": False,
                "error": "From store is required",
                "field_errors": {"from_store_id": "From store is required"},
            }
        if self.is_submitting:
            return rejected("Replacement dispatch already in progress")
        self.is_submitting = True
        try:
            outcome = self.service.create_replacement_dispatch(
                self.breakage,
                from_store_id=self.from_store_id,
                to_user_id=self.to_user_id,
                notes=self.notes,
            )
        except ServiceError as exc:
            self.actions.failed("breakage", "replacement_dispatch", exc, breakage_id=self.breakage.id)
            return failure_result(
                self.notifications, exc, action="breakage.replacement_dispatch", fallback="Failed to create replacement dispatch"
            )
        finally:
            self.is_submitting = False
        self.dispatch_created = True
        record = outcome.dispatch.record
        self.actions.record(
            "breakage",
            "replacement_dispatch",
            "success",
            breakage_id=self.breakage.id,
            dispatch_id=record.id if record else None,
        )
        self.notifications.success(outcome.dispatch.message or "Replacement dispatch created successfully")
        if outcome.status_updated:
            self._mark_initiated()
        else:
            self.status_update_pending = True
            self.notifications.warning(
                "Replacement dispatch was created but the breakage status could not be updated",
                details={"reason": outcome.warning},
            )
        return {
            "ok": True,
            "cancelled": False,
            "error": None,
            "field_errors": {},
            "dispatch": outcome.dispatch.record,
            "status_updated": outcome.status_updated,
        }

    def retry_status_update(self) -> dict[str, Any]:
        if not self.status_update_pending:
            return rejected("The breakage status is already up to date")
        if self.is_submitting:
            return rejected("Status update already in progress")
        self.is_submitting = True
        try:
            self.service.mark_dispatch_initiated(self.breakage.id)
        except ServiceError as exc:
            self.actions.failed("breakage", "mark_dispatch_initiated", exc, breakage_id=self.breakage.id)
            return failure_result(
                self.notifications, exc, action="breakage.update_status", fallback="Failed to update breakage status"
            )
        finally:
            self.is_submitting = False
        self._mark_initiated()
        self.actions.record("breakage", "mark_dispatch_initiated", "success", breakage_id=self.breakage.id)
        self.notifications.success("Breakage status updated")
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}, "status_updated": True}

    def _mark_initiated(self) -> None:
        self.status_update_pending = False
        self.breakage = self.breakage.model_copy(update={"status": BreakageStatus.DISPATCH_INITIATED.value})

    def render(self) -> dict[str, Any]:
        return {
            "can_create": self.can_create(),
            "status_update_pending": self.status_update_pending,
            "loading": self.is_loading,
            "submitting": self.is_submitting,
            "breakage_number": self.breakage.breakage_number,
            "from_store_id": self.from_store_id,
            "stores": [{"id": store.id, "name": store.name} for store in self.stores],
            "items": [
                {
                    "product_name": item.product_name,
                    "variant_name": item.variant_name,
                    "quantity": item.quantity,
                    "cause": item.cause,
                }
                for item in replacement_items(self.breakage)
            ],
            "notifications": self.notifications.render(),
        }
