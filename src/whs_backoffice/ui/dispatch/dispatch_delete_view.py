from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from whs_client_sdk.dispatch_state import dispatch_action_availability
from whs_client_sdk.models_dispatch import Dispatch

from ...services.dispatch_service import DispatchService
from ...services.errors import ServiceError
from ...services.permissions_service import DISPATCH_UPDATE, PermissionGate
from ..shared.feedback import failure_result, rejected
from ..shared.notification_center import NotificationCenter


@dataclass
class DispatchDeleteView:
    service: DispatchService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    is_submitting: bool = False

    def can_delete(self, dispatch: Dispatch) -> bool:
        return dispatch_action_availability(dispatch, can_manage=self.gate.is_allowed(DISPATCH_UPDATE)).can_delete

    def confirm(self, dispatch: Dispatch) -> dict[str, Any]:
        if not self.can_delete(dispatch):
            return rejected("Only pending dispatches can be deleted")
        if self.is_submitting:
            return rejected("Delete already in progress")
        self.is_submitting = True
        try:
            response = self.service.delete_dispatch(dispatch.id)
        except ServiceError as exc:
            return failure_result(self.notifications, exc, action="dispatch.delete", fallback="Failed to delete dispatch")
        finally:
            self.is_submitting = False
        self.notifications.success(response.message or f"Dispatch {dispatch.dispatch_number} deleted")
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}}
