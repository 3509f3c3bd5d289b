from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from whs_client_sdk.breakage_state import breakage_action_availability
from whs_client_sdk.models_breakages import Breakage

from ...services.breakage_service import BreakageService
from ...services.errors import ServiceError
from ...services.permissions_service import BREAKAGE_DELETE, BREAKAGE_UPDATE, PermissionGate
from ..shared.feedback import failure_result, rejected
from ..shared.notification_center import NotificationCenter


@dataclass
class BreakageDeleteView:
    service: BreakageService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    is_submitting: bool = False

    def can_delete(self, breakage: Breakage) -> bool:
        can_manage = self.gate.allows_any(BREAKAGE_DELETE, BREAKAGE_UPDATE)
        return breakage_action_availability(breakage, can_manage=can_manage).can_delete

    def confirm(self, breakage: Breakage) -> dict[str, Any]:
        if not self.can_delete(breakage):
            return rejected("Only pending breakages awaiting approval can be deleted")
        if self.is_submitting:
            return rejected("Delete already in progress")
        self.is_submitting = True
        try:
            response = self.service.delete_breakage(breakage.id)
        except ServiceError as exc:
            return failure_result(self.notifications, exc, action="breakage.delete", fallback="Failed to delete breakage")
        finally:
            self.is_submitting = False
        self.notifications.success(response.message or f"Breakage {breakage.breakage_number} deleted")
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}}
