from __future__ import annotations

import logging
from collections.abc import Mapping

from whs_client_sdk import ApiSession
from whs_client_sdk.models import (
    COMPANY_ADMIN_PERMISSION,
    SYSTEM_ADMIN_PERMISSION,
    EffectivePermissionsResponse,
    PermissionEntry,
)

logger = logging.getLogger(__name__)

DISPATCH_VIEW = "can_view_dispatch_menu"
DISPATCH_CREATE = "can_dispatch_items"
DISPATCH_UPDATE = "can_update_dispatches"
BREAKAGE_VIEW = "can_view_breakages"
BREAKAGE_CREATE = "can_create_breakages"
BREAKAGE_UPDATE = "can_update_breakages"
BREAKAGE_DELETE = "can_delete_breakages"
BREAKAGE_APPROVE = "can_approve_breakages"
BREAKAGE_REPLACE = "can_replace_breakage_items"
PRODUCT_VIEW = "can_view_products"
PRODUCT_CREATE = "can_create_products"
PRODUCT_UPDATE = "can_update_products"
PRODUCT_DELETE = "can_delete_products"

ADMIN_PERMISSIONS: tuple[str, ...] = (SYSTEM_ADMIN_PERMISSION, COMPANY_ADMIN_PERMISSION)


class PermissionGate:
    """Default deny permission gate with deny-overrides-allow semantics.

    Holders of an admin permission are allowed everything.
    """

    def __init__(self, entries: list[PermissionEntry | Mapping[str, object]]) -> None:
        self._decisions = self._normalize(entries)

    @classmethod
    def from_permissions(cls, permissions: EffectivePermissionsResponse) -> PermissionGate:
        entries: list[PermissionEntry | Mapping[str, object]] = list(permissions.permissions)
        if permissions.is_system_admin:
            entries.append({"key": SYSTEM_ADMIN_PERMISSION, "allowed": True})
        return cls(entries)

    @staticmethod
    def _normalize(entries: list[PermissionEntry | Mapping[str, object]]) -> dict[str, bool]:
        decisions: dict[str, bool] = {}
        for raw_entry in entries:
            entry = PermissionEntry.model_validate(raw_entry)
            key = entry.key.strip()
            previous = decisions.get(key)
            if previous is False:
                continue
            decisions[key] = bool(entry.allowed)
        return decisions

    def _is_admin(self) -> bool:
        return any(self._decisions.get(key, False) for key in ADMIN_PERMISSIONS)

    def is_allowed(self, permission_key: str) -> bool:
        if self._decisions.get(permission_key) is False:
            return False
        return self._decisions.get(permission_key, False) or self._is_admin()

    def allows_any(self, *permission_keys: str) -> bool:
        return any(self.is_allowed(key) for key in permission_keys)

    def is_system_admin(self) -> bool:
        return self._decisions.get(SYSTEM_ADMIN_PERMISSION, False)

    def allowed_keys(self) -> set[str]:
        return {key for key, allowed in self._decisions.items() if allowed}


class PermissionsService:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def load_effective_permissions(self, *, refresh: bool = False) -> EffectivePermissionsResponse:
        """Permissions of the signed-in user; ``refresh`` re-reads the profile first."""
        if refresh and self.session.user is not None:
            logger.info("permissions_fetch_attempt", extra={"user_id": self.session.user.id})
            response = self.session.access_control_client().effective_permissions(self.session.user.id)
        else:
            response = self.session.permissions()
        logger.info(
            "permissions_loaded",
            extra={"count": len(response.permissions), "is_system_admin": response.is_system_admin},
        )
        return response

    def gate(self, *, refresh: bool = False) -> PermissionGate:
        return PermissionGate.from_permissions(self.load_effective_permissions(refresh=refresh))
