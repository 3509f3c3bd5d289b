from __future__ import annotations

from dataclasses import dataclass

from .services.permissions_service import BREAKAGE_VIEW, DISPATCH_VIEW, PRODUCT_VIEW, PermissionGate


@dataclass(frozen=True)
class ModuleSpec:
    key: str
    label: str
    required_permissions: tuple[str, ...]


MODULE_SPECS: tuple[ModuleSpec, ...] = (
    ModuleSpec("products", "Products", (PRODUCT_VIEW,)),
    ModuleSpec("dispatches", "Dispatches", (DISPATCH_VIEW,)),
    ModuleSpec("breakages", "Breakages", (BREAKAGE_VIEW,)),
)


def allowed_modules(gate: PermissionGate) -> list[ModuleSpec]:
    return [module for module in MODULE_SPECS if gate.allows_any(*module.required_permissions)]
