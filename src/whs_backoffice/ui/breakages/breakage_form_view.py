from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from whs_client_sdk.breakage_state import is_breakage_editable
from whs_client_sdk.item_availability import available_quantity, selectable_items
from whs_client_sdk.models_breakages import AssignableItem, Breakage, BreakageCause

from ...services.breakage_service import BreakageService
from ...services.errors import ServiceError
from ...services.permissions_service import BREAKAGE_CREATE, BREAKAGE_UPDATE, PermissionGate
from ...services.reference_data_service import ReferenceDataService
from ..shared.feedback import failure_result, rejected
from ..shared.notification_center import NotificationCenter
from ..shared.search import assignable_item_search_fields, filter_records
from ..shared.validators import ValidationResult, result_from_errors


@dataclass
class BreakageFormView:
    """Report or edit a breakage against items the user has received.

    Only items with available quantity are offered; system admins also pick
    the store the report belongs to.
    """

    service: BreakageService
    lookups: ReferenceDataService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    breakage: Breakage | None = None
    values: dict[str, Any] = field(default_factory=dict)
    items: list[dict[str, Any]] = field(default_factory=list)
    assignable: list[AssignableItem] = field(default_factory=list)
    stores: list[Any] = field(default_factory=list)
    item_search: str = ""
    field_errors: dict[str, str] = field(default_factory=dict)
    is_loading: bool = False
    is_submitting: bool = False

    def __post_init__(self) -> None:
        if self.breakage is not None:
            self.values = {"notes": self.breakage.notes}
            self.items = [
                {
                    "id": item.id,
                    "assignable_item_id": item.assignable_item_id,
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "cause": item.cause,
                    "notes": item.notes,
                    "replacement_requested": item.replacement_requested,
                    "image_path": item.image_path,
                }
                for item in self.breakage.items
            ]

    @property
    def is_edit(self) -> bool:
        return self.breakage is not None

    def can_submit(self) -> bool:
        if self.breakage is None:
            return self.gate.is_allowed(BREAKAGE_CREATE)
        return self.gate.is_allowed(BREAKAGE_UPDATE) and is_breakage_editable(self.breakage)

    def load_options(self) -> bool:
        self.is_loading = True
        ok = True
        try:
            try:
                self.assignable = self.service.assignable_items()
            except ServiceError as exc:
                ok = False
                self.assignable = []
                self.notifications.error(exc.message or "Failed to load assignable items", details={"trace_id": exc.trace_id})
            if self.gate.is_system_admin():
                result = self.lookups.stores()
                self.stores = result.values.get("stores", [])
                if not result.ok:
                    ok = False
                    self.notifications.warning(result.failure_summary() or "Failed to load stores")
        finally:
            self.is_loading = False
        return ok

    def selectable(self) -> list[AssignableItem]:
        return filter_records(selectable_items(self.assignable), self.item_search, assignable_item_search_fields)

    def search_items(self, term: str) -> None:
        self.item_search = term

    def set_value(self, name: str, value: Any) -> None:
        self.values[name] = value

    def add_item(self, assignable_item_id: str, quantity: int, cause: str, **extra: Any) -> dict[str, Any]:
        source = next((item for item in self.assignable if item.id == str(assignable_item_id)), None)
        if source is None or source not in selectable_items(self.assignable):
            return rejected("Item is no longer available")
        self.items.append(
            {
                "assignable_item_id": source.id,
                "product_id": source.product_id,
                "quantity": quantity,
                "cause": cause,
                **extra,
            }
        )
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}}

    def remove_item(self, index: int) -> None:
        if 0 <= index < len(self.items):
            del self.items[index]

    def payload(self) -> dict[str, Any]:
        return {**self.values, "items": [dict(item) for item in self.items]}

    def submit(self) -> dict[str, Any]:
        if not self.can_submit():
            message = (
                "Only pending breakages awaiting approval can be edited"
                if self.is_edit
                else "You do not have permission to report breakages"
            )
            return rejected(message)
        if self.is_submitting:
            return rejected("Breakage save already in progress")
        self.is_submitting = True
        self.field_errors = {}
        try:
            if self.breakage is None:
                response = self.service.create_breakage(self.payload(), assignable_items=self.assignable)
            else:
                # assignable quantities already exclude this breakage's own items
                response = self.service.update_breakage(self.breakage.id, self.payload(), current=self.breakage)
        except ServiceError as exc:
            fallback = "Failed to update breakage" if self.is_edit else "Failed to report breakage"
            result = failure_result(self.notifications, exc, action="breakage.save", fallback=fallback)
            self.field_errors = result["field_errors"]
            return result
        finally:
            self.is_submitting = False
        default = "Breakage updated successfully" if self.is_edit else "Breakage reported successfully"
        self.notifications.success(response.message or default)
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}, "breakage": response.breakage}

    def validation(self) -> ValidationResult:
        return result_from_errors(self.field_errors)

    def render(self) -> dict[str, Any]:
        return {
            "mode": "edit" if self.is_edit else "create",
            "can_submit": self.can_submit(),
            "loading": self.is_loading,
            "submitting": self.is_submitting,
            "values": self.values,
            "items": self.items,
            "options": {
                "assignable_items": [
                    {
                        "id": item.id,
                        "dispatch_number": item.dispatch_number,
                        "product_name": item.product_name,
                        "variant_name": item.variant_name,
                        "available_quantity": available_quantity(item),
                    }
                    for item in self.selectable()
                ],
                "causes": [cause.value for cause in BreakageCause],
                "stores": [{"id": store.id, "name": store.name} for store in self.stores],
                "show_store_picker": self.gate.is_system_admin(),
            },
            "validation": asdict(self.validation()),
            "notifications": self.notifications.render(),
        }
