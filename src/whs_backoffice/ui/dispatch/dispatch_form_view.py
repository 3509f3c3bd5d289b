from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from whs_client_sdk.dispatch_state import dispatch_action_availability
from whs_client_sdk.models_dispatch import Dispatch, DispatchType

from ...services.dispatch_service import DispatchService
from ...services.errors import ServiceError
from ...services.permissions_service import DISPATCH_CREATE, DISPATCH_UPDATE, PermissionGate
from ...services.reference_data_service import ReferenceDataService
from ..shared.feedback import failure_result, rejected
from ..shared.notification_center import NotificationCenter
from ..shared.validators import ValidationResult, result_from_errors


@dataclass
class DispatchFormView:
    """Create and edit form. Editing is offered only while the dispatch is Pending."""

    service: DispatchService
    lookups: ReferenceDataService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    dispatch: Dispatch | None = None
    values: dict[str, Any] = field(default_factory=dict)
    items: list[dict[str, Any]] = field(default_factory=list)
    options: dict[str, list[Any]] = field(default_factory=dict)
    field_errors: dict[str, str] = field(default_factory=dict)
    is_loading: bool = False
    is_submitting: bool = False

    def __post_init__(self) -> None:
        if self.dispatch is not None:
            self.values = {
                "from_store_id": self.dispatch.from_store_id,
                "to_entity": self.dispatch.to_entity,
                "to_user_id": self.dispatch.to_user_id,
                "type": self.dispatch.type,
                "notes": self.dispatch.notes,
            }
            self.items = [
                {
                    "id": item.id,
                    "product_id": item.product_id,
                    "variant_id": item.variant_id,
                    "quantity": item.quantity,
                    "is_returnable": item.is_returnable,
                    "return_date": item.return_date,
                    "notes": item.notes,
                }
                for item in self.dispatch.dispatch_items
            ]
        else:
            self.values = {"type": DispatchType.INTERNAL.value, **self.values}

    @property
    def is_edit(self) -> bool:
        return self.dispatch is not None

    def can_submit(self) -> bool:
        if self.dispatch is None:
            return self.gate.is_allowed(DISPATCH_CREATE)
        return dispatch_action_availability(self.dispatch, can_manage=self.gate.is_allowed(DISPATCH_UPDATE)).can_edit

    def load_options(self) -> bool:
        self.is_loading = True
        try:
            result = self.lookups.dispatch_lookups()
        finally:
            self.is_loading = False
        self.options = result.values
        summary = result.failure_summary()
        if summary:
            self.notifications.warning(
                summary,
                details={name: error.message for name, error in result.failures.items()},
            )
        return result.ok

    def stock_levels(self) -> dict[str, int]:
        return {
            str(product.id): product.stock_quantity
            for product in self.options.get("products", [])
        }

    def set_value(self, name: str, value: Any) -> None:
        self.values[name] = value

    def add_item(self, product_id: str, quantity: int, **extra: Any) -> None:
        self.items.append({"product_id": product_id, "quantity": quantity, **extra})

    def remove_item(self, index: int) -> None:
        if 0 <= index < len(self.items):
            del self.items[index]

    def payload(self) -> dict[str, Any]:
        return {**self.values, "items": [dict(item) for item in self.items]}

    def submit(self) -> dict[str, Any]:
        if not self.can_submit():
            message = "Only pending dispatches can be edited" if self.is_edit else "You do not have permission to create dispatches"
            return rejected(message)
        if self.is_submitting:
            return rejected("Dispatch save already in progress")
        self.is_submitting = True
        self.field_errors = {}
        try:
            if self.dispatch is None:
                response = self.service.create_dispatch(self.payload(), stock_levels=self.stock_levels())
            else:
                response = self.service.update_dispatch(
                    self.dispatch.id, self.payload(), current=self.dispatch, stock_levels=self.stock_levels()
                )
        except ServiceError as exc:
            fallback = "Failed to update dispatch" if self.is_edit else "Failed to create dispatch"
            result = failure_result(self.notifications, exc, action="dispatch.save", fallback=fallback)
            self.field_errors = result["field_errors"]
            return result
        finally:
            self.is_submitting = False
        default = "Dispatch updated successfully" if self.is_edit else "Dispatch created successfully"
        self.notifications.success(response.message or default)
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}, "dispatch": response.record}

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
                "stores": [{"id": store.id, "name": store.name} for store in self.options.get("stores", [])],
                "users": [{"id": user.id, "name": user.display_name} for user in self.options.get("users", [])],
                "products": [
                    {"id": product.id, "name": product.name, "stock_quantity": product.stock_quantity}
                    for product in self.options.get("products", [])
                ],
                "types": [kind.value for kind in DispatchType],
            },
            "validation": asdict(self.validation()),
            "notifications": self.notifications.render(),
        }
