from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from whs_client_sdk.models_products import Product

from ...services.errors import ServiceError
from ...services.permissions_service import PRODUCT_CREATE, PRODUCT_UPDATE, PermissionGate
from ...services.product_service import ProductService
from ...services.reference_data_service import ReferenceDataService
from ..shared.feedback import failure_result, rejected
from ..shared.notification_center import NotificationCenter
from ..shared.validators import ValidationResult, result_from_errors

FORM_FIELDS: tuple[str, ...] = (
    "name",
    "sku",
    "barcode",
    "description",
    "category_id",
    "supplier",
    "brand",
    "unit_of_measurement",
    "price",
    "unit_cost",
    "stock_quantity",
    "low_stock_threshold",
    "is_active",
    "track_inventory",
)


@dataclass
class ProductFormView:
    """Create/edit form; categories, suppliers and stores load independently with retry."""

    service: ProductService
    lookups: ReferenceDataService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    product: Product | None = None
    values: dict[str, Any] = field(default_factory=dict)
    options: dict[str, list[Any]] = field(default_factory=dict)
    failed_lookups: list[str] = field(default_factory=list)
    field_errors: dict[str, str] = field(default_factory=dict)
    is_loading: bool = False
    is_submitting: bool = False

    def __post_init__(self) -> None:
        if self.product is not None:
            dumped = self.product.model_dump(mode="json")
            self.values = {name: dumped.get(name) for name in FORM_FIELDS}

    @property
    def is_edit(self) -> bool:
        return self.product is not None

    def can_submit(self) -> bool:
        return self.gate.is_allowed(PRODUCT_UPDATE if self.is_edit else PRODUCT_CREATE)

    def open(self, product_id: str) -> bool:
        self.is_loading = True
        try:
            self.product = self.service.get_product(product_id)
        except ServiceError as exc:
            self.notifications.error(exc.message, details={"trace_id": exc.trace_id})
            return False
        finally:
            self.is_loading = False
        dumped = self.product.model_dump(mode="json")
        self.values = {name: dumped.get(name) for name in FORM_FIELDS}
        return True

    def load_options(self) -> bool:
        self.is_loading = True
        try:
            result = self.lookups.product_lookups()
        finally:
            self.is_loading = False
        self.options = result.values
        self.failed_lookups = sorted(result.failures)
        summary = result.failure_summary()
        if summary:
            self.notifications.warning(
                summary,
                title="Partial data",
                details={name: error.message for name, error in result.failures.items()},
            )
        return result.ok

    def set_value(self, name: str, value: Any) -> None:
        self.values[name] = value

    def submit(self) -> dict[str, Any]:
        if not self.can_submit():
            return rejected("You do not have permission to save products")
        if self.is_submitting:
            return rejected("Product save already in progress")
        self.is_submitting = True
        self.field_errors = {}
        try:
            if self.product is None:
                response = self.service.create_product(self.values)
            else:
                response = self.service.update_product(self.product.id, self.values)
        except ServiceError as exc:
            fallback = "Failed to update product" if self.is_edit else "Failed to create product"
            result = failure_result(self.notifications, exc, action="product.save", fallback=fallback)
            self.field_errors = result["field_errors"]
            return result
        finally:
            self.is_submitting = False
        default = "Product updated successfully" if self.is_edit else "Product created successfully"
        self.notifications.success(response.message or default)
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}, "product": response.data}

    def validation(self) -> ValidationResult:
        return result_from_errors(self.field_errors)

    def render(self) -> dict[str, Any]:
        return {
            "mode": "edit" if self.is_edit else "create",
            "can_submit": self.can_submit(),
            "loading": self.is_loading,
            "submitting": self.is_submitting,
            "values": self.values,
            "options": {
                name: [{"id": entry.id, "name": entry.name} for entry in entries]
                for name, entries in self.options.items()
            },
            "failed_lookups": self.failed_lookups,
            "validation": asdict(self.validation()),
            "notifications": self.notifications.render(),
        }
