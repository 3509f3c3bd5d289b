from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from whs_client_sdk.models_products import Product

from ...services.errors import ServiceError
from ...services.permissions_service import PRODUCT_DELETE, PermissionGate
from ...services.product_service import ProductService
from ..shared.feedback import failure_result, rejected
from ..shared.notification_center import NotificationCenter


@dataclass
class ProductDeleteView:
    service: ProductService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    is_submitting: bool = False

    def confirm(self, product: Product) -> dict[str, Any]:
        if not self.gate.is_allowed(PRODUCT_DELETE):
            return rejected("You do not have permission to delete products")
        if self.is_submitting:
            return rejected("Delete already in progress")
        self.is_submitting = True
        try:
            response = self.service.delete_product(product.id)
        except ServiceError as exc:
            return failure_result(self.notifications, exc, action="product.delete", fallback="Failed to delete product")
        finally:
            self.is_submitting = False
        self.notifications.success(response.message or f"Product {product.name} deleted")
        return {"ok": True, "cancelled": False, "error": None, "field_errors": {}}
