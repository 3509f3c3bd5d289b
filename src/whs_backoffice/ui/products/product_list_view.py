from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from whs_client_sdk.models_products import Product, ProductSummary, calculate_product_summary

from ...services.errors import ServiceError
from ...services.permissions_service import (
    PRODUCT_CREATE,
    PRODUCT_DELETE,
    PRODUCT_UPDATE,
    PRODUCT_VIEW,
    PermissionGate,
)
from ...services.product_service import ProductService
from ..shared.csv_export import export_rows
from ..shared.debounce import SearchDebouncer, TimerFactory, thread_timer
from ..shared.notification_center import NotificationCenter
from ..shared.state_widgets import StateWidget
from ..shared.view_state import resolve_state

EXPORT_HEADERS: list[str] = [
    "name",
    "sku",
    "barcode",
    "category",
    "supplier",
    "brand",
    "price",
    "unit_cost",
    "stock_quantity",
    "low_stock_threshold",
    "stock_state",
    "is_active",
]


def stock_state(product: Product) -> str:
    if product.is_out_of_stock:
        return "out_of_stock"
    if product.is_low_stock:
        return "low_stock"
    return "in_stock"


def product_row(product: Product) -> dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "sku": product.sku,
        "barcode": product.barcode,
        "category": product.category,
        "supplier": product.supplier,
        "brand": product.brand,
        "price": product.price,
        "unit_cost": product.unit_cost,
        "stock_quantity": product.stock_quantity,
        "low_stock_threshold": product.low_stock_threshold,
        "stock_state": stock_state(product),
        "is_active": product.is_active,
        "variant_count": len(product.variants),
    }


@dataclass
class ProductListView:
    service: ProductService
    gate: PermissionGate
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    debounce_ms: int = 300
    timer_factory: TimerFactory = thread_timer
    export_dir: str | Path = "exports"
    products: list[Product] = field(default_factory=list)
    summary: ProductSummary | None = None
    filters: dict[str, Any] = field(default_factory=lambda: {"page": 1, "per_page": 20})
    meta: dict[str, Any] | None = None
    is_loading: bool = False
    error_message: str | None = None
    trace_id: str | None = None
    last_export: Path | None = None

    def __post_init__(self) -> None:
        self._debouncer = SearchDebouncer(self._search_now, self.debounce_ms, self.timer_factory)

    def can_view(self) -> bool:
        return self.gate.is_allowed(PRODUCT_VIEW)

    def load(self, filters: dict[str, Any] | None = None) -> bool:
        if filters is not None:
            self.filters = {**self.filters, **filters}
        if not self.can_view():
            self.error_message = "You do not have permission to view products"
            self.products = []
            return False
        self.is_loading = True
        self.error_message = None
        try:
            page = self.service.list_products(self.filters).data
            self.products = list(page.data)
            self.meta = page.model_dump(mode="json", exclude={"data"})
        except ServiceError as exc:
            self.error_message = exc.message
            self.trace_id = exc.trace_id
            self.notifications.error(exc.message, details={"trace_id": exc.trace_id})
            return False
        finally:
            self.is_loading = False
        self._load_summary()
        return True

    def _load_summary(self) -> None:
        try:
            self.summary = self.service.summary()
        except ServiceError:
            self.summary = calculate_product_summary(self.products)

    def search(self, term: str) -> None:
        self._debouncer.submit(term)

    def _search_now(self, term: str) -> None:
        self.load({"search": term, "page": 1})

    def go_to_page(self, page: int) -> bool:
        return self.load({"page": max(page, 1)})

    def close(self) -> None:
        self._debouncer.cancel()

    def import_products(self, products: list[dict[str, Any]]) -> dict[str, Any]:
        if not self.gate.is_allowed(PRODUCT_CREATE):
            return {"ok": False, "error": "You do not have permission to create products", "field_errors": {}}
        try:
            response = self.service.create_products_bulk(products)
        except ServiceError as exc:
            self.notifications.error(exc.message, details={"trace_id": exc.trace_id})
            return {"ok": False, "error": exc.message, "field_errors": dict(exc.field_errors)}
        self.notifications.success(response.message or f"Imported {len(products)} products")
        self.load()
        return {"ok": True, "error": None, "field_errors": {}}

    def export_csv(self) -> dict[str, Any]:
        if not self.products:
            self.notifications.warning("There are no products to export")
            return {"ok": False, "error": "There are no products to export", "path": None}
        try:
            path = export_rows(
                module="products",
                rows=[product_row(product) for product in self.products],
                headers=EXPORT_HEADERS,
                output_dir=self.export_dir,
                filters={key: value for key, value in self.filters.items() if value not in (None, "")},
            )
        except OSError as exc:
            self.notifications.error(f"Export failed: {exc}")
            return {"ok": False, "error": str(exc), "path": None}
        self.last_export = path
        self.notifications.success(f"Exported {len(self.products)} products")
        return {"ok": True, "error": None, "path": str(path)}

    def render(self) -> dict[str, Any]:
        rows = [product_row(product) for product in self.products]
        state = resolve_state(
            can_view=self.can_view(),
            is_loading=self.is_loading,
            error=self.error_message,
            has_data=bool(rows),
            trace_id=self.trace_id,
        )
        summary = self.summary or calculate_product_summary(self.products)
        return {
            "can_view": self.can_view(),
            "actions": {
                "create": self.gate.is_allowed(PRODUCT_CREATE),
                "edit": self.gate.is_allowed(PRODUCT_UPDATE),
                "delete": self.gate.is_allowed(PRODUCT_DELETE),
                "export": bool(rows),
            },
            "loading": self.is_loading,
            "error": self.error_message,
            "summary": summary.model_dump(mode="json"),
            "rows": rows,
            "meta": self.meta,
            "search_pending": self._debouncer.pending,
            "view_state": StateWidget(state).render(),
            "notifications": self.notifications.render(),
            "filters": self.filters,
        }
