from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import PageMeta, coerce_bool, coerce_int, parse_count

DEFAULT_LOW_STOCK_THRESHOLD = 10


def coerce_money(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0.00")


class ProductQuery(BaseModel):
    model_config = ConfigDict(extra="allow")

    page: int = 1
    per_page: int = 20
    search: str | None = None
    status: str | None = None
    category: str | None = None

    @field_validator("status", "category", mode="before")
    @classmethod
    def _drop_all(cls, value: Any) -> Any:
        return None if value in ("", "all") else value

    @field_validator("search", mode="before")
    @classmethod
    def _drop_blank(cls, value: Any) -> Any:
        return value or None


class ProductVariant(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str | None = None
    sku: str | None = None
    price: Decimal = Decimal("0.00")
    stock_quantity: int = 0
    is_active: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("price", mode="before")
    @classmethod
    def _money(cls, value: Any) -> Decimal:
        return coerce_money(value)

    @field_validator("stock_quantity", mode="before")
    @classmethod
    def _stock(cls, value: Any) -> int:
        return parse_count(value)

    @field_validator("is_active", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return coerce_bool(value)


class Product(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    sku: str | None = None
    barcode: str | None = None
    description: str | None = None
    category: str | None = None
    category_id: str | None = None
    supplier: str | None = None
    brand: str | None = None
    unit_of_measurement: str | None = None
    price: Decimal = Decimal("0.00")
    unit_cost: Decimal = Decimal("0.00")
    stock_quantity: int = 0
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    on_hand: int = 0
    allocated: int = 0
    is_active: bool = False
    is_featured: bool = False
    track_inventory: bool = False
    has_variations: bool = False
    image_url: str | None = None
    images: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", "category_id", mode="before")
    @classmethod
    def _ids_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("price", "unit_cost", mode="before")
    @classmethod
    def _money(cls, value: Any) -> Decimal:
        return coerce_money(value)

    @field_validator("stock_quantity", "on_hand", "allocated", mode="before")
    @classmethod
    def _counts(cls, value: Any) -> int:
        return parse_count(value)

    @field_validator("low_stock_threshold", mode="before")
    @classmethod
    def _threshold(cls, value: Any) -> int:
        return coerce_int(value, DEFAULT_LOW_STOCK_THRESHOLD) or DEFAULT_LOW_STOCK_THRESHOLD

    @field_validator("is_active", "is_featured", "track_inventory", "has_variations", mode="before")
    @classmethod
    def _flags(cls, value: Any) -> bool:
        return coerce_bool(value)

    @field_validator("images", "tags", "variants", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.low_stock_threshold

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock_quantity <= 0


class ProductPage(PageMeta):
    data: list[Product] = Field(default_factory=list)


class ProductListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    data: ProductPage = Field(default_factory=ProductPage)


class ProductSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    total_products: int = 0
    active_products: int = 0
    low_stock_products: int = 0
    out_of_stock_products: int = 0
    total_inventory_value: Decimal = Decimal("0.00")


class ProductCategory(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value


class Supplier(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else value


def calculate_product_summary(products: list[Product] | None) -> ProductSummary:
    rows = products or []
    return ProductSummary(
        total_products=len(rows),
        active_products=sum(1 for product in rows if product.is_active),
        low_stock_products=sum(1 for product in rows if product.is_low_stock),
        out_of_stock_products=sum(1 for product in rows if product.is_out_of_stock),
        total_inventory_value=sum(
            (product.price * product.stock_quantity for product in rows),
            Decimal("0.00"),
        ),
    )


class ProductCategoriesResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    categories: list[ProductCategory] = Field(default_factory=list)

    @field_validator("categories", mode="before")
    @classmethod
    def _default(cls, value: Any) -> Any:
        return value or []


class SuppliersResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    data: list[Supplier] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _default(cls, value: Any) -> Any:
        return value or []


class ProductMutationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str | None = None
    message: str | None = None
    data: dict[str, Any] | None = None
