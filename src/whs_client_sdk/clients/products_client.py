from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from ..models_products import (
    Product,
    ProductCategoriesResponse,
    ProductCategory,
    ProductListResponse,
    ProductMutationResponse,
    ProductQuery,
    ProductSummary,
    Supplier,
    SuppliersResponse,
)
from ..validation import ValidationIssue, raise_issues
from .base import BaseClient

PRODUCTS_PATH = "/products"


@dataclass
class ProductsClient(BaseClient):
    def list_products(self, filters: ProductQuery | None = None) -> ProductListResponse:
        params = (filters or ProductQuery()).model_dump(exclude_none=True, mode="json")
        payload = self._request("GET", PRODUCTS_PATH, params=params, module="products", operation="list_products")
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            raise ValueError("Unexpected API response structure")
        return ProductListResponse.model_validate(payload)

    def get_product(self, product_id: str) -> Product:
        payload = self._request("GET", f"{PRODUCTS_PATH}/{product_id}", module="products", operation="get_product")
        if not isinstance(payload, dict):
            raise ValueError("Expected product response to be a JSON object")
        record = payload.get("data") or payload.get("product") or payload
        return Product.model_validate(record)

    def create_product(self, payload: Mapping[str, Any]) -> ProductMutationResponse:
        body = validate_product_payload(payload)
        return self._mutate("POST", PRODUCTS_PATH, body, operation="create_product")

    def create_products_bulk(self, products: list[Mapping[str, Any]]) -> ProductMutationResponse:
        issues: list[ValidationIssue] = []
        for idx, product in enumerate(products):
            issues.extend(_product_issues(product, idx))
        if not products:
            issues.append(ValidationIssue(None, "products", "At least one product is required"))
        raise_issues(issues)
        return self._mutate(
            "POST",
            f"{PRODUCTS_PATH}/bulk",
            {"products": [dict(product) for product in products]},
            operation="create_products_bulk",
        )

    def update_product(self, product_id: str, payload: Mapping[str, Any]) -> ProductMutationResponse:
        body = validate_product_payload(payload, partial=True)
        return self._mutate("PUT", f"{PRODUCTS_PATH}/{product_id}", body, operation="update_product")

    def delete_product(self, product_id: str) -> ProductMutationResponse:
        return self._mutate("DELETE", f"{PRODUCTS_PATH}/{product_id}", None, operation="delete_product")

    def get_product_summary(self) -> ProductSummary:
        payload = self._request("GET", f"{PRODUCTS_PATH}/summary", module="products", operation="get_product_summary")
        if not isinstance(payload, dict):
            raise ValueError("Expected product summary response to be a JSON object")
        data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
        return ProductSummary.model_validate(data)

    def list_categories(self, params: Mapping[str, Any] | None = None) -> list[ProductCategory]:
        payload = self._request(
            "GET",
            "/product-categories",
            params=dict(params) if params else None,
            module="products",
            operation="list_categories",
        )
        if not isinstance(payload, dict):
            raise ValueError("Expected categories response to be a JSON object")
        return ProductCategoriesResponse.model_validate(payload).categories

    def list_suppliers(self, params: Mapping[str, Any] | None = None) -> list[Supplier]:
        payload = self._request(
            "GET",
            "/suppliers",
            params=dict(params) if params else None,
            module="products",
            operation="list_suppliers",
        )
        if not isinstance(payload, dict):
            raise ValueError("Expected suppliers response to be a JSON object")
        return SuppliersResponse.model_validate(payload).data

    def _mutate(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None,
        *,
        operation: str,
    ) -> ProductMutationResponse:
        data = self._request(
            method,
            path,
            json_body=body,
            module="products",
            operation=operation,
            invalidate_paths=[PRODUCTS_PATH],
        )
        if data is None:
            return ProductMutationResponse(status="success")
        if not isinstance(data, dict):
            raise ValueError(f"Expected {operation} response to be a JSON object")
        return ProductMutationResponse.model_validate(data)


def validate_product_payload(payload: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    raise_issues(_product_issues(payload, None, partial=partial))
    return {key: value for key, value in dict(payload).items() if value is not None}


def _product_issues(payload: Mapping[str, Any], row_index: int | None, *, partial: bool = False) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    name = payload.get("name")
    if (not partial or "name" in payload) and not (isinstance(name, str) and name.strip()):
        issues.append(ValidationIssue(row_index, "name", "Product name is required"))
    for field in ("price", "unit_cost"):
        if payload.get(field) in (None, ""):
            continue
        try:
            amount = Decimal(str(payload[field]))
        except (InvalidOperation, ValueError):
            issues.append(ValidationIssue(row_index, field, f"{field} must be a number"))
            continue
        if amount < 0:
            issues.append(ValidationIssue(row_index, field, f"{field} cannot be negative"))
    stock = payload.get("stock_quantity")
    if isinstance(stock, (int, float)) and stock < 0:
        issues.append(ValidationIssue(row_index, "stock_quantity", "Quantity cannot be negative"))
    return issues
