from __future__ import annotations

import logging
from typing import Any, Mapping

from whs_client_sdk import ApiSession
from whs_client_sdk.models_products import (
    Product,
    ProductListResponse,
    ProductMutationResponse,
    ProductQuery,
    ProductSummary,
)

from .errors import normalize_error

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def list_products(self, filters: Mapping[str, Any] | ProductQuery | None = None) -> ProductListResponse:
        query = filters if isinstance(filters, ProductQuery) else ProductQuery.model_validate(dict(filters or {}))
        try:
            return self.session.products_client().list_products(query)
        except Exception as exc:
            raise normalize_error(exc, "Failed to load products") from exc

    def get_product(self, product_id: str) -> Product:
        try:
            return self.session.products_client().get_product(product_id)
        except Exception as exc:
            raise normalize_error(exc, "Failed to load product") from exc

    def summary(self) -> ProductSummary:
        try:
            return self.session.products_client().get_product_summary()
        except Exception as exc:
            raise normalize_error(exc, "Failed to load product summary") from exc

    def create_product(self, payload: Mapping[str, Any], *, context_key: str | None = None) -> ProductMutationResponse:
        try:
            response = self.session.products_client(context_key).create_product(payload)
        except Exception as exc:
            raise normalize_error(exc, "Failed to create product") from exc
        logger.info("product_create_success", extra={"name": payload.get("name")})
        return response

    def create_products_bulk(self, products: list[Mapping[str, Any]]) -> ProductMutationResponse:
        try:
            response = self.session.products_client().create_products_bulk(products)
        except Exception as exc:
            raise normalize_error(exc, "Failed to import products") from exc
        logger.info("product_bulk_create_success", extra={"count": len(products)})
        return response

    def update_product(
        self,
        product_id: str,
        payload: Mapping[str, Any],
        *,
        context_key: str | None = None,
    ) -> ProductMutationResponse:
        try:
            return self.session.products_client(context_key).update_product(product_id, payload)
        except Exception as exc:
            raise normalize_error(exc, "Failed to update product") from exc

    def delete_product(self, product_id: str) -> ProductMutationResponse:
        try:
            return self.session.products_client().delete_product(product_id)
        except Exception as exc:
            raise normalize_error(exc, "Failed to delete product") from exc
