from __future__ import annotations

import logging
from typing import Any, Mapping

from whs_client_sdk import ApiSession
from whs_client_sdk.models_dispatch import (
    Dispatch,
    DispatchItem,
    DispatchListResponse,
    DispatchMutationResponse,
    DispatchQuery,
)

from .errors import normalize_error

logger = logging.getLogger(__name__)


class DispatchService:
    """Dispatch operations for the views; every failure leaves as a ServiceError."""

    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def list_dispatches(self, filters: Mapping[str, Any] | DispatchQuery | None = None) -> DispatchListResponse:
        query = filters if isinstance(filters, DispatchQuery) else DispatchQuery.model_validate(dict(filters or {}))
        try:
            return self.session.dispatches_client().list_dispatches(query)
        except Exception as exc:
            raise normalize_error(exc, "Failed to load dispatches") from exc

    def get_dispatch(self, dispatch_id: str, *, context_key: str | None = None) -> Dispatch:
        try:
            return self.session.dispatches_client(context_key).get_dispatch(dispatch_id)
        except Exception as exc:
            raise normalize_error(exc, "Failed to load dispatch details") from exc

    def create_dispatch(
        self,
        payload: Mapping[str, Any],
        *,
        stock_levels: Mapping[str, int] | None = None,
        context_key: str | None = None,
    ) -> DispatchMutationResponse:
        try:
            response = self.session.dispatches_client(context_key).create_dispatch(payload, stock_levels)
        except Exception as exc:
            logger.warning("dispatch_create_failed", extra={"error": str(exc)})
            raise normalize_error(exc, "Failed to create dispatch") from exc
        logger.info("dispatch_create_success", extra={"dispatch_id": _record_id(response)})
        return response

    def update_dispatch(
        self,
        dispatch_id: str,
        payload: Mapping[str, Any],
        *,
        current: Any = None,
        stock_levels: Mapping[str, int] | None = None,
        context_key: str | None = None,
    ) -> DispatchMutationResponse:
        try:
            return self.session.dispatches_client(context_key).update_dispatch(
                dispatch_id, payload, current, stock_levels
            )
        except Exception as exc:
            raise normalize_error(exc, "Failed to update dispatch") from exc

    def delete_dispatch(self, dispatch_id: str, *, context_key: str | None = None) -> DispatchMutationResponse:
        try:
            return self.session.dispatches_client(context_key).delete_dispatch(dispatch_id)
        except Exception as exc:
            raise normalize_error(exc, "Failed to delete dispatch") from exc

    def acknowledge_receipt(
        self,
        dispatch_id: str,
        lines: Any,
        *,
        current: Any = None,
        context_key: str | None = None,
    ) -> DispatchMutationResponse:
        try:
            response = self.session.dispatches_client(context_key).acknowledge_receipt(dispatch_id, lines, current)
        except Exception as exc:
            logger.warning("dispatch_acknowledge_failed", extra={"dispatch_id": dispatch_id})
            raise normalize_error(exc, "Failed to acknowledge receipt") from exc
        logger.info("dispatch_acknowledge_success", extra={"dispatch_id": dispatch_id})
        return response

    def return_items(
        self,
        dispatch_id: str,
        lines: Any,
        *,
        current: Any = None,
        context_key: str | None = None,
    ) -> DispatchMutationResponse:
        try:
            response = self.session.dispatches_client(context_key).return_items(dispatch_id, lines, current)
        except Exception as exc:
            logger.warning("dispatch_return_failed", extra={"dispatch_id": dispatch_id})
            raise normalize_error(exc, "Failed to return items") from exc
        logger.info("dispatch_return_success", extra={"dispatch_id": dispatch_id})
        return response

    def mark_items_returned(
        self,
        dispatch_id: str,
        lines: Any,
        *,
        current: Any = None,
        context_key: str | None = None,
    ) -> DispatchMutationResponse:
        try:
            return self.session.dispatches_client(context_key).mark_items_returned(dispatch_id, lines, current)
        except Exception as exc:
            raise normalize_error(exc, "Failed to mark items as returned") from exc

    def list_overdue_returns(self) -> list[DispatchItem]:
        try:
            return self.session.dispatches_client().list_overdue_returns()
        except Exception as exc:
            raise normalize_error(exc, "Failed to load overdue returns") from exc

    def close_context(self, context_key: str) -> None:
        """Late responses for ``context_key`` are dropped after this."""
        self.session.http.switch_context(context_key)


def _record_id(response: DispatchMutationResponse) -> str | None:
    record = response.record
    return record.id if record is not None else None
