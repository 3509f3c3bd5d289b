from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from ..dispatch_validation import (
    validate_acknowledge_payload,
    validate_create_dispatch_payload,
    validate_return_payload,
    validate_update_dispatch_payload,
)
from ..exceptions import (
    ApiError,
    DispatchActionForbiddenError,
    DispatchStateError,
    ForbiddenError,
    ValidationError,
)
from ..models_dispatch import (
    Dispatch,
    DispatchCreateRequest,
    DispatchItem,
    DispatchListResponse,
    DispatchMutationResponse,
    DispatchQuery,
    DispatchUpdateRequest,
    OverdueReturnsResponse,
)
from .base import BaseClient

logger = logging.getLogger(__name__)

DISPATCHES_PATH = "/whs/dispatches"
_STATE_HINTS = ("already", "pending", "cannot be", "no longer", "exceed")


@dataclass
class DispatchesClient(BaseClient):
    def list_dispatches(self, filters: DispatchQuery | None = None) -> DispatchListResponse:
        params = build_dispatch_params(filters or DispatchQuery())
        payload = self._request(
            "GET", DISPATCHES_PATH, params=params, module="dispatches", operation="list_dispatches"
        )
        if not isinstance(payload, dict):
            raise ValueError("Expected dispatches response to be a JSON object")
        return DispatchListResponse.model_validate(payload)

    def get_dispatch(self, dispatch_id: str) -> Dispatch:
        try:
            payload = self._request(
                "GET", f"{DISPATCHES_PATH}/{dispatch_id}", module="dispatches", operation="get_dispatch"
            )
        except ApiError as exc:
            _raise_dispatch_error(exc)
        if not isinstance(payload, dict):
            raise ValueError("Expected dispatch response to be a JSON object")
        record = payload.get("data") or payload.get("dispatch") or payload
        return Dispatch.model_validate(record)

    def create_dispatch(
        self,
        payload: DispatchCreateRequest | Mapping[str, Any],
        stock_levels: Mapping[str, int] | None = None,
    ) -> DispatchMutationResponse:
        normalized = validate_create_dispatch_payload(payload, stock_levels=stock_levels)
        return self._mutate(
            "POST",
            DISPATCHES_PATH,
            normalized.model_dump(mode="json", exclude_none=True),
            operation="create_dispatch",
        )

    def update_dispatch(
        self,
        dispatch_id: str,
        payload: DispatchUpdateRequest | Mapping[str, Any],
        current: Any = None,
        stock_levels: Mapping[str, int] | None = None,
    ) -> DispatchMutationResponse:
        normalized = validate_update_dispatch_payload(payload, current=current, stock_levels=stock_levels)
        return self._mutate(
            "PUT",
            f"{DISPATCHES_PATH}/{dispatch_id}",
            normalized.model_dump(mode="json", exclude_none=True),
            operation="update_dispatch",
        )

    def delete_dispatch(self, dispatch_id: str) -> DispatchMutationResponse:
        return self._mutate("DELETE", f"{DISPATCHES_PATH}/{dispatch_id}", None, operation="delete_dispatch")

    def acknowledge_receipt(self, dispatch_id: str, payload: Any, current: Any = None) -> DispatchMutationResponse:
        """Send received quantities; the returned dispatch replaces local state."""
        normalized = validate_acknowledge_payload(payload, current)
        logger.info(
            "dispatch_acknowledge_attempt",
            extra={"dispatch_id": dispatch_id, "lines": len(normalized.items)},
        )
        return self._mutate(
            "PATCH",
            f"{DISPATCHES_PATH}/{dispatch_id}/acknowledge",
            normalized.model_dump(mode="json", exclude_none=True),
            operation="acknowledge_receipt",
        )

    def return_items(self, dispatch_id: str, payload: Any, current: Any = None) -> DispatchMutationResponse:
        normalized = validate_return_payload(payload, current)
        return self._mutate(
            "PATCH",
            f"{DISPATCHES_PATH}/{dispatch_id}/return",
            normalized.model_dump(mode="json", exclude_none=True),
            operation="return_items",
        )

    def mark_items_returned(self, dispatch_id: str, payload: Any, current: Any = None) -> DispatchMutationResponse:
        normalized = validate_return_payload(payload, current)
        return self._mutate(
            "POST",
            f"{DISPATCHES_PATH}/{dispatch_id}/mark-returned",
            normalized.model_dump(mode="json", exclude_none=True),
            operation="mark_items_returned",
        )

    def list_overdue_returns(self) -> list[DispatchItem]:
        payload = self._request(
            "GET", f"{DISPATCHES_PATH}/overdue", module="dispatches", operation="list_overdue_returns"
        )
        if isinstance(payload, list):
            payload = {"data": payload}
        if not isinstance(payload, dict):
            raise ValueError("Expected overdue returns response to be a JSON object")
        return OverdueReturnsResponse.model_validate(payload).data

    def _mutate(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None,
        *,
        operation: str,
    ) -> DispatchMutationResponse:
        try:
            data = self._request(
                method,
                path,
                json_body=body,
                module="dispatches",
                operation=operation,
                invalidate_paths=[DISPATCHES_PATH, "/whs/breakages/my-assignable-items"],
            )
        except ApiError as exc:
            _raise_dispatch_error(exc)
        if data is None:
            return DispatchMutationResponse(status="success")
        if not isinstance(data, dict):
            raise ValueError(f"Expected {operation} response to be a JSON object")
        return DispatchMutationResponse.model_validate(data)


def build_dispatch_params(filters: DispatchQuery) -> dict[str, Any]:
    return filters.model_dump(exclude_none=True, mode="json")


def _raise_dispatch_error(exc: ApiError) -> None:
    if isinstance(exc, ForbiddenError) and not isinstance(exc, DispatchActionForbiddenError):
        raise DispatchActionForbiddenError(**exc.__dict__) from exc
    if isinstance(exc, ValidationError) and not isinstance(exc, DispatchStateError):
        message = exc.message.lower() if exc.message else ""
        if any(hint in message for hint in _STATE_HINTS):
            raise DispatchStateError(**exc.__dict__) from exc
    raise exc
