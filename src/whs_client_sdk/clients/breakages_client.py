from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..breakage_validation import (
    validate_approval_payload,
    validate_create_breakage_payload,
    validate_update_breakage_payload,
)
from ..exceptions import (
    ApiError,
    BreakageActionForbiddenError,
    BreakageStateError,
    ForbiddenError,
    ValidationError,
)
from ..models_breakages import (
    AssignableItem,
    AssignableItemsResponse,
    Breakage,
    BreakageApprovalRequest,
    BreakageCreateRequest,
    BreakageListResponse,
    BreakageMutationResponse,
    BreakageQuery,
    BreakageStatus,
    BreakageUpdateRequest,
)
from ..validation import raise_issue
from .base import BaseClient

logger = logging.getLogger(__name__)

BREAKAGES_PATH = "/whs/breakages"
ASSIGNABLE_ITEMS_PATH = f"{BREAKAGES_PATH}/my-assignable-items"
BREAKAGE_STATUSES = frozenset(status.value for status in BreakageStatus) | {"approved", "rejected"}
_STATE_HINTS = ("already", "pending", "cannot be", "no longer", "approved", "rejected")


@dataclass
class BreakagesClient(BaseClient):
    def list_breakages(self, filters: BreakageQuery | None = None) -> BreakageListResponse:
        params = (filters or BreakageQuery()).model_dump(exclude_none=True, mode="json")
        payload = self._request("GET", BREAKAGES_PATH, params=params, module="breakages", operation="list_breakages")
        if not isinstance(payload, dict):
            raise ValueError("Expected breakages response to be a JSON object")
        return BreakageListResponse.model_validate(payload)

    def get_breakage(self, breakage_id: str) -> Breakage:
        try:
            payload = self._request(
                "GET", f"{BREAKAGES_PATH}/{breakage_id}", module="breakages", operation="get_breakage"
            )
        except ApiError as exc:
            _raise_breakage_error(exc)
        if not isinstance(payload, dict):
            raise ValueError("Expected breakage response to be a JSON object")
        record = payload.get("breakage") or payload.get("data") or payload
        return Breakage.model_validate(record)

    def get_assignable_items(self, params: Mapping[str, Any] | None = None) -> list[AssignableItem]:
        payload = self._request(
            "GET",
            ASSIGNABLE_ITEMS_PATH,
            params=dict(params) if params else None,
            module="breakages",
            operation="get_assignable_items",
        )
        if not isinstance(payload, dict):
            raise ValueError("Expected assignable items response to be a JSON object")
        return AssignableItemsResponse.model_validate(payload).items

    def create_breakage(
        self,
        payload: BreakageCreateRequest | Mapping[str, Any],
        assignable_items: Iterable[Any] | None = None,
    ) -> BreakageMutationResponse:
        normalized = validate_create_breakage_payload(payload, assignable_items)
        return self._mutate(
            "POST",
            BREAKAGES_PATH,
            normalized.model_dump(mode="json", exclude_none=True),
            operation="create_breakage",
        )

    def update_breakage(
        self,
        breakage_id: str,
        payload: BreakageUpdateRequest | Mapping[str, Any],
        current: Any = None,
        assignable_items: Iterable[Any] | None = None,
    ) -> BreakageMutationResponse:
        normalized = validate_update_breakage_payload(payload, current, assignable_items)
        return self._mutate(
            "PUT",
            f"{BREAKAGES_PATH}/{breakage_id}",
            normalized.model_dump(mode="json", exclude_none=True),
            operation="update_breakage",
        )

    def delete_breakage(self, breakage_id: str) -> BreakageMutationResponse:
        return self._mutate("DELETE", f"{BREAKAGES_PATH}/{breakage_id}", None, operation="delete_breakage")

    def approve_breakage(
        self,
        breakage_id: str,
        payload: BreakageApprovalRequest | Mapping[str, Any],
    ) -> BreakageMutationResponse:
        normalized = validate_approval_payload(payload)
        logger.info(
            "breakage_approval_attempt",
            extra={"breakage_id": breakage_id, "decision": normalized.approval_status},
        )
        return self._mutate(
            "PATCH",
            f"{BREAKAGES_PATH}/{breakage_id}/approve",
            normalized.model_dump(mode="json", exclude_none=True),
            operation="approve_breakage",
        )

    def update_breakage_status(self, breakage_id: str, status: str) -> BreakageMutationResponse:
        if status not in BREAKAGE_STATUSES:
            raise_issue(None, "status", f"Unknown breakage status: {status}")
        return self._mutate(
            "PUT",
            f"{BREAKAGES_PATH}/{breakage_id}",
            {"status": status},
            operation="update_breakage_status",
        )

    def _mutate(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None,
        *,
        operation: str,
    ) -> BreakageMutationResponse:
        try:
            data = self._request(
                method,
                path,
                json_body=body,
                module="breakages",
                operation=operation,
                invalidate_paths=[BREAKAGES_PATH],
            )
        except ApiError as exc:
            _raise_breakage_error(exc)
        if data is None:
            return BreakageMutationResponse(status="success")
        if not isinstance(data, dict):
            raise ValueError(f"Expected {operation} response to be a JSON object")
        return BreakageMutationResponse.model_validate(data)


def _raise_breakage_error(exc: ApiError) -> None:
    if isinstance(exc, ForbiddenError) and not isinstance(exc, BreakageActionForbiddenError):
        raise BreakageActionForbiddenError(**exc.__dict__) from exc
    if isinstance(exc, ValidationError) and not isinstance(exc, BreakageStateError):
        message = exc.message.lower() if exc.message else ""
        if any(hint in message for hint in _STATE_HINTS):
            raise BreakageStateError(**exc.__dict__) from exc
    raise exc
