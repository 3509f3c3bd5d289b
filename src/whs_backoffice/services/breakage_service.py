from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from whs_client_sdk import ApiSession
from whs_client_sdk.breakage_state import build_replacement_dispatch_payload
from whs_client_sdk.models_breakages import (
    AssignableItem,
    Breakage,
    BreakageListResponse,
    BreakageMutationResponse,
    BreakageQuery,
    BreakageStatus,
)
from whs_client_sdk.models_dispatch import DispatchMutationResponse

from .errors import ServiceError, normalize_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplacementOutcome:
    dispatch: DispatchMutationResponse
    status_updated: bool
    warning: str | None = None


class BreakageService:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def list_breakages(self, filters: Mapping[str, Any] | BreakageQuery | None = None) -> BreakageListResponse:
        query = filters if isinstance(filters, BreakageQuery) else BreakageQuery.model_validate(dict(filters or {}))
        try:
            return self.session.breakages_client().list_breakages(query)
        except Exception as exc:
            raise normalize_error(exc, "Failed to load breakages") from exc

    def get_breakage(self, breakage_id: str, *, context_key: str | None = None) -> Breakage:
        try:
            return self.session.breakages_client(context_key).get_breakage(breakage_id)
        except Exception as exc:
            raise normalize_error(exc, "Failed to load breakage details") from exc

    def assignable_items(self, *, context_key: str | None = None) -> list[AssignableItem]:
        try:
            return self.session.breakages_client(context_key).get_assignable_items()
        except Exception as exc:
            raise normalize_error(exc, "Failed to load assignable items") from exc

    def create_breakage(
        self,
        payload: Mapping[str, Any],
        *,
        assignable_items: Iterable[Any] | None = None,
        context_key: str | None = None,
    ) -> BreakageMutationResponse:
        try:
            response = self.session.breakages_client(context_key).create_breakage(payload, assignable_items)
        except Exception as exc:
            raise normalize_error(exc, "Failed to report breakage") from exc
        logger.info("breakage_create_success")
        return response

    def update_breakage(
        self,
        breakage_id: str,
        payload: Mapping[str, Any],
        *,
        current: Any = None,
        assignable_items: Iterable[Any] | None = None,
        context_key: str | None = None,
    ) -> BreakageMutationResponse:
        try:
            return self.session.breakages_client(context_key).update_breakage(
                breakage_id, payload, current, assignable_items
            )
        except Exception as exc:
            raise normalize_error(exc, "Failed to update breakage") from exc

    def delete_breakage(self, breakage_id: str, *, context_key: str | None = None) -> BreakageMutationResponse:
        try:
            return self.session.breakages_client(context_key).delete_breakage(breakage_id)
        except Exception as exc:
            raise normalize_error(exc, "Failed to delete breakage") from exc

    def decide(
        self,
        breakage_id: str,
        decision: str,
        *,
        notes: str | None = None,
        context_key: str | None = None,
    ) -> BreakageMutationResponse:
        fallback = "Failed to reject breakage" if decision == "rejected" else "Failed to approve breakage"
        try:
            response = self.session.breakages_client(context_key).approve_breakage(
                breakage_id, {"approval_status": decision, "notes": notes}
            )
        except Exception as exc:
            logger.warning("breakage_approval_failed", extra={"breakage_id": breakage_id, "decision": decision})
            raise normalize_error(exc, fallback) from exc
        logger.info("breakage_approval_success", extra={"breakage_id": breakage_id, "decision": decision})
        return response

    def create_replacement_dispatch(
        self,
        breakage: Breakage,
        *,
        from_store_id: str | None,
        to_user_id: str | None = None,
        notes: str | None = None,
        context_key: str | None = None,
    ) -> ReplacementOutcome:
        """Create the replacement dispatch, then move the breakage to dispatch_initiated.

        A failed status update after a successful dispatch is reported as a
        warning, since the dispatch already exists.
        """
        try:
            payload = build_replacement_dispatch_payload(
                breakage, from_store_id=from_store_id, to_user_id=to_user_id, notes=notes
            )
            dispatch = self.session.dispatches_client(context_key).create_dispatch(payload)
        except Exception as exc:
            raise normalize_error(exc, "Failed to create replacement dispatch") from exc
        logger.info("replacement_dispatch_created", extra={"breakage_id": breakage.id})
        try:
            self.mark_dispatch_initiated(breakage.id, context_key=context_key)
        except ServiceError as error:
            if error.cancelled:
                raise
            return ReplacementOutcome(dispatch=dispatch, status_updated=False, warning=error.message)
        return ReplacementOutcome(dispatch=dispatch, status_updated=True)

    def mark_dispatch_initiated(self, breakage_id: str, *, context_key: str | None = None) -> BreakageMutationResponse:
        try:
            return self.session.breakages_client(context_key).update_breakage_status(
                breakage_id, BreakageStatus.DISPATCH_INITIATED.value
            )
        except Exception as exc:
            logger.warning("replacement_status_update_failed", extra={"breakage_id": breakage_id})
            raise normalize_error(exc, "Failed to update breakage status") from exc

    def close_context(self, context_key: str) -> None:
        self.session.http.switch_context(context_key)
