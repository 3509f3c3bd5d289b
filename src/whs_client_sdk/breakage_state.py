from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from .item_availability import item_field
from .models import coerce_bool, coerce_int, status_text
from .models_breakages import ApprovalStatus, BreakageStatus
from .models_dispatch import DispatchCreateRequest, DispatchItemCreate, DispatchType

REPLACEMENT_TARGET_ENTITY = "warehouse"


@dataclass(frozen=True)
class BreakageActionAvailability:
    can_view: bool
    can_edit: bool
    can_delete: bool
    can_approve: bool
    can_reject: bool
    can_create_dispatch: bool


@dataclass(frozen=True)
class BreakageSummary:
    total: int
    pending_approval: int
    approved: int
    rejected: int
    total_items: int
    total_quantity: int
    replacement_requested: int


def _status(breakage: Any, name: str) -> str:
    return status_text(item_field(breakage, name), BreakageStatus.PENDING.value)


def _items(breakage: Any) -> list[Any]:
    return list(item_field(breakage, "items") or [])


def replacement_items(breakage: Any) -> list[Any]:
    return [item for item in _items(breakage) if coerce_bool(item_field(item, "replacement_requested"))]


def breakage_action_availability(
    breakage: Any,
    *,
    can_manage: bool = True,
    can_approve: bool = True,
) -> BreakageActionAvailability:
    status = _status(breakage, "status")
    approval = _status(breakage, "approval_status")

    editable = status == BreakageStatus.PENDING.value and approval == ApprovalStatus.PENDING.value
    awaiting_approval = approval == ApprovalStatus.PENDING.value
    can_dispatch = (
        approval == ApprovalStatus.APPROVED.value
        and status != BreakageStatus.DISPATCH_INITIATED.value
        and bool(replacement_items(breakage))
    )
    return BreakageActionAvailability(
        can_view=True,
        can_edit=can_manage and editable,
        can_delete=can_manage and editable,
        can_approve=can_approve and awaiting_approval,
        can_reject=can_approve and awaiting_approval,
        can_create_dispatch=can_manage and can_dispatch,
    )


def is_breakage_editable(breakage: Any) -> bool:
    return (
        _status(breakage, "status") == BreakageStatus.PENDING.value
        and _status(breakage, "approval_status") == ApprovalStatus.PENDING.value
    )


def build_replacement_dispatch_payload(
    breakage: Any,
    *,
    from_store_id: str | None,
    to_user_id: str | None = None,
    to_entity: str = REPLACEMENT_TARGET_ENTITY,
    notes: str | None = None,
) -> DispatchCreateRequest:
    """Build an internal dispatch sending replacements back to the reporter."""
    number = item_field(breakage, "breakage_number") or ""
    items = [
        DispatchItemCreate(
            product_id=_optional_str(item_field(item, "product_id")),
            variant_id=_optional_str(item_field(item, "variant_id")),
            quantity=coerce_int(item_field(item, "quantity")),
            is_returnable=False,
            notes=f"Replacement for broken item: {item_field(item, 'cause')}",
        )
        for item in replacement_items(breakage)
    ]
    return DispatchCreateRequest(
        from_store_id=from_store_id,
        to_entity=to_entity,
        to_user_id=to_user_id or _optional_str(item_field(breakage, "reported_by")),
        type=DispatchType.INTERNAL.value,
        notes=notes or f"Replacement dispatch for breakage {number}",
        items=items,
    )


def breakage_summary(breakages: Iterable[Any] | None) -> BreakageSummary:
    rows = list(breakages or [])
    approvals = [_status(row, "approval_status") for row in rows]
    items = [item for row in rows for item in _items(row)]
    return BreakageSummary(
        total=len(rows),
        pending_approval=approvals.count(ApprovalStatus.PENDING.value),
        approved=approvals.count(ApprovalStatus.APPROVED.value),
        rejected=approvals.count(ApprovalStatus.REJECTED.value),
        total_items=len(items),
        total_quantity=sum(coerce_int(item_field(item, "quantity")) for item in items),
        replacement_requested=sum(1 for item in items if coerce_bool(item_field(item, "replacement_requested"))),
    )


def _optional_str(value: Any) -> str | None:
    return str(value) if value is not None else None
