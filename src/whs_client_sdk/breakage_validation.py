from __future__ import annotations

from typing import Any, Iterable, Mapping

from .breakage_state import is_breakage_editable
from .item_availability import available_quantity, item_field, quantity_error
from .models_breakages import (
    BREAKAGE_CAUSES,
    ApprovalStatus,
    BreakageApprovalRequest,
    BreakageCreateRequest,
    BreakageItemCreate,
    BreakageUpdateRequest,
)
from .validation import ValidationIssue, coerce_model, raise_issue, raise_issues

APPROVAL_DECISIONS = frozenset({ApprovalStatus.APPROVED.value, ApprovalStatus.REJECTED.value})


def _assignable_index(assignable_items: Iterable[Any] | None) -> dict[str, Any] | None:
    if assignable_items is None:
        return None
    return {str(item_field(item, "id")): item for item in assignable_items}


def _validate_items(
    items: list[BreakageItemCreate],
    assignable: dict[str, Any] | None,
) -> list[ValidationIssue]:
    if not items:
        return [ValidationIssue(None, "items", "At least one item is required")]
    issues: list[ValidationIssue] = []
    for idx, item in enumerate(items):
        if not item.assignable_item_id:
            issues.append(ValidationIssue(idx, "assignable_item_id", "Item is required"))
        if not item.cause:
            issues.append(ValidationIssue(idx, "cause", "Cause is required"))
        elif item.cause not in BREAKAGE_CAUSES:
            issues.append(ValidationIssue(idx, "cause", f"Unknown cause: {item.cause}"))
        if item.quantity <= 0:
            issues.append(ValidationIssue(idx, "quantity", "Quantity must be greater than 0"))
            continue
        if assignable is not None and item.assignable_item_id:
            source = assignable.get(str(item.assignable_item_id))
            if source is None:
                issues.append(ValidationIssue(idx, "assignable_item_id", "Item is no longer available"))
                continue
            error = quantity_error(item.quantity, available_quantity(source))
            if error:
                issues.append(ValidationIssue(idx, "quantity", error))
    return issues


def validate_create_breakage_payload(
    payload: BreakageCreateRequest | Mapping[str, Any],
    assignable_items: Iterable[Any] | None = None,
) -> BreakageCreateRequest:
    """Check a breakage report before it is sent.

    When ``assignable_items`` is given, every quantity is checked against the
    available quantity of the referenced dispatch item.
    """
    data = coerce_model(payload, BreakageCreateRequest, None)
    items = [coerce_model(item, BreakageItemCreate, idx) for idx, item in enumerate(data.items)]
    issues: list[ValidationIssue] = []
    if not data.approver_id:
        issues.append(ValidationIssue(None, "approver_id", "Approver is required"))
    issues += _validate_items(items, _assignable_index(assignable_items))
    raise_issues(issues)
    return data.model_copy(update={"items": items})


def validate_update_breakage_payload(
    payload: BreakageUpdateRequest | Mapping[str, Any],
    current: Any = None,
    assignable_items: Iterable[Any] | None = None,
) -> BreakageUpdateRequest:
    if current is not None and not is_breakage_editable(current):
        raise_issue(None, "status", "Only pending breakages awaiting approval can be edited")
    data = coerce_model(payload, BreakageUpdateRequest, None)
    if data.items is not None:
        items = [coerce_model(item, BreakageItemCreate, idx) for idx, item in enumerate(data.items)]
        raise_issues(_validate_items(items, _assignable_index(assignable_items)))
        data = data.model_copy(update={"items": items})
    return data


def validate_approval_payload(payload: BreakageApprovalRequest | Mapping[str, Any]) -> BreakageApprovalRequest:
    data = coerce_model(payload, BreakageApprovalRequest, None)
    decision = data.approval_status.strip().lower()
    if decision not in APPROVAL_DECISIONS:
        raise_issue(None, "approval_status", "approval_status must be approved or rejected")
    return data.model_copy(update={"approval_status": decision})
