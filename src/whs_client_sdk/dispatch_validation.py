from __future__ import annotations

from typing import Any, Mapping

from .dispatch_state import (
    DispatchStatus,
    derive_dispatch_status,
    dispatch_items,
    is_item_returnable,
    item_remaining_quantity,
    item_returnable_balance,
)
from .item_availability import item_field
from .models import coerce_int
from .models_dispatch import (
    AcknowledgeLine,
    AcknowledgeRequest,
    DispatchCreateRequest,
    DispatchItemCreate,
    DispatchType,
    DispatchUpdateRequest,
    ReturnLine,
    ReturnRequest,
)
from .validation import ValidationIssue, coerce_model, raise_issue, raise_issues

NO_ITEMS_TO_ACKNOWLEDGE = "No items to acknowledge"
NO_ITEMS_TO_RETURN = "At least one item must have a return quantity greater than 0"
DISPATCH_TYPES = frozenset(kind.value for kind in DispatchType)


def _lines(payload: Any) -> list[Any]:
    if payload is None:
        return []
    if isinstance(payload, (list, tuple)):
        return list(payload)
    return list(item_field(payload, "items") or [])


def _items_by_id(current: Any) -> dict[str, Any] | None:
    if current is None:
        return None
    return {str(item_field(item, "id")): item for item in dispatch_items(current)}


def default_acknowledge_lines(dispatch: Any) -> list[AcknowledgeLine]:
    return [
        AcknowledgeLine(id=item_field(item, "id"), received_quantity=item_remaining_quantity(item))
        for item in dispatch_items(dispatch)
    ]


def validate_acknowledge_payload(payload: Any, current: Any = None) -> AcknowledgeRequest:
    """Drop non-positive lines and check the rest against each item's deficit.

    ``current`` is the dispatch (or its item list) as last returned by the
    server; when given, ids must belong to it.
    """
    known = _items_by_id(current)
    issues: list[ValidationIssue] = []
    accepted: list[AcknowledgeLine] = []
    for idx, raw in enumerate(_lines(payload)):
        line = coerce_model(raw, AcknowledgeLine, idx)
        if line.received_quantity <= 0:
            continue
        if known is None:
            accepted.append(line)
            continue
        item = known.get(line.id)
        if item is None:
            issues.append(ValidationIssue(idx, "id", "Item does not belong to this dispatch"))
            continue
        remaining = item_remaining_quantity(item)
        if line.received_quantity > remaining:
            issues.append(ValidationIssue(idx, "received_quantity", f"Maximum receivable quantity is {remaining}"))
            continue
        accepted.append(line)
    raise_issues(issues)
    if not accepted:
        raise_issue(None, "items", NO_ITEMS_TO_ACKNOWLEDGE)
    return AcknowledgeRequest(items=accepted)


def returnable_items(dispatch: Any) -> list[Any]:
    return [item for item in dispatch_items(dispatch) if is_item_returnable(item)]


def validate_return_payload(payload: Any, current: Any = None) -> ReturnRequest:
    candidates = None if current is None else {str(item_field(item, "id")): item for item in returnable_items(current)}
    issues: list[ValidationIssue] = []
    accepted: list[ReturnLine] = []
    for idx, raw in enumerate(_lines(payload)):
        line = coerce_model(raw, ReturnLine, idx)
        if line.returned_quantity < 0:
            issues.append(ValidationIssue(idx, "returned_quantity", "Quantity cannot be negative"))
            continue
        if candidates is not None:
            item = candidates.get(line.id)
            if item is None:
                if line.returned_quantity > 0:
                    issues.append(ValidationIssue(idx, "id", "Item is not available for return"))
                continue
            balance = item_returnable_balance(item)
            if line.returned_quantity > balance:
                issues.append(ValidationIssue(idx, "returned_quantity", f"Maximum returnable quantity is {balance}"))
                continue
        if line.returned_quantity > 0:
            accepted.append(line)
    raise_issues(issues)
    if not accepted:
        raise_issue(None, "items", NO_ITEMS_TO_RETURN)
    return ReturnRequest(items=accepted)


def _validate_header(data: DispatchCreateRequest | DispatchUpdateRequest, *, partial: bool) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    required = (
        ("from_store_id", "From store is required"),
        ("to_entity", "To entity is required"),
        ("to_user_id", "To user is required"),
    )
    fields_set = data.model_fields_set
    for name, reason in required:
        if partial and name not in fields_set:
            continue
        if not getattr(data, name):
            issues.append(ValidationIssue(None, name, reason))
    if data.type is not None and data.type not in DISPATCH_TYPES:
        issues.append(ValidationIssue(None, "type", "Type must be internal or external"))
    return issues


def _validate_items(
    items: list[DispatchItemCreate],
    stock_levels: Mapping[str, int] | None,
) -> list[ValidationIssue]:
    if not items:
        return [ValidationIssue(None, "items", "At least one item is required")]
    issues: list[ValidationIssue] = []
    for idx, item in enumerate(items):
        if not item.product_id:
            issues.append(ValidationIssue(idx, "product_id", "Product is required"))
        if item.quantity <= 0:
            issues.append(ValidationIssue(idx, "quantity", "Quantity must be greater than 0"))
            continue
        if stock_levels is not None and item.product_id is not None:
            stock_key = item.variant_id or item.product_id
            if stock_key in stock_levels:
                available = coerce_int(stock_levels[stock_key])
                if item.quantity > available:
                    issues.append(ValidationIssue(idx, "quantity", f"Only {available} units available"))
    return issues


def validate_create_dispatch_payload(
    payload: DispatchCreateRequest | Mapping[str, Any],
    stock_levels: Mapping[str, int] | None = None,
) -> DispatchCreateRequest:
    data = coerce_model(payload, DispatchCreateRequest, None)
    items = [coerce_model(item, DispatchItemCreate, idx) for idx, item in enumerate(data.items)]
    raise_issues(_validate_header(data, partial=False) + _validate_items(items, stock_levels))
    return data.model_copy(update={"items": items})


def validate_update_dispatch_payload(
    payload: DispatchUpdateRequest | Mapping[str, Any],
    current: Any = None,
    stock_levels: Mapping[str, int] | None = None,
) -> DispatchUpdateRequest:
    if current is not None and derive_dispatch_status(current) is not DispatchStatus.PENDING:
        raise_issue(None, "status", "Only pending dispatches can be edited")
    data = coerce_model(payload, DispatchUpdateRequest, None)
    issues = _validate_header(data, partial=True)
    if data.items is not None:
        items = [coerce_model(item, DispatchItemCreate, idx) for idx, item in enumerate(data.items)]
        issues += _validate_items(items, stock_levels)
        data = data.model_copy(update={"items": items})
    raise_issues(issues)
    return data
