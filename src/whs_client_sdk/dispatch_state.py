from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from .item_availability import item_field
from .models import coerce_bool, coerce_int


class DispatchStatus(str, Enum):
    EMPTY = "Empty"
    PENDING = "Pending"
    PARTIAL = "Partial"
    PARTIAL_WITH_RETURNS = "Partial w/ Returns"
    RECEIVED = "Received"
    PARTIAL_RETURNS = "Partial Returns"
    RETURNED = "Returned"


STATUS_BADGES: dict[DispatchStatus, str] = {
    DispatchStatus.EMPTY: "gray",
    DispatchStatus.PENDING: "yellow",
    DispatchStatus.PARTIAL: "blue",
    DispatchStatus.PARTIAL_WITH_RETURNS: "orange",
    DispatchStatus.RECEIVED: "green",
    DispatchStatus.PARTIAL_RETURNS: "orange",
    DispatchStatus.RETURNED: "purple",
}


@dataclass(frozen=True)
class DispatchActionAvailability:
    can_view: bool
    can_acknowledge: bool
    can_return: bool
    can_edit: bool
    can_delete: bool


@dataclass(frozen=True)
class DispatchTotals:
    requested: int
    received: int
    returned: int


@dataclass(frozen=True)
class DispatchStats:
    total: int
    pending: int
    completed: int
    with_returns: int


def dispatch_items(source: Any) -> list[Any]:
    """Accept a dispatch, a dispatch mapping, or a bare item list."""
    if source is None:
        return []
    if isinstance(source, (list, tuple)):
        return list(source)
    items = item_field(source, "dispatch_items")
    return list(items or [])


def _quantity(item: Any) -> int:
    return coerce_int(item_field(item, "quantity"))


def _received(item: Any) -> int:
    return coerce_int(item_field(item, "received_quantity"))


def _returned(item: Any) -> int:
    return coerce_int(item_field(item, "returned_quantity"))


def _is_returned(item: Any) -> bool:
    return coerce_bool(item_field(item, "is_returned"))


def derive_dispatch_status(source: Any) -> DispatchStatus:
    items = dispatch_items(source)
    if not items:
        return DispatchStatus.EMPTY
    if all(_is_returned(item) for item in items):
        return DispatchStatus.RETURNED

    all_received = all(_received(item) >= _quantity(item) for item in items)
    has_returned_items = any(_is_returned(item) for item in items)
    partially_received = not all_received and any(_received(item) > 0 for item in items)

    if all_received and has_returned_items:
        return DispatchStatus.PARTIAL_RETURNS
    if all_received:
        return DispatchStatus.RECEIVED
    if partially_received and has_returned_items:
        return DispatchStatus.PARTIAL_WITH_RETURNS
    if partially_received:
        return DispatchStatus.PARTIAL
    return DispatchStatus.PENDING


def item_remaining_quantity(item: Any) -> int:
    return max(_quantity(item) - _received(item), 0)


def item_returnable_balance(item: Any) -> int:
    return max(_received(item) - _returned(item), 0)


def is_item_returnable(item: Any) -> bool:
    return (
        coerce_bool(item_field(item, "is_returnable"))
        and not _is_returned(item)
        and _received(item) > _returned(item)
    )


def dispatch_action_availability(source: Any, *, can_manage: bool = True) -> DispatchActionAvailability:
    if not can_manage:
        return DispatchActionAvailability(True, False, False, False, False)

    items = dispatch_items(source)
    status = derive_dispatch_status(items)
    can_acknowledge = any(_received(item) < _quantity(item) for item in items)
    can_return = any(is_item_returnable(item) for item in items)
    is_pending = status is DispatchStatus.PENDING
    return DispatchActionAvailability(
        can_view=True,
        can_acknowledge=can_acknowledge,
        can_return=can_return,
        can_edit=is_pending,
        can_delete=is_pending,
    )


def dispatch_totals(source: Any) -> DispatchTotals:
    items = dispatch_items(source)
    return DispatchTotals(
        requested=sum(_quantity(item) for item in items),
        received=sum(_received(item) for item in items),
        returned=sum(_returned(item) for item in items),
    )


def receipt_progress(source: Any) -> int:
    totals = dispatch_totals(source)
    if totals.requested <= 0:
        return 0
    return min(round(totals.received * 100 / totals.requested), 100)


def dispatch_stats(dispatches: Iterable[Any] | None) -> DispatchStats:
    total = pending = completed = with_returns = 0
    for dispatch in dispatches or []:
        items = dispatch_items(dispatch)
        total += 1
        if any(_received(item) < _quantity(item) for item in items):
            pending += 1
        elif items:
            completed += 1
        if any(_is_returned(item) or _returned(item) > 0 for item in items):
            with_returns += 1
    return DispatchStats(total=total, pending=pending, completed=completed, with_returns=with_returns)


def status_badge(status: DispatchStatus | str) -> str:
    try:
        return STATUS_BADGES[DispatchStatus(status)]
    except ValueError:
        return "gray"
