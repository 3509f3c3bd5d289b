from __future__ import annotations

from typing import Any, Iterable, Mapping

from .models import coerce_bool, coerce_int


def item_field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def available_quantity(item: Any) -> int:
    received = coerce_int(item_field(item, "received_quantity"))
    returned = coerce_int(item_field(item, "returned_quantity"))
    return received - returned


def is_selectable(item: Any) -> bool:
    if coerce_bool(item_field(item, "is_returned")):
        return False
    return available_quantity(item) > 0


def selectable_items(items: Iterable[Any] | None) -> list[Any]:
    return [item for item in items or [] if is_selectable(item)]


def quantity_error(quantity: int, available: int) -> str | None:
    if quantity < 0:
        return "Quantity cannot be negative"
    if quantity > available:
        return f"Quantity cannot exceed available quantity ({available})"
    return None


def validate_quantity_against_available(item: Any, quantity: Any) -> str | None:
    """Return the field error for ``quantity`` or None when it fits.

    Values over the ceiling are reported, never clamped.
    """
    return quantity_error(coerce_int(quantity), available_quantity(item))
