from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

from whs_client_sdk.item_availability import item_field

T = TypeVar("T")


def _text(value: Any) -> str:
    return str(value).lower() if value is not None else ""


def _nested(record: Any, *path: str) -> Any:
    value = record
    for key in path:
        if value is None:
            return None
        value = item_field(value, key)
    return value


def dispatch_search_fields(dispatch: Any) -> list[str]:
    fields = [
        _text(item_field(dispatch, "dispatch_number")),
        _text(_nested(dispatch, "from_store", "name")),
        _text(item_field(dispatch, "to_entity")),
        _text(_nested(dispatch, "to_user", "first_name")),
        _text(_nested(dispatch, "to_user", "last_name")),
        _text(_nested(dispatch, "to_user", "email")),
        _text(item_field(dispatch, "notes")),
    ]
    for item in item_field(dispatch, "dispatch_items") or []:
        fields.append(_text(item_field(item, "product_name")))
        fields.append(_text(item_field(item, "variant_name")))
    return fields


def breakage_search_fields(breakage: Any) -> list[str]:
    fields = [
        _text(item_field(breakage, "breakage_number")),
        _text(item_field(breakage, "status")),
        _text(item_field(breakage, "approval_status")),
        _text(item_field(breakage, "notes")),
        _text(_nested(breakage, "reporter", "first_name")),
        _text(_nested(breakage, "reporter", "last_name")),
        _text(_nested(breakage, "reporter", "email")),
    ]
    for item in item_field(breakage, "items") or []:
        fields.append(_text(item_field(item, "product_name")))
        fields.append(_text(item_field(item, "cause")))
    return fields


def assignable_item_search_fields(item: Any) -> list[str]:
    return [
        _text(item_field(item, "product_name")),
        _text(item_field(item, "variant_name")),
        _text(item_field(item, "dispatch_number")),
    ]


def filter_records(records: Iterable[T], term: str | None, fields: Callable[[T], list[str]]) -> list[T]:
    needle = (term or "").strip().lower()
    rows = list(records)
    if not needle:
        return rows
    return [record for record in rows if any(needle in value for value in fields(record))]
