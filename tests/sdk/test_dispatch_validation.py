from __future__ import annotations

import pytest

from whs_client_sdk.dispatch_validation import (
    NO_ITEMS_TO_ACKNOWLEDGE,
    NO_ITEMS_TO_RETURN,
    default_acknowledge_lines,
    returnable_items,
    validate_acknowledge_payload,
    validate_create_dispatch_payload,
    validate_return_payload,
    validate_update_dispatch_payload,
)
from whs_client_sdk.validation import ClientValidationError

DISPATCH = {
    "id": "d1",
    "dispatch_items": [
        {"id": "1", "quantity": 10, "received_quantity": 4, "returned_quantity": 1, "is_returnable": True},
        {"id": "2", "quantity": 5, "received_quantity": 5, "is_returnable": False},
    ],
}


def test_acknowledge_drops_non_positive_lines() -> None:
    request = validate_acknowledge_payload(
        [{"id": "1", "received_quantity": 6}, {"id": "2", "received_quantity": 0}], DISPATCH
    )
    assert [(line.id, line.received_quantity) for line in request.items] == [("1", 6)]


def test_scenario_e_nothing_positive_to_acknowledge() -> None:
    with pytest.raises(ClientValidationError) as exc:
        validate_acknowledge_payload([{"id": "1", "received_quantity": 0}, {"id": "2", "received_quantity": -3}])
    assert exc.value.issues[0].reason == NO_ITEMS_TO_ACKNOWLEDGE
    assert exc.value.field_errors == {"items": NO_ITEMS_TO_ACKNOWLEDGE}


def test_acknowledge_checks_deficit_and_membership() -> None:
    with pytest.raises(ClientValidationError) as exc:
        validate_acknowledge_payload(
            [{"id": "1", "received_quantity": 7}, {"id": "99", "received_quantity": 1}], DISPATCH
        )
    assert exc.value.field_errors == {
        "items[0].received_quantity": "Maximum receivable quantity is 6",
        "items[1].id": "Item does not belong to this dispatch",
    }


def test_default_acknowledge_lines_prefill_deficit() -> None:
    lines = default_acknowledge_lines(DISPATCH)
    assert [(line.id, line.received_quantity) for line in lines] == [("1", 6), ("2", 0)]


def test_return_validates_balance_and_keeps_positive_lines() -> None:
    assert [item["id"] for item in returnable_items(DISPATCH)] == ["1"]
    request = validate_return_payload(
        {"items": [{"id": "1", "returned_quantity": 3, "return_notes": "damaged box"}]}, DISPATCH
    )
    assert request.items[0].returned_quantity == 3
    assert request.items[0].return_notes == "damaged box"

    with pytest.raises(ClientValidationError) as exc:
        validate_return_payload([{"id": "1", "returned_quantity": 4}], DISPATCH)
    assert exc.value.field_errors["items[0].returned_quantity"] == "Maximum returnable quantity is 3"


def test_return_rejects_negative_and_empty() -> None:
    with pytest.raises(ClientValidationError) as exc:
        validate_return_payload([{"id": "1", "returned_quantity": -1}], DISPATCH)
    assert exc.value.issues[0].reason == "Quantity cannot be negative"

    with pytest.raises(ClientValidationError) as exc:
        validate_return_payload([{"id": "1", "returned_quantity": 0}], DISPATCH)
    assert exc.value.issues[0].reason == NO_ITEMS_TO_RETURN


def test_return_of_non_returnable_item_is_rejected() -> None:
    with pytest.raises(ClientValidationError) as exc:
        validate_return_payload([{"id": "2", "returned_quantity": 1}], DISPATCH)
    assert exc.value.issues[0].reason == "Item is not available for return"


def test_create_dispatch_requires_header_and_items() -> None:
    with pytest.raises(ClientValidationError) as exc:
        validate_create_dispatch_payload({"type": "courier", "items": []})
    errors = exc.value.field_errors
    assert errors["from_store_id"] == "From store is required"
    assert errors["to_entity"] == "To entity is required"
    assert errors["to_user_id"] == "To user is required"
    assert "type" in errors
    assert errors["items"] == "At least one item is required"


def test_create_dispatch_checks_stock_ceiling() -> None:
    payload = {
        "from_store_id": "s1",
        "to_entity": "warehouse",
        "to_user_id": "u1",
        "items": [{"product_id": "p1", "quantity": 8}, {"product_id": "p2", "quantity": 0}],
    }
    with pytest.raises(ClientValidationError) as exc:
        validate_create_dispatch_payload(payload, stock_levels={"p1": 5})
    assert exc.value.field_errors == {
        "items[0].quantity": "Only 5 units available",
        "items[1].quantity": "Quantity must be greater than 0",
    }


def test_update_only_while_pending() -> None:
    received = {"id": "d1", "dispatch_items": [{"id": "1", "quantity": 2, "received_quantity": 2}]}
    with pytest.raises(ClientValidationError) as exc:
        validate_update_dispatch_payload({"notes": "late"}, current=received)
    assert exc.value.issues[0].reason == "Only pending dispatches can be edited"
