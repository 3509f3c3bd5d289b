from __future__ import annotations

from whs_backoffice.services.errors import ServiceError
from whs_backoffice.ui.shared.search import (
    breakage_search_fields,
    dispatch_search_fields,
    filter_records,
)
from whs_backoffice.ui.shared.validators import result_from_errors, result_from_service_error
from whs_client_sdk.models_breakages import Breakage
from whs_client_sdk.models_dispatch import Dispatch

DISPATCHES = [
    Dispatch.model_validate(
        {
            "id": 1,
            "dispatch_number": "DSP-001",
            "from_store": {"id": 1, "name": "North Depot"},
            "to_user": {"id": 2, "first_name": "Lia", "last_name": "Moreno"},
            "dispatch_items": [{"id": 1, "product": {"name": "Cordless Drill"}}],
        }
    ),
    Dispatch.model_validate({"id": 2, "dispatch_number": "DSP-002", "to_entity": "warehouse"}),
]


def test_dispatch_search_matches_nested_fields_case_insensitively() -> None:
    assert [row.id for row in filter_records(DISPATCHES, "north", dispatch_search_fields)] == ["1"]
    assert [row.id for row in filter_records(DISPATCHES, "MORENO", dispatch_search_fields)] == ["1"]
    assert [row.id for row in filter_records(DISPATCHES, "drill", dispatch_search_fields)] == ["1"]
    assert [row.id for row in filter_records(DISPATCHES, "WAREHOUSE", dispatch_search_fields)] == ["2"]
    assert len(filter_records(DISPATCHES, "  ", dispatch_search_fields)) == 2


def test_breakage_search_covers_item_causes() -> None:
    rows = [
        Breakage.model_validate({"id": 1, "breakage_number": "BRK-1", "items": [{"id": 1, "cause": "transport_damage"}]}),
        Breakage.model_validate({"id": 2, "breakage_number": "BRK-2", "items": [{"id": 2, "cause": "accident"}]}),
    ]
    assert [row.id for row in filter_records(rows, "transport", breakage_search_fields)] == ["1"]


def test_validation_results() -> None:
    assert result_from_errors({}).ok
    result = result_from_errors({"items[0].quantity": "Only 5 units available"})
    assert not result.ok and result.summary == ["Only 5 units available"]
    fallback = result_from_service_error(ServiceError(message="Failed to save"))
    assert fallback.field_errors == {"form": "Failed to save"}
