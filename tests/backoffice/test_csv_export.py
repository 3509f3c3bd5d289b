from __future__ import annotations

import csv
from decimal import Decimal

from whs_backoffice.ui.shared.csv_export import export_rows


def test_export_writes_header_comments_and_safe_cells(tmp_path) -> None:
    path = export_rows(
        module="products",
        rows=[
            {"name": "=HYPERLINK(\"x\")", "price": Decimal("3.5"), "active": True, "tags": ["a", "b"], "delta": "-4"},
            {"name": "Saw", "price": None, "active": False, "tags": [], "ignored": "x"},
        ],
        headers=["name", "price", "active", "tags", "delta"],
        output_dir=tmp_path / "out",
        filters={"search": "saw"},
    )

    assert path.parent == tmp_path / "out"
    assert path.name.startswith("products_") and path.suffix == ".csv"
    text = path.read_text(encoding="utf-8-sig")
    lines = text.splitlines()
    assert lines[0].startswith("# timestamp_local: ")
    assert lines[1] == "# module: products"
    assert lines[2] == "# filters: {'search': 'saw'}"

    rows = list(csv.DictReader(lines[3:]))
    assert rows[0] == {"name": "'=HYPERLINK(\"x\")", "price": "3.50", "active": "Yes", "tags": "a, b", "delta": "-4"}
    assert rows[1] == {"name": "Saw", "price": "", "active": "No", "tags": "", "delta": ""}
