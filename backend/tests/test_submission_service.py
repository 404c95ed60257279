from types import SimpleNamespace

import pytest

from app.services.status_rules import STATUS_IN_STOCK, STATUS_NEED_STOCK, STATUS_OUT_OF_STOCK
from app.services.submission_service import (
    build_stock_payload,
    build_temperature_payload,
)
from app.validation import (
    ValidationError,
    require_complete_stock_entries,
    require_complete_temperature_entries,
)


def _item(item_id, name, threshold=None, unit="piece"):
    return SimpleNamespace(id=item_id, name=name, low_stock_threshold=threshold, default_unit=unit)


ITEMS = [
    _item("milk", "Milk", threshold=5, unit="litre"),
    _item("rice", "Rice", threshold=2, unit="kg"),
    _item("napkins", "Napkins"),
]


def test_stock_payload_counts_and_statuses():
    payload = build_stock_payload(ITEMS, {
        "milk": {"quantity": 0, "unit": "litre"},
        "rice": {"quantity": 2, "unit": None},
        "napkins": {"quantity": 40, "unit": "packet"},
    })

    assert payload.items["milk"] == {"quantity": 0, "unit": "litre", "status": STATUS_OUT_OF_STOCK}
    assert payload.items["rice"] == {"quantity": 2, "unit": "kg", "status": STATUS_NEED_STOCK}
    assert payload.items["napkins"]["status"] == STATUS_IN_STOCK
    assert payload.low_out_summary == {"low_count": 1, "out_count": 1}


def test_stock_gate_reports_every_missing_item():
    with pytest.raises(ValidationError) as exc:
        require_complete_stock_entries(ITEMS, {"milk": {"quantity": 1}})
    assert "Rice" in str(exc.value)
    assert "Napkins" in str(exc.value)


def test_stock_gate_accepts_bare_quantities_and_defaults_unit():
    cleaned = require_complete_stock_entries(ITEMS, {"milk": "3", "rice": 1, "napkins": {"quantity": "0"}})
    assert cleaned["milk"] == {"quantity": 3, "unit": "litre"}
    assert cleaned["napkins"] == {"quantity": 0, "unit": "piece"}


def test_stock_gate_rejects_empty_item_list():
    with pytest.raises(ValidationError, match="No items configured"):
        require_complete_stock_entries([], {})


def test_stock_gate_rejects_negative():
    with pytest.raises(ValidationError, match="negative"):
        require_complete_stock_entries(ITEMS, {"milk": -1, "rice": 1, "napkins": 1})


def test_temperature_payload_denormalizes_ranges(app):
    equipment = [
        {"id": "freezer1", "label": "Freezer"},
        {"id": "display", "label": "Display", "min": 1, "max": 4},
    ]
    with app.app_context():
        payload = build_temperature_payload(equipment, {
            "freezer1": {"temp": -10, "note": "door left open"},
            "display": {"temp": 3, "note": ""},
        })

    freezer = payload.equipment["freezer1"]
    assert freezer["min"] == -25 and freezer["max"] == -15
    assert freezer["out_of_range"] is True
    assert freezer["label"] == "Freezer"
    assert freezer["unit"] == "°C"
    assert freezer["note"] == "door left open"
    assert payload.equipment["display"]["out_of_range"] is False
    assert payload.has_out_of_range is True


def test_temperature_payload_missing_reading_is_not_out_of_range():
    payload = build_temperature_payload([{"id": "fridge", "label": "Fridge"}], {})
    assert payload.equipment["fridge"]["temp"] is None
    assert payload.equipment["fridge"]["out_of_range"] is False
    assert payload.has_out_of_range is False


def test_temperature_gate_requires_every_reading():
    equipment = [{"id": "a", "label": "A"}, {"id": "b", "label": "B"}]
    with pytest.raises(ValidationError, match="temp for B"):
        require_complete_temperature_entries(equipment, {"a": {"temp": 1}})


def test_temperature_gate_rejects_empty_equipment():
    with pytest.raises(ValidationError, match="No temperature equipment"):
        require_complete_temperature_entries([], {})
