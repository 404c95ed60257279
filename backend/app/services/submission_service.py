# Overview: Builds day payloads (item maps, equipment maps, low/out counts) from validated entries.

"""
Submission aggregation.

WHY: The day documents store a fully computed, denormalized payload so
admin readers never need to re-join item or equipment configuration.

Both builders are total over validated input: callers run the
validation gate (require_complete_stock_entries /
require_complete_temperature_entries) first.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from flask import current_app, has_app_context

from app.services.equipment_service import resolve_range
from app.services.status_rules import (
    STATUS_NEED_STOCK,
    STATUS_OUT_OF_STOCK,
    is_number,
    is_out_of_range,
    stock_status,
)


DEFAULT_TEMPERATURE_UNIT = "°C"


@dataclass
class StockPayload:
    items: dict = field(default_factory=dict)
    low_count: int = 0
    out_count: int = 0

    @property
    def low_out_summary(self) -> dict:
        return {"low_count": self.low_count, "out_count": self.out_count}


@dataclass
class TemperaturePayload:
    equipment: dict = field(default_factory=dict)
    has_out_of_range: bool = False


def _temperature_unit() -> str:
    if has_app_context():
        return current_app.config.get("TEMPERATURE_UNIT", DEFAULT_TEMPERATURE_UNIT)
    return DEFAULT_TEMPERATURE_UNIT


def build_stock_payload(items: Iterable, entered_values: Mapping[str, Mapping]) -> StockPayload:
    """
    Compute {item_id: {quantity, unit, status}} plus low/out counts.

    Each item's status uses its own low_stock_threshold. Items without an
    entered quantity are skipped (the completeness gate makes that
    impossible for real submissions).
    """
    payload = StockPayload()
    for item in items:
        entry = entered_values.get(item.id)
        if not entry or entry.get("quantity") is None:
            continue

        quantity = entry["quantity"]
        status = stock_status(quantity, item.low_stock_threshold)
        payload.items[item.id] = {
            "quantity": quantity,
            "unit": entry.get("unit") or item.default_unit or "piece",
            "status": status,
        }

        if status == STATUS_OUT_OF_STOCK:
            payload.out_count += 1
        elif status == STATUS_NEED_STOCK:
            payload.low_count += 1

    return payload


def build_temperature_payload(equipment_list: Iterable[Mapping], entered_values: Mapping[str, Mapping]) -> TemperaturePayload:
    """
    Compute the denormalized equipment map for one temperature check.

    Every configured piece of equipment gets a record carrying its label
    and resolved range, so the stored check stays meaningful even after
    the store's equipment config changes.
    """
    payload = TemperaturePayload()
    unit = _temperature_unit()

    for eq in equipment_list:
        eq_id = eq.get("id")
        if not eq_id:
            continue

        entry = entered_values.get(eq_id) or {}
        temp = entry.get("temp")
        if not is_number(temp):
            temp = None

        bounds = resolve_range(eq)
        out_of_range = is_out_of_range(temp, bounds["min"], bounds["max"])

        payload.equipment[eq_id] = {
            "label": eq.get("label") or eq_id,
            "temp": temp,
            "unit": unit,
            "note": str(entry.get("note") or ""),
            "min": bounds["min"],
            "max": bounds["max"],
            "out_of_range": out_of_range,
        }
        if out_of_range:
            payload.has_out_of_range = True

    return payload
