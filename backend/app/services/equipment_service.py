# Overview: Safe temperature range resolution for store equipment.

from __future__ import annotations

from typing import Mapping

from app.services.status_rules import is_number


FREEZER_RANGE = {"min": -25, "max": -15}
CHILLER_RANGE = {"min": 0, "max": 5}
DEFAULT_RANGE = {"min": 0, "max": 5}

CHILLER_KEYWORDS = ("cooler", "fridge")


def infer_range_from_label(label: str | None) -> dict:
    text = str(label or "").lower()
    if "freezer" in text:
        return dict(FREEZER_RANGE)
    if any(word in text for word in CHILLER_KEYWORDS):
        return dict(CHILLER_RANGE)
    return dict(DEFAULT_RANGE)


def resolve_range(equipment: Mapping | None) -> dict:
    """
    Safe {min, max} for one piece of equipment.

    Precedence: explicit numeric min AND max on the config, then the label
    heuristic (the equipment id is included in the text so "freezer1" with
    a blank label still reads as a freezer), then the default.
    Never fails.
    """
    equipment = equipment or {}
    min_temp, max_temp = equipment.get("min"), equipment.get("max")
    if is_number(min_temp) and is_number(max_temp):
        return {"min": min_temp, "max": max_temp}

    text = f"{equipment.get('label') or ''} {equipment.get('id') or ''}"
    return infer_range_from_label(text)


def equipment_by_id(equipment_list) -> dict:
    return {eq.get("id"): eq for eq in equipment_list or [] if eq.get("id")}
