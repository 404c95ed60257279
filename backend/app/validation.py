from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from sqlalchemy import Boolean, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate store id)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_number(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip().replace(",", ".")
        if not stripped:
            raise ValidationError(f"{key} must be a number")
        try:
            number = float(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be a number")
    else:
        raise ValidationError(f"{key} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{key} must be a finite number")
    return number


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or 'e' in stripped.lower() or '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Float):
        return _coerce_number(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be true or false")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def parse_quantity(value: Any, *, field: str = "quantity") -> float | int:
    """
    Gate for stock counts: finite, numeric, non-negative.

    Integral values come back as int so stored item maps read "3" not "3.0".
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required")
    number = _coerce_number(field, value)
    if number < 0:
        raise ValidationError(f"{field} cannot be negative")
    return int(number) if number.is_integer() else number


def parse_temperature(value: Any, *, field: str = "temp") -> float | int:
    """Gate for temperature readings: finite and numeric. Negative is fine."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required")
    number = _coerce_number(field, value)
    return int(number) if number.is_integer() else number


def require_entry_map(entered: Any, *, field: str) -> dict:
    """Entered values arrive keyed by item or equipment id."""
    if entered is None:
        return {}
    if not isinstance(entered, Mapping):
        raise ValidationError(f"{field} must be an object")
    return dict(entered)


def require_complete_stock_entries(items: Iterable, entered: Mapping[str, Any]) -> dict:
    """
    "Can submit" gate for a stock count.

    Every configured item must have a valid quantity. Returns
    {item_id: {"quantity", "unit"}} with parsed quantities; the unit falls
    back to the item's default unit.
    """
    items = list(items)
    if not items:
        raise ValidationError("No items configured for this store")

    entered = require_entry_map(entered, field="items")
    cleaned: dict = {}
    missing: list[str] = []
    for item in items:
        raw = entered.get(item.id)
        if isinstance(raw, Mapping):
            quantity, unit = raw.get("quantity"), raw.get("unit")
        else:
            quantity, unit = raw, None
        if quantity is None or (isinstance(quantity, str) and not quantity.strip()):
            missing.append(item.name)
            continue
        cleaned[item.id] = {
            "quantity": parse_quantity(quantity, field=f"quantity for {item.name}"),
            "unit": (str(unit).strip() if unit else None) or item.default_unit or "piece",
        }

    if missing:
        raise ValidationError(
            f"Please fill all quantities before submitting (missing: {', '.join(missing)})"
        )
    return cleaned


def require_complete_temperature_entries(equipment_list: Iterable[Mapping], entered: Mapping[str, Any]) -> dict:
    """
    "Can submit" gate for a temperature check.

    Every configured equipment entry must have a numeric temp. Returns
    {equipment_id: {"temp", "note"}}.
    """
    equipment_list = list(equipment_list)
    if not equipment_list:
        raise ValidationError("No temperature equipment configured for this store")

    entered = require_entry_map(entered, field="readings")
    cleaned: dict = {}
    for eq in equipment_list:
        eq_id = eq.get("id")
        label = eq.get("label") or eq_id
        raw = entered.get(eq_id)
        if isinstance(raw, Mapping):
            temp, note = raw.get("temp"), raw.get("note")
        else:
            temp, note = raw, None
        cleaned[eq_id] = {
            "temp": parse_temperature(temp, field=f"temp for {label}"),
            "note": str(note or "").strip(),
        }
    return cleaned
