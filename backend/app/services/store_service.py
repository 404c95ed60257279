from __future__ import annotations

import re

from app.extensions import db
from app.models import Store
from app.services.concurrency import lock_for_update, run_with_retry
from app.services.status_rules import is_number
from app.time_utils import is_valid_timezone
from app.validation import ConflictError


STORE_ID_PATTERN = re.compile(r"^[a-z0-9_-]{3,40}$", re.IGNORECASE)


class StoreError(Exception):
    """Raised when store operations fail."""
    pass


def validate_equipment(equipment) -> list[dict]:
    """
    Normalize an ordered equipment list.

    Each entry needs a unique id and a label; min/max are optional numbers
    and, when both are given, min <= max.
    """
    if equipment is None:
        return []
    if not isinstance(equipment, list):
        raise StoreError("temperature_equipment must be a list")

    seen: set[str] = set()
    cleaned: list[dict] = []
    for raw in equipment:
        if not isinstance(raw, dict):
            raise StoreError("Each equipment entry must be an object")
        eq_id = str(raw.get("id") or "").strip()
        label = str(raw.get("label") or "").strip()
        if not eq_id:
            raise StoreError("Equipment id is required")
        if eq_id in seen:
            raise StoreError(f"Duplicate equipment id: {eq_id}")
        if not label:
            raise StoreError(f"Equipment {eq_id} needs a label")
        seen.add(eq_id)

        entry = {"id": eq_id, "label": label}
        for bound in ("min", "max"):
            value = raw.get(bound)
            if value is None:
                continue
            if not is_number(value):
                raise StoreError(f"Equipment {eq_id} {bound} must be a number")
            entry[bound] = value
        if "min" in entry and "max" in entry and entry["min"] > entry["max"]:
            raise StoreError(f"Equipment {eq_id} min cannot exceed max")
        cleaned.append(entry)

    return cleaned


def validate_timezone(tz_name) -> str | None:
    """Blank clears the zone (day keys fall back to UTC); anything else must load."""
    if tz_name is None:
        return None
    if not isinstance(tz_name, str):
        raise StoreError("timezone must be a string")
    tz_name = tz_name.strip()
    if not tz_name:
        return None
    if not is_valid_timezone(tz_name):
        raise StoreError(f"Unknown timezone: {tz_name}")
    return tz_name


def create_store(
    store_id: str,
    name: str | None = None,
    *,
    timezone: str | None = None,
    temperature_equipment: list | None = None,
) -> Store:
    store_id = str(store_id or "").strip()
    if not store_id:
        raise StoreError("Store id is required")
    if not STORE_ID_PATTERN.match(store_id):
        raise StoreError("Store id must be 3-40 chars: letters/numbers/_- only")
    equipment = validate_equipment(temperature_equipment)
    timezone = validate_timezone(timezone)

    def _op():
        if db.session.query(Store).filter_by(id=store_id).first():
            raise ConflictError("Store already exists")

        store = Store(
            id=store_id,
            name=(name or "").strip() or store_id,
            timezone=timezone,
            is_active=True,
            temperature_equipment=equipment,
        )
        db.session.add(store)
        db.session.commit()
        return store

    return run_with_retry(_op)


def update_store(
    store_id: str,
    *,
    name: str | None = None,
    timezone: str | None = None,
    is_active: bool | None = None,
) -> Store:
    if timezone is not None:
        timezone = validate_timezone(timezone) or ""

    def _op():
        store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()
        if not store:
            raise StoreError("Store not found")

        if name is not None:
            if not name.strip():
                raise StoreError("Store name cannot be blank")
            store.name = name.strip()
        if timezone is not None:
            store.timezone = timezone or None
        if is_active is not None:
            store.is_active = bool(is_active)

        db.session.commit()
        return store

    return run_with_retry(_op)


def set_temperature_equipment(store_id: str, equipment: list) -> Store:
    """Replace the store's equipment list; later checks use it immediately."""
    cleaned = validate_equipment(equipment)

    def _op():
        store = lock_for_update(db.session.query(Store).filter_by(id=store_id)).first()
        if not store:
            raise StoreError("Store not found")
        store.temperature_equipment = cleaned
        db.session.commit()
        return store

    return run_with_retry(_op)


def get_store(store_id: str) -> Store | None:
    return db.session.query(Store).filter_by(id=store_id).first()


def require_active_store(store_id: str) -> Store:
    store = get_store(store_id)
    if not store:
        raise StoreError("Store not found")
    if not store.is_active:
        raise StoreError("Store is disabled")
    return store


def list_stores(*, include_inactive: bool = True, store_ids: list[str] | None = None) -> list[Store]:
    query = db.session.query(Store)
    if not include_inactive:
        query = query.filter(Store.is_active.is_(True))
    if store_ids is not None:
        query = query.filter(Store.id.in_(store_ids))
    return query.order_by(Store.name.asc()).all()
