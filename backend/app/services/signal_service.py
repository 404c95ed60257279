# Overview: Admin-facing unread/needs-review counters, inbox rows and dashboard alert lists.

from __future__ import annotations

from typing import Any, Callable, Mapping

from app.extensions import db
from app.models import CurrentStock, Item, StockSubmission, TemperatureLog
from app.services import subscription_service, temperature_service
from app.services.equipment_service import equipment_by_id, resolve_range
from app.services.item_service import MISSING_CATEGORY_ORDER
from app.services.status_rules import (
    STATUS_IN_STOCK,
    STATUS_NEED_STOCK,
    STATUS_OUT_OF_STOCK,
    STATUS_RANK,
    is_number,
    status_badge,
    temperature_tag,
)


INBOX_TAB_STOCK = "stock"
INBOX_TAB_TEMP = "temp"
INBOX_TAB_ALL = "all"
INBOX_TABS = (INBOX_TAB_STOCK, INBOX_TAB_TEMP, INBOX_TAB_ALL)

# Read-side tolerance for day documents stored before the canonical
# {label, temp, min, max, out_of_range} shape. Writers never emit these.
LEGACY_READING_CONTAINERS = ("readings", "entries", "temps")
LEGACY_READING_MAPS = ("equipment", "equipmentReadings")
LEGACY_DOCUMENT_FLAGS = ("has_out_of_range", "hasOutOfRange", "anyOutOfRange", "outOfRange")
LEGACY_FIELD_ALIASES = {
    "label": ("label", "name", "title", "equipmentLabel"),
    "temp": ("tempC", "temp", "value", "temperature", "celsius"),
    "min": ("min", "minC", "minTemp", "low"),
    "max": ("max", "maxC", "maxTemp", "high"),
    "out_of_range": ("out_of_range", "outOfRange"),
    "in_range": ("in_range", "inRange"),
    "id": ("id", "equipmentId"),
}


class SignalError(Exception):
    """Raised for invalid admin signal queries."""
    pass


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------

def _count(model, store_id: str, *criteria) -> int:
    return db.session.query(model).filter(model.store_id == store_id, *criteria).count()


def unread_count(model, store_id: str) -> int:
    return _count(model, store_id, model.is_read_by_admin.is_(False))


def needs_review_count(model, store_id: str) -> int:
    return _count(model, store_id, model.needs_admin_review.is_(True))


def inbox_counts(store_id: str) -> dict:
    """Per-collection counts plus the combined inbox badge."""
    stock_unread = unread_count(StockSubmission, store_id)
    temp_unread = unread_count(TemperatureLog, store_id)
    stock_review = needs_review_count(StockSubmission, store_id)
    temp_review = needs_review_count(TemperatureLog, store_id)
    return {
        "stock": {"unread": stock_unread, "needs_review": stock_review},
        "temperature": {"unread": temp_unread, "needs_review": temp_review},
        "unread_total": stock_unread + temp_unread,
        "needs_review_total": stock_review + temp_review,
    }


def watch_admin_signals(store_id: str, on_change: Callable[[dict], None]) -> Callable[[], None]:
    """
    Push fresh inbox_counts to on_change whenever a stock submission or a
    temperature day of the store changes. Returns one unsubscribe callable.

    Callbacks run in the publishing thread, after its commit, so the counts
    already include the write that triggered them.
    """
    def _recompute(_payload: Any) -> None:
        on_change(inbox_counts(store_id))

    unsubscribers = [
        subscription_service.subscribe(
            subscription_service.collection_key(collection, store_id), _recompute
        )
        for collection in (
            subscription_service.COLLECTION_STOCK_SUBMISSIONS,
            subscription_service.COLLECTION_TEMPERATURE_LOGS,
        )
    ]

    def unsubscribe() -> None:
        for unsub in unsubscribers:
            unsub()

    return unsubscribe


# ---------------------------------------------------------------------------
# Inbox
# ---------------------------------------------------------------------------

def _stock_inbox_row(submission: StockSubmission) -> dict:
    return {
        "type": INBOX_TAB_STOCK,
        "day_key": submission.day_key,
        "by": submission.last_edited_by_name or submission.submitted_by_name or "Unknown",
        "needs_admin_review": submission.needs_admin_review,
        "badge": f"OUT:{submission.out_count or 0} LOW:{submission.low_count or 0}",
        "sort_at": submission.last_edited_at or submission.submitted_at,
    }


def _temperature_inbox_row(day: TemperatureLog) -> dict:
    return {
        "type": INBOX_TAB_TEMP,
        "day_key": day.day_key,
        "by": day.updated_by_name or "Unknown",
        "needs_admin_review": day.needs_admin_review,
        "badge": "ALERT" if day.has_out_of_range else temperature_service.day_status_label(day),
        "sort_at": day.updated_at,
    }


def admin_inbox(store_id: str, tab: str = INBOX_TAB_ALL, *, limit: int = 100) -> list[dict]:
    """Unread documents, newest day first."""
    if tab not in INBOX_TABS:
        raise SignalError(f"Invalid inbox tab: {tab!r}")

    rows: list[dict] = []
    if tab in (INBOX_TAB_STOCK, INBOX_TAB_ALL):
        submissions = (
            db.session.query(StockSubmission)
            .filter(StockSubmission.store_id == store_id, StockSubmission.is_read_by_admin.is_(False))
            .all()
        )
        rows.extend(_stock_inbox_row(s) for s in submissions)
    if tab in (INBOX_TAB_TEMP, INBOX_TAB_ALL):
        days = (
            db.session.query(TemperatureLog)
            .filter(TemperatureLog.store_id == store_id, TemperatureLog.is_read_by_admin.is_(False))
            .all()
        )
        rows.extend(_temperature_inbox_row(d) for d in days)

    rows.sort(key=lambda r: (r["day_key"], r["sort_at"].isoformat() if r["sort_at"] else ""), reverse=True)
    for row in rows:
        row.pop("sort_at", None)
    return rows[:limit]


# ---------------------------------------------------------------------------
# Today's temperature alerts
# ---------------------------------------------------------------------------

def _first_present(record: Mapping, field: str):
    for alias in LEGACY_FIELD_ALIASES[field]:
        value = record.get(alias)
        if value is not None:
            return value
    return None


def _raw_readings(day_doc: Mapping) -> list[dict]:
    for key in LEGACY_READING_CONTAINERS:
        value = day_doc.get(key)
        if isinstance(value, list) and value:
            return [dict(r) for r in value if isinstance(r, Mapping)]
    for key in LEGACY_READING_MAPS:
        value = day_doc.get(key)
        if isinstance(value, Mapping) and value:
            return [{"id": eq_id, **dict(r)} for eq_id, r in value.items() if isinstance(r, Mapping)]
    return []


def todays_alert_rows(day_doc: Mapping | None, equipment_config=None) -> dict:
    """
    Normalize a day's readings into uniform rows.

    Returns {"has_log", "ok", "rows"}. rows holds only the out-of-range
    readings when any exist, otherwise every reading. Missing min/max fall
    back to the store's equipment config, then to the inferred range.
    """
    if not day_doc:
        return {"has_log": False, "ok": True, "rows": []}

    config = equipment_by_id(equipment_config)
    flagged = any(day_doc.get(key) is True for key in LEGACY_DOCUMENT_FLAGS)

    rows: list[dict] = []
    for raw in _raw_readings(day_doc):
        eq_id = _first_present(raw, "id")
        label = _first_present(raw, "label") or (config.get(eq_id) or {}).get("label") or eq_id or "Equipment"
        temp = _first_present(raw, "temp")
        if not is_number(temp):
            temp = None

        min_temp, max_temp = _first_present(raw, "min"), _first_present(raw, "max")
        if not (is_number(min_temp) and is_number(max_temp)):
            bounds = resolve_range(config.get(eq_id) or {"id": eq_id, "label": label})
            min_temp, max_temp = bounds["min"], bounds["max"]

        stored_in_range = _first_present(raw, "in_range")
        if _first_present(raw, "out_of_range") is True:
            in_range = False
        elif isinstance(stored_in_range, bool):
            in_range = stored_in_range
        elif temp is None:
            in_range = True
        else:
            in_range = min_temp <= temp <= max_temp

        rows.append({
            "id": eq_id or label,
            "label": label,
            "temp": temp,
            "min": min_temp,
            "max": max_temp,
            "in_range": in_range,
            "tag": temperature_tag(temp, min_temp, max_temp),
        })

    bad = [r for r in rows if not r["in_range"]]
    return {
        "has_log": True,
        "ok": not flagged and not bad,
        "rows": bad or rows,
    }


def todays_temperature_alerts(store_id: str, day_key: str, equipment_config=None) -> dict:
    """Alert rows for both slots of a day, each row tagged with its slot."""
    checks = temperature_service.get_slot_checks(store_id, day_key)
    day = temperature_service.get_day(store_id, day_key)

    result = {"day_key": day_key, "status": temperature_service.day_status_label(day), "slots": {}}
    for slot, check in checks.items():
        result["slots"][slot] = todays_alert_rows(check.to_dict() if check else None, equipment_config)
    return result


# ---------------------------------------------------------------------------
# Dashboard low/out list
# ---------------------------------------------------------------------------

def low_out_dashboard(store_id: str) -> list[dict]:
    """
    Active items whose latest known stock is OUT or LOW.

    Categories by category_order (missing sinks) then name; inside each,
    OUT before LOW and then by name.
    """
    rows = (
        db.session.query(CurrentStock, Item)
        .join(Item, (Item.id == CurrentStock.item_id) & (Item.store_id == CurrentStock.store_id))
        .filter(
            CurrentStock.store_id == store_id,
            CurrentStock.status.in_([STATUS_OUT_OF_STOCK, STATUS_NEED_STOCK]),
            Item.is_active.is_(True),
        )
        .all()
    )

    groups: dict[str, dict] = {}
    for stock, item in rows:
        category = item.category or "Uncategorized"
        group = groups.setdefault(category, {
            "category": category,
            "category_order": item.category_order,
            "items": [],
        })
        if group["category_order"] is None and item.category_order is not None:
            group["category_order"] = item.category_order
        group["items"].append({
            "item_id": item.id,
            "name": item.name,
            "status": stock.status or STATUS_IN_STOCK,
            "badge": status_badge(stock.status),
            "quantity": stock.quantity,
            "unit": stock.unit or item.default_unit,
            "updated_by_name": stock.updated_by_name,
        })

    ordered = sorted(
        groups.values(),
        key=lambda g: (
            g["category_order"] if g["category_order"] is not None else MISSING_CATEGORY_ORDER,
            g["category"].lower(),
        ),
    )
    for group in ordered:
        group["items"].sort(key=lambda r: (STATUS_RANK.get(r["status"], 9), r["name"].lower()))
    return ordered
