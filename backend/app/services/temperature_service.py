# Overview: Recomputes the derived day-level temperature log from its two slot checks.

"""
Temperature day reconciliation.

WHY: Two employees can record "log1" and "log2" independently, even at
the same moment. If the day row held readings, one save could overwrite
the other. Instead the day row is a pure derived view: it is rebuilt from
whatever slot rows exist, and rebuilding is idempotent. Running it any
number of times converges to the same summary.

DAY STATUS:
- PENDING (n/2): fewer than two checks recorded
- ALERT: any check has an out-of-range reading
- REVIEW: both checks done, no alert, but edited since the admin last looked
- OK
"""
from __future__ import annotations

from datetime import datetime

from app.extensions import db
from app.models import TemperatureCheck, TemperatureLog
from app.services.concurrency import lock_for_update
from app.time_utils import utcnow


SLOT_LOG1 = "log1"
SLOT_LOG2 = "log2"
SLOTS = (SLOT_LOG1, SLOT_LOG2)
REQUIRED_CHECKS = len(SLOTS)

DAY_STATUS_PENDING = "PENDING"
DAY_STATUS_ALERT = "ALERT"
DAY_STATUS_REVIEW = "REVIEW"
DAY_STATUS_OK = "OK"

SLOT_STATUS_NOT_DONE = "NOT DONE"
SLOT_STATUS_ALERT = "ALERT"
SLOT_STATUS_OK = "OK"


class TemperatureError(Exception):
    """Raised when temperature log operations fail."""
    pass


def validate_slot(slot: str) -> str:
    if slot not in SLOTS:
        raise TemperatureError(f"Invalid slot: {slot!r} (expected log1 or log2)")
    return slot


def get_slot_checks(store_id: str, day_key: str) -> dict[str, TemperatureCheck | None]:
    rows = db.session.query(TemperatureCheck).filter_by(store_id=store_id, day_key=day_key).all()
    by_slot = {row.slot: row for row in rows}
    return {slot: by_slot.get(slot) for slot in SLOTS}


def summarize_slots(checks: dict[str, TemperatureCheck | None]) -> dict:
    """
    Pure summary over the slot rows of one day.

    - check_count: slots that exist with a non-empty equipment map
    - has_out_of_range: OR over existing slots
    - last_check_at: latest check_at among existing slots; on a tie the
      earlier slot (log1) is kept
    """
    check_count = 0
    has_out_of_range = False
    last_check_at: datetime | None = None

    for slot in SLOTS:
        check = checks.get(slot)
        if check is None:
            continue
        if check.equipment:
            check_count += 1
        if check.has_out_of_range:
            has_out_of_range = True
        if check.check_at is not None and (last_check_at is None or check.check_at > last_check_at):
            last_check_at = check.check_at

    return {
        "check_count": check_count,
        "has_out_of_range": has_out_of_range,
        "last_check_at": last_check_at,
    }


def reconcile_day(
    store_id: str,
    day_key: str,
    *,
    updated_by_name: str | None = None,
    mark_reviewed: bool = False,
    now: datetime | None = None,
) -> TemperatureLog:
    """
    Rebuild the day row for (store_id, day_key) from its slot rows.

    Flushes but does not commit; the caller owns the transaction so the slot
    write and the day rebuild land together.

    A write by a non-admin flags the day unread and needing review. An admin
    correction (mark_reviewed=True) leaves it read and reviewed, since the
    admin is the reviewer.
    """
    now = now or utcnow()
    summary = summarize_slots(get_slot_checks(store_id, day_key))

    day = lock_for_update(
        db.session.query(TemperatureLog).filter_by(store_id=store_id, day_key=day_key)
    ).first()
    if day is None:
        day = TemperatureLog(store_id=store_id, day_key=day_key)
        db.session.add(day)

    day.check_count = summary["check_count"]
    day.has_out_of_range = summary["has_out_of_range"]
    day.last_check_at = summary["last_check_at"] or now
    day.updated_at = now
    day.updated_by_name = updated_by_name
    if mark_reviewed:
        day.is_read_by_admin = True
        day.needs_admin_review = False
    else:
        day.is_read_by_admin = False
        day.needs_admin_review = True

    db.session.flush()
    return day


def day_status(day: TemperatureLog | dict | None) -> str:
    if day is None:
        return DAY_STATUS_PENDING
    data = day if isinstance(day, dict) else day.to_dict()
    if int(data.get("check_count") or 0) < REQUIRED_CHECKS:
        return DAY_STATUS_PENDING
    if data.get("has_out_of_range"):
        return DAY_STATUS_ALERT
    if data.get("needs_admin_review"):
        return DAY_STATUS_REVIEW
    return DAY_STATUS_OK


def day_status_label(day: TemperatureLog | dict | None) -> str:
    status = day_status(day)
    if status == DAY_STATUS_PENDING:
        count = 0
        if day is not None:
            data = day if isinstance(day, dict) else day.to_dict()
            count = int(data.get("check_count") or 0)
        return f"PENDING ({count}/{REQUIRED_CHECKS})"
    return status


def slot_status(check: TemperatureCheck | None) -> str:
    if check is None:
        return SLOT_STATUS_NOT_DONE
    if check.has_out_of_range:
        return SLOT_STATUS_ALERT
    return SLOT_STATUS_OK


def get_day(store_id: str, day_key: str) -> TemperatureLog | None:
    return db.session.query(TemperatureLog).filter_by(store_id=store_id, day_key=day_key).first()


def get_day_view(store_id: str, day_key: str) -> dict:
    """Day summary plus both slots, as shown on the admin day screen."""
    day = get_day(store_id, day_key)
    checks = get_slot_checks(store_id, day_key)
    return {
        "day_key": day_key,
        "day": day.to_dict() if day else None,
        "status": day_status_label(day),
        "slots": {
            slot: {
                "status": slot_status(check),
                "check": check.to_dict() if check else None,
            }
            for slot, check in checks.items()
        },
    }


def list_days(store_id: str, limit: int = 90) -> list[dict]:
    """Most recent day logs first, each with its status label."""
    days = (
        db.session.query(TemperatureLog)
        .filter_by(store_id=store_id)
        .order_by(TemperatureLog.day_key.desc())
        .limit(limit)
        .all()
    )
    return [{**day.to_dict(), "status": day_status_label(day)} for day in days]
