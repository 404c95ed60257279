# Overview: Create-vs-edit lifecycle of per-day stock submissions and temperature checks.

"""
Daily document state machine.

STATES (per store, per day key, per document kind):
1. ABSENT: no row yet
2. SUBMITTED: first write; needs_admin_review=False, is_read_by_admin=False,
   last_edited_at=None
3. EDITED: every later write; needs_admin_review=True, is_read_by_admin=False,
   last_edited_at/by set, and one immutable Revision appended per write

CONCURRENCY:
The existence check and the write run inside one retried unit
(run_keyed_write). If two actors both see ABSENT, the loser's insert hits
the unique day key, is rolled back and replayed as an edit. The parent row
is last-write-wins; every write still leaves its own Revision, so nothing
is silently lost.

ATOMICITY:
A stock submission commits the CurrentStock write-through, the day row
and the revision together. A temperature save commits the slot row, its
revision and the reconciled day row together.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from flask import current_app, has_app_context

from app.extensions import db
from app.models import (
    CurrentStock,
    StockSubmission,
    StockSubmissionRevision,
    Store,
    TemperatureCheck,
    TemperatureCheckRevision,
    TemperatureLog,
    User,
)
from app.services import item_service, store_service, subscription_service, temperature_service
from app.services.concurrency import lock_for_update, run_keyed_write, run_with_retry
from app.services.status_rules import STATUS_IN_STOCK, STATUS_RANK, status_badge
from app.services.submission_service import build_stock_payload, build_temperature_payload
from app.time_utils import local_day_key, parse_day_key, utcnow
from app.validation import (
    ValidationError,
    require_complete_stock_entries,
    require_complete_temperature_entries,
    require_entry_map,
)


STATE_ABSENT = "ABSENT"
STATE_SUBMITTED = "SUBMITTED"
STATE_EDITED = "EDITED"


class SubmissionError(Exception):
    """Raised when a daily document cannot be written or found."""
    pass


@dataclass
class StockSubmitResult:
    submission: StockSubmission
    is_edit: bool
    revision: StockSubmissionRevision | None = None

    def to_dict(self) -> dict:
        return {
            "submission": self.submission.to_dict(),
            "is_edit": self.is_edit,
            "state": document_state(self.submission),
            "revision": self.revision.to_dict() if self.revision else None,
        }


@dataclass
class TemperatureSaveResult:
    check: TemperatureCheck
    day: TemperatureLog
    is_edit: bool
    revision: TemperatureCheckRevision | None = None

    def to_dict(self) -> dict:
        return {
            "check": self.check.to_dict(),
            "day": self.day.to_dict(),
            "day_status": temperature_service.day_status_label(self.day),
            "is_edit": self.is_edit,
            "revision": self.revision.to_dict() if self.revision else None,
        }


def document_state(document) -> str:
    if document is None:
        return STATE_ABSENT
    if document.last_edited_at is not None:
        return STATE_EDITED
    return STATE_SUBMITTED


def resolve_day_key(store: Store, day_key: str | None, now: datetime | None = None) -> str:
    """Explicit day keys are validated; otherwise 'today' in the store's timezone."""
    if day_key:
        try:
            parse_day_key(day_key)
        except ValueError:
            raise ValidationError(f"Invalid day: {day_key!r} (expected YYYY-MM-DD)")
        return day_key

    tz_name = store.timezone
    if not tz_name and has_app_context():
        tz_name = current_app.config.get("DEFAULT_TIMEZONE")
    return local_day_key(now, tz_name)


def _active_store(store_id: str) -> Store:
    try:
        return store_service.require_active_store(store_id)
    except store_service.StoreError as exc:
        raise SubmissionError(str(exc))


def _write_current_stock(store_id: str, items_map: Mapping, employee_id: str, name: str, now: datetime) -> None:
    """Unconditional write-through of the latest counts, edit or not."""
    existing = {
        row.item_id: row
        for row in db.session.query(CurrentStock).filter(
            CurrentStock.store_id == store_id,
            CurrentStock.item_id.in_(list(items_map.keys())),
        ).all()
    }
    for item_id, entry in items_map.items():
        row = existing.get(item_id)
        if row is None:
            row = CurrentStock(store_id=store_id, item_id=item_id)
            db.session.add(row)
        row.quantity = entry["quantity"]
        row.unit = entry["unit"]
        row.status = entry["status"] or STATUS_IN_STOCK
        row.updated_at = now
        row.updated_by_employee_id = employee_id
        row.updated_by_name = name


def submit_stock(
    store_id: str,
    actor: User,
    entered_values: Mapping,
    *,
    day_key: str | None = None,
    now: datetime | None = None,
) -> StockSubmitResult:
    """
    Record an end-of-shift stock count for one store/day.

    entered_values is {item_id: {"quantity", "unit"}} (or a bare quantity).
    Every active item must be present and valid; ValidationError otherwise.
    """
    store = _active_store(store_id)
    items = item_service.list_active_items(store_id)
    cleaned = require_complete_stock_entries(items, entered_values)
    payload = build_stock_payload(items, cleaned)
    day_key = resolve_day_key(store, day_key, now)
    actor_name = actor.display_name
    actor_employee_id = actor.employee_id or "unknown"

    def _op():
        ts = now or utcnow()
        submission = lock_for_update(
            db.session.query(StockSubmission).filter_by(store_id=store_id, day_key=day_key)
        ).first()

        _write_current_stock(store_id, payload.items, actor_employee_id, actor_name, ts)

        revision = None
        is_edit = submission is not None
        if not is_edit:
            submission = StockSubmission(
                store_id=store_id,
                day_key=day_key,
                submitted_at=ts,
                submitted_by_employee_id=actor_employee_id,
                submitted_by_name=actor_name,
                last_edited_at=None,
                last_edited_by_employee_id=None,
                last_edited_by_name=None,
                is_read_by_admin=False,
                needs_admin_review=False,
            )
            db.session.add(submission)
        else:
            submission.last_edited_at = ts
            submission.last_edited_by_employee_id = actor_employee_id
            submission.last_edited_by_name = actor_name
            # force the admin to see the change
            submission.is_read_by_admin = False
            submission.needs_admin_review = True

        submission.low_count = payload.low_count
        submission.out_count = payload.out_count
        submission.items = dict(payload.items)
        db.session.flush()

        if is_edit:
            revision = StockSubmissionRevision(
                submission_id=submission.id,
                edited_at=ts,
                edited_by_employee_id=actor_employee_id,
                edited_by_name=actor_name,
                low_count=payload.low_count,
                out_count=payload.out_count,
                items=dict(payload.items),
            )
            db.session.add(revision)

        db.session.commit()
        return StockSubmitResult(submission=submission, is_edit=is_edit, revision=revision)

    result = run_keyed_write(_op)

    subscription_service.publish(
        subscription_service.collection_key(subscription_service.COLLECTION_STOCK_SUBMISSIONS, store_id),
        result.submission.to_dict(),
    )
    subscription_service.publish(
        subscription_service.collection_key(subscription_service.COLLECTION_CURRENT_STOCK, store_id),
        {item_id: dict(entry) for item_id, entry in payload.items.items()},
    )
    return result


def _equipment_for_check(store: Store, existing: TemperatureCheck | None) -> list[dict]:
    """
    Current config, plus (for admin corrections) any equipment only the
    stored check still knows about, keeping its stored label and range.
    """
    equipment = [dict(eq) for eq in store.temperature_equipment or []]
    known = {eq.get("id") for eq in equipment}
    if existing is not None:
        for eq_id, record in (existing.equipment or {}).items():
            if eq_id in known:
                continue
            equipment.append({
                "id": eq_id,
                "label": record.get("label") or eq_id,
                "min": record.get("min"),
                "max": record.get("max"),
            })
    return equipment


def save_temperature_check(
    store_id: str,
    slot: str,
    actor: User,
    entered_values: Mapping,
    *,
    day_key: str | None = None,
    now: datetime | None = None,
) -> TemperatureSaveResult:
    """
    Record (or correct) one slot's temperature check, then rebuild the day.

    Employees must supply a numeric temp for every configured piece of
    equipment. An admin correcting an existing check may send only the
    readings that change; the rest keep their stored values.
    """
    temperature_service.validate_slot(slot)
    store = _active_store(store_id)
    day_key = resolve_day_key(store, day_key, now)
    actor_name = actor.display_name
    actor_employee_id = actor.employee_id or "unknown"
    is_admin = actor.is_admin
    entered_values = require_entry_map(entered_values, field="readings")

    def _op():
        ts = now or utcnow()
        check = lock_for_update(
            db.session.query(TemperatureCheck).filter_by(store_id=store_id, day_key=day_key, slot=slot)
        ).first()

        equipment_list = _equipment_for_check(store, check if is_admin else None)
        values = dict(entered_values)
        if is_admin and check is not None:
            stored = {
                eq_id: {"temp": record.get("temp"), "note": record.get("note")}
                for eq_id, record in (check.equipment or {}).items()
            }
            stored.update(values)
            values = stored

        cleaned = require_complete_temperature_entries(equipment_list, values)
        payload = build_temperature_payload(equipment_list, cleaned)

        revision = None
        is_edit = check is not None
        if not is_edit:
            check = TemperatureCheck(
                store_id=store_id,
                day_key=day_key,
                slot=slot,
                check_at=ts,
                created_by_employee_id=actor_employee_id,
                created_by_name=actor_name,
            )
            db.session.add(check)
        else:
            check.last_edited_at = ts
            check.last_edited_by_employee_id = actor_employee_id
            check.last_edited_by_name = actor_name

        check.equipment = dict(payload.equipment)
        check.has_out_of_range = payload.has_out_of_range
        db.session.flush()

        if is_edit:
            revision = TemperatureCheckRevision(
                check_id=check.id,
                edited_at=ts,
                edited_by_employee_id=actor_employee_id,
                edited_by_name=actor_name,
                equipment=dict(payload.equipment),
                has_out_of_range=payload.has_out_of_range,
            )
            db.session.add(revision)

        day = temperature_service.reconcile_day(
            store_id,
            day_key,
            updated_by_name=actor_name,
            mark_reviewed=is_admin,
            now=ts,
        )

        db.session.commit()
        return TemperatureSaveResult(check=check, day=day, is_edit=is_edit, revision=revision)

    result = run_keyed_write(_op)

    subscription_service.publish(
        subscription_service.collection_key(subscription_service.COLLECTION_TEMPERATURE_LOGS, store_id),
        result.day.to_dict(),
    )
    return result


# ---------------------------------------------------------------------------
# Admin review actions
# ---------------------------------------------------------------------------

def _update_review_flags(model, collection: str, store_id: str, day_key: str, *, confirm: bool, now: datetime | None):
    def _op():
        document = lock_for_update(
            db.session.query(model).filter_by(store_id=store_id, day_key=day_key)
        ).first()
        if not document:
            raise SubmissionError(f"No document found for {day_key}")

        document.is_read_by_admin = True
        if confirm:
            document.needs_admin_review = False
            document.admin_confirmed_at = now or utcnow()

        db.session.commit()
        return document

    document = run_with_retry(_op)
    subscription_service.publish(
        subscription_service.collection_key(collection, store_id),
        document.to_dict(),
    )
    return document


def mark_stock_submission_read(store_id: str, day_key: str) -> StockSubmission:
    return _update_review_flags(
        StockSubmission, subscription_service.COLLECTION_STOCK_SUBMISSIONS,
        store_id, day_key, confirm=False, now=None,
    )


def confirm_stock_submission(store_id: str, day_key: str, *, now: datetime | None = None) -> StockSubmission:
    """Admin approves the edits: clears needs_admin_review and marks read."""
    return _update_review_flags(
        StockSubmission, subscription_service.COLLECTION_STOCK_SUBMISSIONS,
        store_id, day_key, confirm=True, now=now,
    )


def mark_temperature_day_read(store_id: str, day_key: str) -> TemperatureLog:
    return _update_review_flags(
        TemperatureLog, subscription_service.COLLECTION_TEMPERATURE_LOGS,
        store_id, day_key, confirm=False, now=None,
    )


def confirm_temperature_day(store_id: str, day_key: str, *, now: datetime | None = None) -> TemperatureLog:
    return _update_review_flags(
        TemperatureLog, subscription_service.COLLECTION_TEMPERATURE_LOGS,
        store_id, day_key, confirm=True, now=now,
    )


# ---------------------------------------------------------------------------
# Read views
# ---------------------------------------------------------------------------

def get_stock_submission(store_id: str, day_key: str) -> StockSubmission | None:
    return db.session.query(StockSubmission).filter_by(store_id=store_id, day_key=day_key).first()


def list_stock_submissions(store_id: str, limit: int = 100) -> list[StockSubmission]:
    return (
        db.session.query(StockSubmission)
        .filter_by(store_id=store_id)
        .order_by(StockSubmission.submitted_at.desc())
        .limit(limit)
        .all()
    )


def list_revisions(store_id: str, day_key: str) -> list[StockSubmissionRevision]:
    """Newest first."""
    submission = get_stock_submission(store_id, day_key)
    if not submission:
        return []
    return (
        db.session.query(StockSubmissionRevision)
        .filter_by(submission_id=submission.id)
        .order_by(StockSubmissionRevision.edited_at.desc(), StockSubmissionRevision.id.desc())
        .all()
    )


def submission_rows(submission: StockSubmission, items_meta: Mapping | None = None) -> list[dict]:
    """Item rows ranked OUT, LOW, OK, then by name."""
    items_meta = items_meta or {}
    rows = []
    for item_id, entry in (submission.items or {}).items():
        meta = items_meta.get(item_id)
        status = (entry or {}).get("status") or STATUS_IN_STOCK
        rows.append({
            "item_id": item_id,
            "name": meta.name if meta else item_id,
            "status": status,
            "badge": status_badge(status),
            "quantity": (entry or {}).get("quantity"),
            "unit": (entry or {}).get("unit") or (meta.default_unit if meta else ""),
        })
    rows.sort(key=lambda r: (STATUS_RANK.get(r["status"], 9), r["name"].lower()))
    return rows


def get_submission_detail(store_id: str, day_key: str) -> dict:
    submission = get_stock_submission(store_id, day_key)
    if not submission:
        raise SubmissionError(f"No stock submission found for {day_key}")

    rows = submission_rows(submission, item_service.items_by_id(store_id))
    return {
        "submission": submission.to_dict(),
        "state": document_state(submission),
        "out_low_rows": [r for r in rows if r["status"] != STATUS_IN_STOCK],
        "ok_rows": [r for r in rows if r["status"] == STATUS_IN_STOCK],
        "revisions": [rev.to_dict() for rev in list_revisions(store_id, day_key)],
    }


def get_daily_summary(store_id: str, day_key: str) -> dict:
    """OUT and LOW lists for one day, each by name."""
    submission = get_stock_submission(store_id, day_key)
    if not submission:
        return {
            "day_key": day_key,
            "submitted": False,
            "submitted_by_name": None,
            "low_out_summary": {"low_count": 0, "out_count": 0},
            "out": [],
            "low": [],
        }

    rows = submission_rows(submission, item_service.items_by_id(store_id))
    by_name = lambda r: r["name"].lower()  # noqa: E731
    return {
        "day_key": day_key,
        "submitted": True,
        "submitted_by_name": submission.submitted_by_name or submission.submitted_by_employee_id,
        "low_out_summary": {"low_count": submission.low_count, "out_count": submission.out_count},
        "out": sorted((r for r in rows if r["badge"] == "OUT"), key=by_name),
        "low": sorted((r for r in rows if r["badge"] == "LOW"), key=by_name),
    }
