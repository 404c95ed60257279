# Overview: Weekly/monthly stock report rollups, ranked problem items and CSV export rows.

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Mapping

from flask import current_app, has_app_context

from app.extensions import db
from app.models import StockSubmission, Store
from app.services import item_service
from app.services.status_rules import STATUS_IN_STOCK, STATUS_NEED_STOCK, STATUS_OUT_OF_STOCK
from app.time_utils import (
    end_of_day,
    format_day_key,
    parse_day_key,
    start_of_day,
    start_of_month,
    start_of_week,
    to_utc_z,
)


MODE_WEEKLY = "WEEKLY"
MODE_MONTHLY = "MONTHLY"
REPORT_MODES = (MODE_WEEKLY, MODE_MONTHLY)

DEFAULT_TOP_PROBLEMS_LIMIT = 12

# OUT counts double
OUT_WEIGHT = 2
LOW_WEIGHT = 1

SUMMARY_HEADER = ["Item", "OUT count", "LOW count", "OK count", "Score", "Last qty", "Unit"]
DETAILED_HEADER = [
    "submittedDate",
    "submittedAt",
    "submittedBy",
    "itemId",
    "itemName",
    "quantity",
    "unit",
    "status",
]


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    @property
    def start_key(self) -> str:
        return format_day_key(self.start)

    @property
    def end_key(self) -> str:
        return format_day_key(self.end)

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(timespec="milliseconds"),
            "end": self.end.isoformat(timespec="milliseconds"),
            "start_day": self.start_key,
            "end_day": self.end_key,
        }


def _normalize_mode(mode: str | None) -> str:
    normalized = str(mode or "").strip().upper()
    if normalized not in REPORT_MODES:
        raise ReportError("mode must be WEEKLY or MONTHLY")
    return normalized


def _coerce_anchor(anchor) -> date:
    if isinstance(anchor, datetime):
        return anchor.date()
    if isinstance(anchor, date):
        return anchor
    try:
        return parse_day_key(str(anchor or ""))
    except ValueError:
        raise ReportError(f"Invalid anchor date: {anchor!r} (expected YYYY-MM-DD)")


def date_range(mode: str, anchor) -> DateRange:
    """
    Period-to-date window: [start of week/month, end of the anchor day].

    Weeks start on Monday, so a Sunday anchor rolls back six days.
    """
    mode = _normalize_mode(mode)
    anchor_day = _coerce_anchor(anchor)
    if mode == MODE_WEEKLY:
        start = start_of_day(start_of_week(anchor_day))
    else:
        start = start_of_day(start_of_month(anchor_day))
    return DateRange(start=start, end=end_of_day(anchor_day))


def _top_problems_limit() -> int:
    if has_app_context():
        return int(current_app.config.get("REPORT_TOP_PROBLEMS_LIMIT", DEFAULT_TOP_PROBLEMS_LIMIT))
    return DEFAULT_TOP_PROBLEMS_LIMIT


def _item_name(items_meta: Mapping, item_id: str) -> str:
    meta = items_meta.get(item_id)
    return meta.name if meta is not None else item_id


def _get(document, key: str):
    if isinstance(document, Mapping):
        return document.get(key)
    return getattr(document, key, None)


def summarize(submissions: Iterable, items_meta: Mapping | None = None, *, limit: int | None = None) -> dict:
    """
    Roll up submissions (newest first) into per-item OUT/LOW/OK tallies.

    The first quantity seen per item is therefore the latest. score is
    out*2 + low; topProblems is the highest scores, ties by name.
    """
    items_meta = items_meta or {}
    limit = _top_problems_limit() if limit is None else limit

    submissions = list(submissions)
    total_out = 0
    total_low = 0
    per_item: dict[str, dict] = {}

    for submission in submissions:
        for item_id, entry in (_get(submission, "items") or {}).items():
            entry = entry or {}
            status = entry.get("status") or STATUS_IN_STOCK
            row = per_item.setdefault(item_id, {
                "out": 0,
                "low": 0,
                "ok": 0,
                "last_qty": None,
                "unit": entry.get("unit") or "",
            })

            if status == STATUS_OUT_OF_STOCK:
                row["out"] += 1
                total_out += 1
            elif status == STATUS_NEED_STOCK:
                row["low"] += 1
                total_low += 1
            else:
                row["ok"] += 1

            if row["last_qty"] is None and entry.get("quantity") is not None:
                row["last_qty"] = entry.get("quantity")
                row["unit"] = entry.get("unit") or row["unit"]

    ranked = []
    for item_id, row in per_item.items():
        meta = items_meta.get(item_id)
        ranked.append({
            "item_id": item_id,
            "name": _item_name(items_meta, item_id),
            "out": row["out"],
            "low": row["low"],
            "ok": row["ok"],
            "last_qty": row["last_qty"],
            "unit": row["unit"] or (meta.default_unit if meta is not None else ""),
            "score": row["out"] * OUT_WEIGHT + row["low"] * LOW_WEIGHT,
        })
    ranked.sort(key=lambda r: (-r["score"], r["name"].lower()))

    return {
        "total_submissions": len(submissions),
        "total_out": total_out,
        "total_low": total_low,
        "top_problems": ranked[:limit],
    }


def export_summary_rows(summary: Mapping) -> list[list]:
    rows = [list(SUMMARY_HEADER)]
    for r in summary.get("top_problems", []):
        rows.append([
            r["name"],
            r["out"],
            r["low"],
            r["ok"],
            r["score"],
            "" if r["last_qty"] is None else r["last_qty"],
            r["unit"] or "",
        ])
    return rows


def export_detailed_rows(submissions: Iterable, items_meta: Mapping | None = None) -> list[list]:
    """One row per item per submission, in submission order."""
    items_meta = items_meta or {}
    rows = [list(DETAILED_HEADER)]
    for submission in submissions:
        submitted_date = _get(submission, "day_key") or _get(submission, "submitted_date") or ""
        submitted_at = _get(submission, "submitted_at")
        if isinstance(submitted_at, datetime):
            submitted_at = to_utc_z(submitted_at)
        submitted_by = _get(submission, "submitted_by_name") or _get(submission, "submitted_by_employee_id") or ""

        for item_id, entry in (_get(submission, "items") or {}).items():
            entry = entry or {}
            rows.append([
                submitted_date,
                submitted_at or "",
                submitted_by,
                item_id,
                _item_name(items_meta, item_id),
                "" if entry.get("quantity") is None else entry.get("quantity"),
                entry.get("unit") or "",
                entry.get("status") or "",
            ])
    return rows


def rows_to_csv(rows: Iterable[Iterable]) -> str:
    """
    Comma-separated, header first, rows joined by a bare newline.

    Fields holding a comma, quote or newline are quoted with embedded
    quotes doubled. No trailing newline.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue().rstrip("\n")


def report_filename(store_id: str, mode: str, window: DateRange, kind: str) -> str:
    if kind not in ("summary", "detailed"):
        raise ReportError("kind must be summary or detailed")
    return f"report_{store_id}_{_normalize_mode(mode)}_{window.start_key}_to_{window.end_key}_{kind}.csv"


def submissions_in_range(store_id: str, window: DateRange) -> list[StockSubmission]:
    """
    Submissions whose day falls inside the window, newest first.

    Filtering on the day key keeps the window in the store's calendar even
    though submitted_at is stored in UTC.
    """
    return (
        db.session.query(StockSubmission)
        .filter(
            StockSubmission.store_id == store_id,
            StockSubmission.day_key >= window.start_key,
            StockSubmission.day_key <= window.end_key,
        )
        .order_by(StockSubmission.day_key.desc(), StockSubmission.submitted_at.desc())
        .all()
    )


def build_report(*, store_id: str, mode: str, anchor) -> dict:
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store:
        raise ReportError("Store not found")

    window = date_range(mode, anchor)
    submissions = submissions_in_range(store_id, window)
    items_meta = item_service.items_by_id(store_id)

    return {
        "store_id": store_id,
        "mode": _normalize_mode(mode),
        "range": window.to_dict(),
        "summary": summarize(submissions, items_meta),
        "submissions": submissions,
        "items_meta": items_meta,
    }


def summary_csv(*, store_id: str, mode: str, anchor) -> tuple[str, str]:
    """(filename, csv text) for the ranked summary export."""
    report = build_report(store_id=store_id, mode=mode, anchor=anchor)
    window = date_range(mode, anchor)
    return (
        report_filename(store_id, mode, window, "summary"),
        rows_to_csv(export_summary_rows(report["summary"])),
    )


def detailed_csv(*, store_id: str, mode: str, anchor) -> tuple[str, str]:
    """(filename, csv text) for the per-item detailed export."""
    report = build_report(store_id=store_id, mode=mode, anchor=anchor)
    window = date_range(mode, anchor)
    return (
        report_filename(store_id, mode, window, "detailed"),
        rows_to_csv(export_detailed_rows(report["submissions"], report["items_meta"])),
    )


def report_to_dict(report: Mapping) -> dict:
    """JSON-safe view of build_report output."""
    return {
        "store_id": report["store_id"],
        "mode": report["mode"],
        "range": report["range"],
        "summary": report["summary"],
    }
