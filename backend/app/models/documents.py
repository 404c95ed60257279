from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z


class StockSubmission(db.Model):
    """
    End-of-shift stock count: one document per store per calendar day.

    LIFECYCLE (see daily_document_service):
    1. ABSENT: no row for (store_id, day_key)
    2. SUBMITTED: first write, needs_admin_review=False
    3. EDITED: every later write, needs_admin_review=True, is_read_by_admin=False,
       plus one StockSubmissionRevision per write

    items is {item_id: {"quantity", "unit", "status"}}.
    """
    __tablename__ = "stock_submissions"
    __table_args__ = (
        db.UniqueConstraint("store_id", "day_key", name="uq_stock_submissions_store_day"),
        db.Index("ix_stock_submissions_store_submitted", "store_id", "submitted_at"),
        db.Index("ix_stock_submissions_store_read", "store_id", "is_read_by_admin"),
        db.Index("ix_stock_submissions_store_review", "store_id", "needs_admin_review"),
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.String(40), db.ForeignKey("stores.id"), nullable=False, index=True)

    # YYYY-MM-DD, local calendar date of the store
    day_key = db.Column(db.String(10), nullable=False)

    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False)
    submitted_by_employee_id = db.Column(db.String(64), nullable=True)
    submitted_by_name = db.Column(db.String(255), nullable=True)

    last_edited_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_edited_by_employee_id = db.Column(db.String(64), nullable=True)
    last_edited_by_name = db.Column(db.String(255), nullable=True)

    is_read_by_admin = db.Column(db.Boolean, nullable=False, default=False)
    needs_admin_review = db.Column(db.Boolean, nullable=False, default=False)
    admin_confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    low_count = db.Column(db.Integer, nullable=False, default=0)
    out_count = db.Column(db.Integer, nullable=False, default=0)

    items = db.Column(db.JSON, nullable=False, default=dict)

    store = db.relationship("Store", backref=db.backref("stock_submissions", lazy=True))
    revisions = db.relationship(
        "StockSubmissionRevision",
        backref="submission",
        lazy=True,
        order_by="StockSubmissionRevision.id",
    )

    def __repr__(self) -> str:
        return f"<StockSubmission store_id={self.store_id!r} day_key={self.day_key!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "day_key": self.day_key,
            "submitted_date": self.day_key,
            "submitted_at": to_utc_z(self.submitted_at),
            "submitted_by_employee_id": self.submitted_by_employee_id,
            "submitted_by_name": self.submitted_by_name,
            "last_edited_at": to_utc_z(self.last_edited_at),
            "last_edited_by_employee_id": self.last_edited_by_employee_id,
            "last_edited_by_name": self.last_edited_by_name,
            "is_read_by_admin": self.is_read_by_admin,
            "needs_admin_review": self.needs_admin_review,
            "admin_confirmed_at": to_utc_z(self.admin_confirmed_at),
            "low_out_summary": {"low_count": self.low_count, "out_count": self.out_count},
            "items": dict(self.items or {}),
        }


class StockSubmissionRevision(db.Model):
    """
    Immutable audit record of one edit to a StockSubmission.

    Append-only: rows are never updated or deleted. Holds the full item map
    as written by that edit, which is the only way to recover prior values.
    """
    __tablename__ = "stock_submission_revisions"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.Integer, db.ForeignKey("stock_submissions.id"), nullable=False, index=True
    )

    edited_at = db.Column(db.DateTime(timezone=True), nullable=False)
    edited_by_employee_id = db.Column(db.String(64), nullable=True)
    edited_by_name = db.Column(db.String(255), nullable=True)

    low_count = db.Column(db.Integer, nullable=False, default=0)
    out_count = db.Column(db.Integer, nullable=False, default=0)
    items = db.Column(db.JSON, nullable=False, default=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "submission_id": self.submission_id,
            "edited_at": to_utc_z(self.edited_at),
            "edited_by_employee_id": self.edited_by_employee_id,
            "edited_by_name": self.edited_by_name,
            "low_out_summary": {"low_count": self.low_count, "out_count": self.out_count},
            "items": dict(self.items or {}),
        }


class TemperatureLog(db.Model):
    """
    Day-level temperature summary, one per store per day.

    DERIVED ONLY: every field is recomputed from the TemperatureCheck slot
    rows by temperature_service.reconcile_day. Equipment readings never live
    here; only slots hold authored data.
    """
    __tablename__ = "temperature_logs"
    __table_args__ = (
        db.UniqueConstraint("store_id", "day_key", name="uq_temperature_logs_store_day"),
        db.Index("ix_temperature_logs_store_read", "store_id", "is_read_by_admin"),
        db.Index("ix_temperature_logs_store_review", "store_id", "needs_admin_review"),
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.String(40), db.ForeignKey("stores.id"), nullable=False, index=True)
    day_key = db.Column(db.String(10), nullable=False)

    check_count = db.Column(db.Integer, nullable=False, default=0)
    has_out_of_range = db.Column(db.Boolean, nullable=False, default=False)
    last_check_at = db.Column(db.DateTime(timezone=True), nullable=True)

    is_read_by_admin = db.Column(db.Boolean, nullable=False, default=False)
    needs_admin_review = db.Column(db.Boolean, nullable=False, default=False)
    admin_confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_by_name = db.Column(db.String(255), nullable=True)

    store = db.relationship("Store", backref=db.backref("temperature_logs", lazy=True))

    def __repr__(self) -> str:
        return f"<TemperatureLog store_id={self.store_id!r} day_key={self.day_key!r} checks={self.check_count}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "day_key": self.day_key,
            "submitted_date": self.day_key,
            "check_count": self.check_count,
            "has_out_of_range": self.has_out_of_range,
            "last_check_at": to_utc_z(self.last_check_at),
            "is_read_by_admin": self.is_read_by_admin,
            "needs_admin_review": self.needs_admin_review,
            "admin_confirmed_at": to_utc_z(self.admin_confirmed_at),
            "updated_at": to_utc_z(self.updated_at),
            "updated_by_name": self.updated_by_name,
        }


class TemperatureCheck(db.Model):
    """
    One of the two authored temperature checks of a day, keyed by slot
    "log1" or "log2".

    equipment is {equipment_id: {"label", "temp", "unit", "note", "min",
    "max", "out_of_range"}}, fully denormalized so readers never need the
    store's equipment config.
    """
    __tablename__ = "temperature_checks"
    __table_args__ = (
        db.UniqueConstraint("store_id", "day_key", "slot", name="uq_temperature_checks_store_day_slot"),
        db.CheckConstraint("slot IN ('log1', 'log2')", name="ck_temperature_checks_slot"),
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.String(40), db.ForeignKey("stores.id"), nullable=False, index=True)
    day_key = db.Column(db.String(10), nullable=False, index=True)
    slot = db.Column(db.String(8), nullable=False)

    check_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_by_employee_id = db.Column(db.String(64), nullable=True)
    created_by_name = db.Column(db.String(255), nullable=True)

    last_edited_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_edited_by_employee_id = db.Column(db.String(64), nullable=True)
    last_edited_by_name = db.Column(db.String(255), nullable=True)

    equipment = db.Column(db.JSON, nullable=False, default=dict)
    has_out_of_range = db.Column(db.Boolean, nullable=False, default=False)

    revisions = db.relationship(
        "TemperatureCheckRevision",
        backref="check",
        lazy=True,
        order_by="TemperatureCheckRevision.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "day_key": self.day_key,
            "slot": self.slot,
            "check_at": to_utc_z(self.check_at),
            "created_by_employee_id": self.created_by_employee_id,
            "created_by_name": self.created_by_name,
            "last_edited_at": to_utc_z(self.last_edited_at),
            "last_edited_by_employee_id": self.last_edited_by_employee_id,
            "last_edited_by_name": self.last_edited_by_name,
            "equipment": dict(self.equipment or {}),
            "has_out_of_range": self.has_out_of_range,
        }


class TemperatureCheckRevision(db.Model):
    """Immutable audit record of one edit to a TemperatureCheck slot."""
    __tablename__ = "temperature_check_revisions"

    id = db.Column(db.Integer, primary_key=True)
    check_id = db.Column(db.Integer, db.ForeignKey("temperature_checks.id"), nullable=False, index=True)

    edited_at = db.Column(db.DateTime(timezone=True), nullable=False)
    edited_by_employee_id = db.Column(db.String(64), nullable=True)
    edited_by_name = db.Column(db.String(255), nullable=True)

    equipment = db.Column(db.JSON, nullable=False, default=dict)
    has_out_of_range = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "check_id": self.check_id,
            "edited_at": to_utc_z(self.edited_at),
            "edited_by_employee_id": self.edited_by_employee_id,
            "edited_by_name": self.edited_by_name,
            "equipment": dict(self.equipment or {}),
            "has_out_of_range": self.has_out_of_range,
        }
