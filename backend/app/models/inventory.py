from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z


class Item(db.Model):
    """
    Stock item counted at end of shift.

    Items belong to exactly one store. Disabling (is_active=False) is the
    normal way to retire an item; the permanent delete path exists but
    leaves historical submissions untouched (they keep their own copies of
    quantity/unit/status).
    """
    __tablename__ = "items"
    __table_args__ = (
        db.Index("ix_items_store_active", "store_id", "is_active"),
        db.Index("ix_items_store_sort", "store_id", "sort_order"),
    )

    id = db.Column(db.String(64), primary_key=True)
    store_id = db.Column(db.String(40), db.ForeignKey("stores.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False, default="Uncategorized")
    category_order = db.Column(db.Integer, nullable=True)
    default_unit = db.Column(db.String(32), nullable=False, default="piece")

    # None means "never LOW", only OUT at zero
    low_stock_threshold = db.Column(db.Float, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    store = db.relationship("Store", backref=db.backref("items", lazy=True))

    def __repr__(self) -> str:
        return f"<Item id={self.id!r} name={self.name!r} store_id={self.store_id!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "category": self.category,
            "category_order": self.category_order,
            "default_unit": self.default_unit,
            "low_stock_threshold": self.low_stock_threshold,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CurrentStock(db.Model):
    """
    Latest known on-hand count per item per store.

    A last-writer-wins cache, overwritten by every stock submission. It is
    not a ledger and is not date-scoped.
    """
    __tablename__ = "current_stock"
    __table_args__ = (
        db.UniqueConstraint("store_id", "item_id", name="uq_current_stock_store_item"),
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.String(40), db.ForeignKey("stores.id"), nullable=False, index=True)
    # No FK: a permanently deleted item may still have a last-known row
    item_id = db.Column(db.String(64), nullable=False, index=True)

    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(32), nullable=True)
    status = db.Column(db.String(16), nullable=False)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_by_employee_id = db.Column(db.String(64), nullable=True)
    updated_by_name = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            "store_id": self.store_id,
            "item_id": self.item_id,
            "quantity": self.quantity,
            "unit": self.unit,
            "status": self.status,
            "updated_at": to_utc_z(self.updated_at),
            "updated_by_employee_id": self.updated_by_employee_id,
            "updated_by_name": self.updated_by_name,
        }
