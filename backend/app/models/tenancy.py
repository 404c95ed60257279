from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z


class Store(db.Model):
    """
    A shop/restaurant location.

    The id is a human-chosen slug (e.g. "mitho-cbd") so it can be used
    directly in URLs and day-document keys.

    temperature_equipment is an ORDERED list of
    {"id", "label", "min"?, "max"?}. It defines the set of required
    temperature readings per check. Admin edits apply to every later
    submission immediately; nothing caches it.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.Index("ix_stores_active", "is_active"),
    )

    id = db.Column(db.String(40), primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Local calendar for day keys
    timezone = db.Column(db.String(64), nullable=True)

    temperature_equipment = db.Column(db.JSON, nullable=False, default=list)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Store id={self.id!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "timezone": self.timezone,
            "temperature_equipment": list(self.temperature_equipment or []),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
