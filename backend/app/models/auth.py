from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z


ROLE_ADMIN = "admin"
ROLE_EMPLOYEE = "employee"


class User(db.Model):
    """
    User profile: the acting principal for every submission and admin action.

    Authentication happens upstream; this row supplies role, store grants
    and the display name/employee id used for submitted_by/edited_by
    attribution.

    The PIN is stored bcrypt-hashed (4 digits, see employee_service).
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("employee_id", name="uq_users_employee_id"),
    )

    id = db.Column(db.Integer, primary_key=True)

    role = db.Column(db.String(16), nullable=False, default=ROLE_EMPLOYEE)
    employee_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=True)

    # Stores this user may act on; admins with an empty list see every store
    store_ids = db.Column(db.JSON, nullable=False, default=list)
    default_store_id = db.Column(db.String(40), db.ForeignKey("stores.id"), nullable=True)

    pin_hash = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.employee_id:
            return self.employee_id
        return "Admin" if self.is_admin else "Employee"

    def can_access_store(self, store_id: str) -> bool:
        if self.is_admin and not self.store_ids:
            return True
        return store_id in (self.store_ids or [])

    def __repr__(self) -> str:
        return f"<User id={self.id} employee_id={self.employee_id!r} role={self.role!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "employee_id": self.employee_id,
            "name": self.name,
            "store_ids": list(self.store_ids or []),
            "default_store_id": self.default_store_id,
            "has_pin": bool(self.pin_hash),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
