# Overview: Employee and admin profile management; PINs, store grants, enable/disable.

"""
Employee profiles.

Authentication itself happens upstream; these rows are what the identity
boundary resolves to. Each profile carries the store grants used for
access checks and the name/employee id used for attribution.

SECURITY NOTES:
- PINs are exactly 4 digits and stored bcrypt-hashed (cost factor 12)
- The hash never leaves the service (to_dict exposes only has_pin)
"""
from __future__ import annotations

import re

import bcrypt

from app.extensions import db
from app.models import ROLE_ADMIN, ROLE_EMPLOYEE, Store, User
from app.services.concurrency import lock_for_update, run_with_retry
from app.validation import ConflictError


EMPLOYEE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,20}$")
PIN_PATTERN = re.compile(r"^\d{4}$")
ROLES = (ROLE_ADMIN, ROLE_EMPLOYEE)


class EmployeeError(Exception):
    """Raised when employee operations fail."""
    pass


def validate_pin(pin) -> str:
    pin = str(pin or "").strip()
    if not PIN_PATTERN.match(pin):
        raise EmployeeError("PIN must be exactly 4 digits")
    return pin


def hash_pin(pin: str) -> str:
    pin = validate_pin(pin)
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(pin.encode("utf-8"), salt).decode("utf-8")


def verify_pin(pin: str, pin_hash: str | None) -> bool:
    """Timing-safe check; a missing hash never verifies."""
    if not pin or not pin_hash:
        return False
    try:
        return bcrypt.checkpw(str(pin).encode("utf-8"), pin_hash.encode("utf-8"))
    except ValueError:
        return False


def _require_store(store_id: str) -> Store:
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store:
        raise EmployeeError("Store not found")
    return store


def _locked_user(user_id: int) -> User:
    user = lock_for_update(db.session.query(User).filter_by(id=user_id)).first()
    if not user:
        raise EmployeeError("User not found")
    return user


def create_employee(
    *,
    store_id: str,
    employee_id: str,
    pin: str,
    name: str | None = None,
    role: str = ROLE_EMPLOYEE,
) -> User:
    """
    Create a profile bound to one store.

    employee_id: 3-20 chars of letters/digits/_-, unique.
    pin: exactly 4 digits.
    """
    store_id = str(store_id or "").strip()
    employee_id = str(employee_id or "").strip()
    if not store_id or not employee_id or not pin:
        raise EmployeeError("store_id, employee_id, and pin are required")
    if not EMPLOYEE_ID_PATTERN.match(employee_id):
        raise EmployeeError("employee_id must be 3-20 chars: letters/numbers/_- only")
    if role not in ROLES:
        raise EmployeeError(f"Invalid role: {role}")
    pin_hash = hash_pin(pin)

    def _op():
        _require_store(store_id)
        if db.session.query(User).filter_by(employee_id=employee_id).first():
            raise ConflictError("Employee already exists")

        user = User(
            role=role,
            employee_id=employee_id,
            name=(name or "").strip() or employee_id,
            store_ids=[store_id],
            default_store_id=store_id,
            pin_hash=pin_hash,
            is_active=True,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return run_with_retry(_op)


def create_admin(*, employee_id: str, name: str | None = None, store_ids: list[str] | None = None) -> User:
    """Admin profile; an empty store list means access to every store."""
    employee_id = str(employee_id or "").strip()
    if not EMPLOYEE_ID_PATTERN.match(employee_id):
        raise EmployeeError("employee_id must be 3-20 chars: letters/numbers/_- only")
    store_ids = list(dict.fromkeys(store_ids or []))

    def _op():
        for store_id in store_ids:
            _require_store(store_id)
        if db.session.query(User).filter_by(employee_id=employee_id).first():
            raise ConflictError("Employee already exists")

        user = User(
            role=ROLE_ADMIN,
            employee_id=employee_id,
            name=(name or "").strip() or employee_id,
            store_ids=store_ids,
            default_store_id=store_ids[0] if store_ids else None,
            is_active=True,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return run_with_retry(_op)


def reset_pin(user_id: int, new_pin: str) -> User:
    pin_hash = hash_pin(new_pin)

    def _op():
        user = _locked_user(user_id)
        user.pin_hash = pin_hash
        db.session.commit()
        return user

    return run_with_retry(_op)


def set_active(user_id: int, is_active: bool) -> User:
    def _op():
        user = _locked_user(user_id)
        user.is_active = bool(is_active)
        db.session.commit()
        return user

    return run_with_retry(_op)


def grant_store(user_id: int, store_id: str) -> User:
    """Add a store grant; the first grant also becomes the default store."""
    def _op():
        _require_store(store_id)
        user = _locked_user(user_id)
        store_ids = list(user.store_ids or [])
        if store_id not in store_ids:
            store_ids.append(store_id)
        user.store_ids = store_ids
        if not user.default_store_id:
            user.default_store_id = store_id
        db.session.commit()
        return user

    return run_with_retry(_op)


def revoke_store(user_id: int, store_id: str) -> User:
    """Remove a store grant, moving default_store_id to a remaining store."""
    def _op():
        user = _locked_user(user_id)
        store_ids = [s for s in (user.store_ids or []) if s != store_id]
        user.store_ids = store_ids
        if user.default_store_id == store_id:
            user.default_store_id = store_ids[0] if store_ids else None
        db.session.commit()
        return user

    return run_with_retry(_op)


def set_admin_stores(user_id: int, store_ids: list[str]) -> User:
    """Replace an admin's store list (empty list = all stores)."""
    store_ids = list(dict.fromkeys(store_ids or []))

    def _op():
        for store_id in store_ids:
            _require_store(store_id)
        user = _locked_user(user_id)
        if not user.is_admin:
            raise EmployeeError("User is not an admin")
        user.store_ids = store_ids
        if user.default_store_id not in store_ids:
            user.default_store_id = store_ids[0] if store_ids else None
        db.session.commit()
        return user

    return run_with_retry(_op)


def get_user(user_id: int) -> User | None:
    return db.session.query(User).filter_by(id=user_id).first()


def get_by_employee_id(employee_id: str) -> User | None:
    return db.session.query(User).filter_by(employee_id=employee_id).first()


def list_employees(store_id: str | None = None, *, include_inactive: bool = True) -> list[User]:
    """Profiles, optionally only those granted the given store."""
    query = db.session.query(User)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    users = query.order_by(User.employee_id.asc()).all()
    if store_id is None:
        return users
    return [u for u in users if store_id in (u.store_ids or [])]
