# Overview: Flask API routes for employee profiles, PINs and store grants.

from flask import Blueprint, current_app, g, jsonify, request

from app.decorators import require_admin, require_auth
from app.services import employee_service
from app.validation import ConflictError


employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


def _employee_error(exc: Exception):
    status = 404 if "not found" in str(exc).lower() else 400
    return jsonify({"error": str(exc)}), status


@employees_bp.get("/me")
@require_auth
def me():
    return jsonify(g.current_user.to_dict()), 200


@employees_bp.get("")
@require_auth
@require_admin
def list_employees():
    store_id = request.args.get("store_id")
    if store_id and not g.current_user.can_access_store(store_id):
        return jsonify({"error": "No access to this store"}), 403
    users = employee_service.list_employees(store_id)
    return jsonify([u.to_dict() for u in users]), 200


@employees_bp.post("")
@require_auth
@require_admin
def create_employee():
    """
    Create an employee profile.

    Request body:
    {
        "store_id": str,
        "employee_id": str,  // 3-20 chars, letters/numbers/_-
        "name": str (optional),
        "pin": str  // exactly 4 digits
    }
    """
    data = request.get_json(silent=True) or {}
    store_id = data.get("store_id")
    if store_id and not g.current_user.can_access_store(store_id):
        return jsonify({"error": "No access to this store"}), 403

    try:
        user = employee_service.create_employee(
            store_id=store_id,
            employee_id=data.get("employee_id"),
            pin=data.get("pin"),
            name=data.get("name"),
        )
        return jsonify(user.to_dict()), 201
    except ConflictError as exc:
        return jsonify({"error": str(exc)}), 409
    except employee_service.EmployeeError as exc:
        return _employee_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.post("/<int:user_id>/pin")
@require_auth
@require_admin
def reset_pin(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        user = employee_service.reset_pin(user_id, data.get("pin"))
        return jsonify(user.to_dict()), 200
    except employee_service.EmployeeError as exc:
        return _employee_error(exc)


@employees_bp.post("/<int:user_id>/active")
@require_auth
@require_admin
def set_active(user_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get("is_active"), bool):
        return jsonify({"error": "is_active must be true or false"}), 400
    if user_id == g.current_user.id and not data["is_active"]:
        return jsonify({"error": "Cannot disable your own profile"}), 400

    try:
        user = employee_service.set_active(user_id, data["is_active"])
        return jsonify(user.to_dict()), 200
    except employee_service.EmployeeError as exc:
        return _employee_error(exc)


@employees_bp.post("/<int:user_id>/stores")
@require_auth
@require_admin
def grant_store(user_id: int):
    data = request.get_json(silent=True) or {}
    store_id = data.get("store_id")
    if not store_id:
        return jsonify({"error": "store_id is required"}), 400
    if not g.current_user.can_access_store(store_id):
        return jsonify({"error": "No access to this store"}), 403

    try:
        user = employee_service.grant_store(user_id, store_id)
        return jsonify(user.to_dict()), 200
    except employee_service.EmployeeError as exc:
        return _employee_error(exc)


@employees_bp.delete("/<int:user_id>/stores/<store_id>")
@require_auth
@require_admin
def revoke_store(user_id: int, store_id: str):
    if not g.current_user.can_access_store(store_id):
        return jsonify({"error": "No access to this store"}), 403

    try:
        user = employee_service.revoke_store(user_id, store_id)
        return jsonify(user.to_dict()), 200
    except employee_service.EmployeeError as exc:
        return _employee_error(exc)


@employees_bp.put("/<int:user_id>/admin-stores")
@require_auth
@require_admin
def set_admin_stores(user_id: int):
    data = request.get_json(silent=True) or {}
    store_ids = data.get("store_ids")
    if not isinstance(store_ids, list):
        return jsonify({"error": "store_ids must be a list"}), 400

    try:
        user = employee_service.set_admin_stores(user_id, store_ids)
        return jsonify(user.to_dict()), 200
    except employee_service.EmployeeError as exc:
        return _employee_error(exc)
