# Overview: Flask API routes for store configuration; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from app.decorators import require_admin, require_auth, require_store_access
from app.services import store_service
from app.validation import ConflictError


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


def _store_error(exc: Exception):
    status = 404 if "not found" in str(exc).lower() else 400
    return jsonify({"error": str(exc)}), status


@stores_bp.get("")
@require_auth
def list_stores():
    """
    Stores visible to the caller.

    Admins with no store list see every store; everyone else sees their
    granted stores (employees only the active ones).
    """
    user = g.current_user
    if user.is_admin:
        store_ids = list(user.store_ids) if user.store_ids else None
        stores = store_service.list_stores(include_inactive=True, store_ids=store_ids)
    else:
        stores = store_service.list_stores(include_inactive=False, store_ids=list(user.store_ids or []))
    return jsonify([store.to_dict() for store in stores]), 200


@stores_bp.post("")
@require_auth
@require_admin
def create_store():
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.create_store(
            data.get("id"),
            data.get("name"),
            timezone=data.get("timezone"),
            temperature_equipment=data.get("temperature_equipment"),
        )
        return jsonify(store.to_dict()), 201
    except ConflictError as exc:
        return jsonify({"error": str(exc)}), 409
    except store_service.StoreError as exc:
        return _store_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.get("/<store_id>")
@require_auth
@require_store_access
def get_store(store_id: str):
    store = store_service.get_store(store_id)
    if not store:
        return jsonify({"error": "Store not found"}), 404
    return jsonify(store.to_dict()), 200


@stores_bp.put("/<store_id>")
@require_auth
@require_admin
@require_store_access
def update_store(store_id: str):
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.update_store(
            store_id,
            name=data.get("name"),
            timezone=data.get("timezone"),
            is_active=data.get("is_active"),
        )
        return jsonify(store.to_dict()), 200
    except store_service.StoreError as exc:
        return _store_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.put("/<store_id>/equipment")
@require_auth
@require_admin
@require_store_access
def set_equipment(store_id: str):
    """
    Replace the ordered temperature equipment list.

    Request body:
    {
        "temperature_equipment": [{"id": str, "label": str, "min": number?, "max": number?}]
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.set_temperature_equipment(store_id, data.get("temperature_equipment"))
        return jsonify(store.to_dict()), 200
    except store_service.StoreError as exc:
        return _store_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update store equipment")
        return jsonify({"error": "Internal server error"}), 500
