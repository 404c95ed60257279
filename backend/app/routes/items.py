# Overview: Flask API routes for per-store stock items.

from flask import Blueprint, current_app, g, jsonify, request

from app.decorators import require_admin, require_auth, require_store_access
from app.services import item_service
from app.validation import ValidationError


items_bp = Blueprint("items", __name__, url_prefix="/api/stores/<store_id>/items")


def _item_error(exc: Exception):
    status = 404 if "not found" in str(exc).lower() else 400
    return jsonify({"error": str(exc)}), status


@items_bp.get("")
@require_auth
@require_store_access
def list_items(store_id: str):
    """
    Items in counting order.

    Query params:
    - include_inactive: "true" to include disabled items (admin only)
    - grouped: "true" to group by category
    """
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    if include_inactive and not g.current_user.is_admin:
        return jsonify({"error": "Admin access required"}), 403

    items = item_service.list_items(store_id, include_inactive=include_inactive)
    if request.args.get("grouped", "false").lower() == "true":
        return jsonify(item_service.group_items_by_category(items)), 200
    return jsonify([item.to_dict() for item in items]), 200


@items_bp.post("")
@require_auth
@require_admin
@require_store_access
def create_item(store_id: str):
    data = request.get_json(silent=True) or {}
    item_id = data.pop("id", None)
    try:
        item = item_service.create_item(store_id, data, item_id=item_id)
        return jsonify(item.to_dict()), 201
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except item_service.ItemError as exc:
        return _item_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.patch("/<item_id>")
@require_auth
@require_admin
@require_store_access
def update_item(store_id: str, item_id: str):
    data = request.get_json(silent=True) or {}
    try:
        item = item_service.update_item(store_id, item_id, data)
        return jsonify(item.to_dict()), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except item_service.ItemError as exc:
        return _item_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.post("/<item_id>/disable")
@require_auth
@require_admin
@require_store_access
def disable_item(store_id: str, item_id: str):
    try:
        item = item_service.set_item_active(store_id, item_id, False)
        return jsonify(item.to_dict()), 200
    except item_service.ItemError as exc:
        return _item_error(exc)


@items_bp.post("/<item_id>/enable")
@require_auth
@require_admin
@require_store_access
def enable_item(store_id: str, item_id: str):
    try:
        item = item_service.set_item_active(store_id, item_id, True)
        return jsonify(item.to_dict()), 200
    except item_service.ItemError as exc:
        return _item_error(exc)


@items_bp.delete("/<item_id>")
@require_auth
@require_admin
@require_store_access
def delete_item(store_id: str, item_id: str):
    try:
        item_service.delete_item(store_id, item_id)
        return jsonify({"deleted": item_id}), 200
    except item_service.ItemError as exc:
        return _item_error(exc)
    except Exception:
        current_app.logger.exception("Failed to delete item")
        return jsonify({"error": "Internal server error"}), 500
