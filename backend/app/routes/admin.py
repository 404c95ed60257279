# Overview: Flask API routes for the admin inbox, review signals and dashboard lists.

from flask import Blueprint, jsonify, request

from app.decorators import require_admin, require_auth, require_store_access
from app.services import signal_service


admin_bp = Blueprint("admin", __name__, url_prefix="/api/stores/<store_id>/admin")


@admin_bp.get("/signals")
@require_auth
@require_admin
@require_store_access
def signals(store_id: str):
    """Unread and needs-review counts per collection plus combined totals."""
    return jsonify(signal_service.inbox_counts(store_id)), 200


@admin_bp.get("/inbox")
@require_auth
@require_admin
@require_store_access
def inbox(store_id: str):
    """
    Unread stock submissions and temperature days, newest day first.

    Query params:
    - tab: stock | temp | all (default all)
    """
    tab = request.args.get("tab", signal_service.INBOX_TAB_ALL)
    try:
        rows = signal_service.admin_inbox(store_id, tab)
        return jsonify(rows), 200
    except signal_service.SignalError as exc:
        return jsonify({"error": str(exc)}), 400


@admin_bp.get("/low-out")
@require_auth
@require_admin
@require_store_access
def low_out(store_id: str):
    return jsonify(signal_service.low_out_dashboard(store_id)), 200
