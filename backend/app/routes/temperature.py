# Overview: Flask API routes for temperature slot checks and reconciled day logs.

from flask import Blueprint, current_app, g, jsonify, request

from app.decorators import require_admin, require_auth, require_store_access
from app.extensions import db
from app.services import daily_document_service, signal_service, store_service, temperature_service
from app.validation import ValidationError


temperature_bp = Blueprint("temperature", __name__, url_prefix="/api/stores/<store_id>/temperature")


def _temperature_error(exc: Exception):
    message = str(exc)
    lowered = message.lower()
    status = 404 if ("not found" in lowered or lowered.startswith("no document")) else 400
    return jsonify({"error": message}), status


@temperature_bp.post("/checks/<slot>")
@require_auth
@require_store_access
def save_check(store_id: str, slot: str):
    """
    Record or correct one slot ("log1" or "log2") of a day.

    Request body:
    {
        "readings": {equipment_id: {"temp": number, "note": str?}},
        "day_key": "YYYY-MM-DD" (optional, defaults to today in the store's timezone)
    }

    Returns:
        201: First save of the slot
        200: Edit of an existing slot
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400
    try:
        result = daily_document_service.save_temperature_check(
            store_id,
            slot,
            g.current_user,
            data.get("readings") or {},
            day_key=data.get("day_key"),
        )
        return jsonify(result.to_dict()), 200 if result.is_edit else 201
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except (temperature_service.TemperatureError, daily_document_service.SubmissionError) as exc:
        return _temperature_error(exc)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to save temperature check")
        return jsonify({"error": "Internal server error"}), 500


@temperature_bp.get("/days")
@require_auth
@require_admin
@require_store_access
def list_days(store_id: str):
    limit = request.args.get("limit", 90, type=int)
    return jsonify(temperature_service.list_days(store_id, limit=limit)), 200


@temperature_bp.get("/days/<day_key>")
@require_auth
@require_store_access
def get_day(store_id: str, day_key: str):
    return jsonify(temperature_service.get_day_view(store_id, day_key)), 200


@temperature_bp.get("/days/<day_key>/alerts")
@require_auth
@require_admin
@require_store_access
def day_alerts(store_id: str, day_key: str):
    store = store_service.get_store(store_id)
    if not store:
        return jsonify({"error": "Store not found"}), 404
    alerts = signal_service.todays_temperature_alerts(store_id, day_key, store.temperature_equipment)
    return jsonify(alerts), 200


@temperature_bp.post("/days/<day_key>/read")
@require_auth
@require_admin
@require_store_access
def mark_read(store_id: str, day_key: str):
    try:
        day = daily_document_service.mark_temperature_day_read(store_id, day_key)
        return jsonify(day.to_dict()), 200
    except daily_document_service.SubmissionError as exc:
        return _temperature_error(exc)


@temperature_bp.post("/days/<day_key>/confirm")
@require_auth
@require_admin
@require_store_access
def confirm_review(store_id: str, day_key: str):
    try:
        day = daily_document_service.confirm_temperature_day(store_id, day_key)
        return jsonify(day.to_dict()), 200
    except daily_document_service.SubmissionError as exc:
        return _temperature_error(exc)
