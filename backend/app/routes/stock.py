# Overview: Flask API routes for end-of-shift stock submissions and current stock.

from flask import Blueprint, current_app, g, jsonify, request

from app.decorators import require_admin, require_auth, require_store_access
from app.extensions import db
from app.models import CurrentStock
from app.services import daily_document_service
from app.validation import ValidationError


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stores/<store_id>/stock")


def _submission_error(exc: Exception):
    message = str(exc)
    lowered = message.lower()
    status = 404 if ("not found" in lowered or lowered.startswith("no ")) else 400
    return jsonify({"error": message}), status


@stock_bp.post("/submissions")
@require_auth
@require_store_access
def submit_stock(store_id: str):
    """
    Submit (or edit) the stock count for a day.

    Request body:
    {
        "items": {item_id: {"quantity": number, "unit": str?}},
        "day_key": "YYYY-MM-DD" (optional, defaults to today in the store's timezone)
    }

    Returns:
        201: First submission for the day
        200: Edit of an existing submission (a revision was recorded)
        400: Missing or invalid quantities
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400
    try:
        result = daily_document_service.submit_stock(
            store_id,
            g.current_user,
            data.get("items") or {},
            day_key=data.get("day_key"),
        )
        return jsonify(result.to_dict()), 200 if result.is_edit else 201
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except daily_document_service.SubmissionError as exc:
        return _submission_error(exc)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to submit stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.get("/submissions")
@require_auth
@require_admin
@require_store_access
def list_submissions(store_id: str):
    limit = request.args.get("limit", 100, type=int)
    submissions = daily_document_service.list_stock_submissions(store_id, limit=limit)
    return jsonify([s.to_dict() for s in submissions]), 200


@stock_bp.get("/submissions/<day_key>")
@require_auth
@require_admin
@require_store_access
def get_submission(store_id: str, day_key: str):
    try:
        detail = daily_document_service.get_submission_detail(store_id, day_key)
        return jsonify(detail), 200
    except daily_document_service.SubmissionError as exc:
        return _submission_error(exc)


@stock_bp.get("/submissions/<day_key>/summary")
@require_auth
@require_admin
@require_store_access
def daily_summary(store_id: str, day_key: str):
    return jsonify(daily_document_service.get_daily_summary(store_id, day_key)), 200


@stock_bp.post("/submissions/<day_key>/read")
@require_auth
@require_admin
@require_store_access
def mark_read(store_id: str, day_key: str):
    try:
        submission = daily_document_service.mark_stock_submission_read(store_id, day_key)
        return jsonify(submission.to_dict()), 200
    except daily_document_service.SubmissionError as exc:
        return _submission_error(exc)


@stock_bp.post("/submissions/<day_key>/confirm")
@require_auth
@require_admin
@require_store_access
def confirm_review(store_id: str, day_key: str):
    try:
        submission = daily_document_service.confirm_stock_submission(store_id, day_key)
        return jsonify(submission.to_dict()), 200
    except daily_document_service.SubmissionError as exc:
        return _submission_error(exc)


@stock_bp.get("/current")
@require_auth
@require_store_access
def current_stock(store_id: str):
    rows = (
        db.session.query(CurrentStock)
        .filter_by(store_id=store_id)
        .order_by(CurrentStock.item_id.asc())
        .all()
    )
    return jsonify([row.to_dict() for row in rows]), 200
