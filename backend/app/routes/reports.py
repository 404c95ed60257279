from flask import Blueprint, Response, jsonify, request

from app.decorators import require_admin, require_auth, require_store_access
from app.services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/stores/<store_id>/reports")


def _report_error(exc: Exception):
    status = 404 if "not found" in str(exc).lower() else 400
    return jsonify({"error": str(exc)}), status


@reports_bp.get("")
@require_auth
@require_admin
@require_store_access
def stock_report(store_id: str):
    mode = request.args.get("mode", reporting_service.MODE_WEEKLY)
    anchor = request.args.get("anchor")
    if not anchor:
        return jsonify({"error": "anchor is required"}), 400

    try:
        report = reporting_service.build_report(store_id=store_id, mode=mode, anchor=anchor)
        return jsonify(reporting_service.report_to_dict(report)), 200
    except reporting_service.ReportError as exc:
        return _report_error(exc)


@reports_bp.get("/export")
@require_auth
@require_admin
@require_store_access
def export_report(store_id: str):
    """
    Download the report as CSV.

    Query params:
    - mode: WEEKLY | MONTHLY
    - anchor: YYYY-MM-DD
    - kind: summary | detailed (default summary)
    """
    mode = request.args.get("mode", reporting_service.MODE_WEEKLY)
    anchor = request.args.get("anchor")
    kind = request.args.get("kind", "summary")
    if not anchor:
        return jsonify({"error": "anchor is required"}), 400

    try:
        if kind == "summary":
            filename, body = reporting_service.summary_csv(store_id=store_id, mode=mode, anchor=anchor)
        elif kind == "detailed":
            filename, body = reporting_service.detailed_csv(store_id=store_id, mode=mode, anchor=anchor)
        else:
            return jsonify({"error": "kind must be summary or detailed"}), 400
    except reporting_service.ReportError as exc:
        return _report_error(exc)

    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
