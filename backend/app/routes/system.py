# Overview: Liveness probe reporting database reachability and document counts.

import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import StockSubmission, Store, TemperatureLog
from app.time_utils import to_utc_z, utcnow


system_bp = Blueprint("system", __name__)

COUNTED_TABLES = (
    ("stores", Store),
    ("stock_submissions", StockSubmission),
    ("temperature_days", TemperatureLog),
)


def database_status() -> dict:
    """Row counts of the main tables, or an error marker if the DB is unreachable."""
    started = time.perf_counter()
    try:
        details = {name: db.session.query(model).count() for name, model in COUNTED_TABLES}
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            "error": "Database error",
        }

    return {
        "status": "healthy",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "details": details,
    }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database = database_status()
    healthy = database["status"] == "healthy"
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }
    return body, 200 if healthy else 503
