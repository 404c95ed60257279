# backend/app/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/shiftcheck.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shiftcheck.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Day keys are local calendar dates; stores without a timezone fall back to this
    DEFAULT_TIMEZONE = os.environ.get("DEFAULT_TIMEZONE", "UTC")

    REPORT_TOP_PROBLEMS_LIMIT = int(os.environ.get("REPORT_TOP_PROBLEMS_LIMIT", "12"))
    TEMPERATURE_UNIT = os.environ.get("TEMPERATURE_UNIT", "°C")
