# Overview: Request identity and access decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import User


IDENTITY_HEADER = "X-User-Id"


def _is_authenticated() -> bool:
    return hasattr(g, "current_user") and g.current_user is not None


def require_auth(f):
    """
    Resolve the upstream identity into g.current_user.

    Authentication happens before the request reaches us; the upstream
    layer forwards the profile id in the X-User-Id header.

    Returns 401 if:
    - No identity header
    - Header is not a profile id
    - Profile missing or disabled
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = (request.headers.get(IDENTITY_HEADER) or "").strip()
        if not raw:
            return jsonify({"error": "Authentication required"}), 401

        try:
            user_id = int(raw)
        except ValueError:
            return jsonify({"error": "Invalid identity"}), 401

        user = db.session.query(User).filter_by(id=user_id).first()
        if not user or not user.is_active:
            return jsonify({"error": "Invalid or disabled user"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Admin-only endpoints. Must run after @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401
        if not g.current_user.is_admin:
            return jsonify({"error": "Admin access required"}), 403
        return f(*args, **kwargs)

    return decorated_function


def require_store_access(f):
    """
    Reject actions on stores outside the user's grants.

    Reads store_id from the URL. Must run after @require_auth.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401

        store_id = kwargs.get("store_id")
        if store_id is None:
            return jsonify({"error": "store_id is required"}), 400
        if not g.current_user.can_access_store(store_id):
            return jsonify({"error": "No access to this store"}), 403

        return f(*args, **kwargs)

    return decorated_function
