# backend/agrokasir/routes/system.py
"""System health endpoint (no authentication)."""

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__, url_prefix="/api/v1")


@system_bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except Exception:
        current_app.logger.exception("Database health check failed")
        return jsonify({"ok": False, "error": "Database error"}), 503
    return jsonify({"ok": True})
