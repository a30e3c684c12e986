# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# backend/agrokasir/routes/admin.py
"""
Admin routes: back-office accounts and the login audit trail.

All endpoints require authentication and an ADMIN-only action.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import ApiError, ConflictError, ValidationError, error_response
from ..permissions import Action, DEFAULT_ROLE
from ..services import auth_service
from ..validation import json_body
from ..decorators import require_auth, require_permission

admin_bp = Blueprint("admin", __name__, url_prefix="/api/v1")


# =============================================================================
# USER MANAGEMENT
# =============================================================================

@admin_bp.get("/users")
@require_auth
@require_permission(Action.MANAGE_USERS)
def list_users():
    return jsonify([u.to_dict() for u in auth_service.list_users()])


@admin_bp.post("/users")
@require_auth
@require_permission(Action.MANAGE_USERS)
def create_user_route():
    """
    Create a user.

    Body: {username, password, name?, role? (ADMIN|VIEWER, default VIEWER)}
    """
    try:
        data = json_body()
        user = auth_service.create_user(
            data.get("username"),
            data.get("password"),
            name=data.get("name"),
            role=data.get("role") or DEFAULT_ROLE,
        )
    except ApiError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("User creation failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(user.to_dict()), 201


@admin_bp.patch("/users/<int:user_id>")
@require_auth
@require_permission(Action.MANAGE_USERS)
def update_user_route(user_id: int):
    """
    Update name, role, active flag or password.

    Body: {name?, role?, isActive?, password?}
    """
    allowed = {"name", "role", "isActive", "password"}

    try:
        data = json_body()
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise ValidationError(f"Field not allowed: {unknown[0]}")

        patch = {}
        if "name" in data:
            if not isinstance(data["name"], str) or not data["name"].strip():
                raise ValidationError("name cannot be blank")
            patch["name"] = data["name"].strip()
        if "role" in data:
            patch["role"] = data["role"]
        if "isActive" in data:
            if not isinstance(data["isActive"], bool):
                raise ValidationError("isActive must be true or false")
            patch["is_active"] = data["isActive"]

        user = auth_service.update_user(user_id, patch=patch, password=data.get("password"))
    except ApiError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("User update failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(user.to_dict())


@admin_bp.delete("/users/<int:user_id>")
@require_auth
@require_permission(Action.MANAGE_USERS)
def delete_user_route(user_id: int):
    try:
        if user_id == g.current_user.id:
            raise ConflictError("Cannot delete your own account")
        auth_service.delete_user(user_id)
    except ApiError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("User delete failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True})


# =============================================================================
# LOGIN AUDIT
# =============================================================================

@admin_bp.get("/audits/login")
@require_auth
@require_permission(Action.VIEW_LOGIN_AUDIT)
def list_login_audits():
    """Most recent login attempts, newest first (at most LOGIN_AUDIT_LIMIT)."""
    cap = current_app.config["LOGIN_AUDIT_LIMIT"]
    limit = request.args.get("limit", type=int) or cap
    limit = max(1, min(limit, cap))
    return jsonify([a.to_dict() for a in auth_service.list_login_audits(limit)])
