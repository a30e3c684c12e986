# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/agrokasir/routes/auth.py
"""
Authentication API routes

- POST /auth/login exchanges username/password for a bearer token
- GET /auth/me returns the verified claims of the caller
Every login attempt is written to the login audit.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import ApiError, UnauthorizedError, error_response
from ..validation import json_body
from ..extensions import db
from ..models import User
from ..services import auth_service
from ..services import token_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue a session token.

    Returns {token, role, name, username}.
    """
    username = None
    ip_address = request.remote_addr
    user_agent = request.headers.get("User-Agent")

    try:
        data = json_body()
        username = data.get("username")
        password = data.get("password")
        user = auth_service.authenticate(username, password)
        token = token_service.issue_token(user)
        auth_service.mark_login(user)
    except UnauthorizedError as e:
        known = db.session.query(User).filter_by(username=str(username).strip()).first()
        current_app.logger.warning("login_failed username=%s ip=%s", username, ip_address)
        auth_service.record_login_audit(
            username=str(username),
            user=known,
            success=False,
            ip=ip_address,
            user_agent=user_agent,
        )
        return error_response(e)
    except ApiError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Login failed unexpectedly")
        return jsonify({"error": "Internal server error"}), 500

    auth_service.record_login_audit(
        username=user.username,
        user=user,
        success=True,
        ip=ip_address,
        user_agent=user_agent,
    )

    return jsonify({
        "token": token,
        "role": user.role,
        "name": user.name,
        "username": user.username,
    })


@auth_bp.get("/me")
@require_auth
def me_route():
    """Claims of the current token, with the role as currently stored."""
    claims = g.token.to_dict()
    claims["role"] = g.current_user.role
    return jsonify(claims)
