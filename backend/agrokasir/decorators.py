# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import ApiError, error_response
from .extensions import db
from .models import User
from .permissions import is_allowed
from .services import token_service


def _is_authenticated() -> bool:
    return hasattr(g, "current_user")


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object (role as stored now)
    - g.token: The verified TokenContext

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - User missing or deactivated
    Returns 500 when no signing secret is configured.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        try:
            context = token_service.verify_token(token)
        except ApiError as e:
            return error_response(e)

        user = db.session.get(User, context.user_id)
        if user is None or not user.is_active:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = user
        g.token = context

        return f(*args, **kwargs)

    return decorated_function


def require_permission(action: str):
    """Require the current user's role to allow `action`."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not is_allowed(g.current_user.role, action):
                return jsonify({
                    "error": "Forbidden",
                    "requiredPermission": action,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
