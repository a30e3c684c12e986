# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication and user administration

Every action is attributable to a user. Uses bcrypt for secure password
hashing; session tokens are issued separately (see token_service.py).

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Every login attempt is recorded in login_audits, successful or not
- Inactive users cannot authenticate
"""

from __future__ import annotations

import logging

import bcrypt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from ..extensions import db
from ..models import LoginAudit, User
from ..permissions import DEFAULT_ROLE, ROLE_ADMIN, ROLES, is_valid_role
from agrokasir.time_utils import utcnow

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

USER_MUTABLE_FIELDS = {"name", "role", "is_active"}


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() compares in constant time.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def authenticate(username: str, password: str) -> User:
    """
    Check credentials.

    Raises UnauthorizedError for an unknown user, a wrong password or an
    inactive account, with one message for all three.
    """
    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        raise ValidationError("username and password are required")

    user = db.session.query(User).filter_by(username=username.strip()).first()
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid username or password")
    return user


def mark_login(user: User) -> None:
    user.last_login_at = utcnow()
    db.session.commit()


def record_login_audit(
    *,
    username: str,
    user: User | None,
    success: bool,
    ip: str | None,
    user_agent: str | None,
) -> None:
    """
    Append one login audit row.

    Best effort: a failed write is logged and dropped so that auditing can
    never block a login.
    """
    try:
        db.session.add(LoginAudit(
            user_id=user.id if user else None,
            username=(username or "")[:64],
            role=user.role if user else None,
            success=success,
            ip=(ip or None) and ip[:45],
            user_agent=(user_agent or None) and user_agent[:512],
            at=utcnow(),
        ))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        log.warning("login_audit_write_failed username=%s", username, exc_info=True)


def list_login_audits(limit: int) -> list[LoginAudit]:
    return (
        db.session.query(LoginAudit)
        .order_by(LoginAudit.at.desc(), LoginAudit.id.desc())
        .limit(limit)
        .all()
    )


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.username.asc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found", details={"userId": user_id})
    return user


def _check_role(role) -> None:
    if not is_valid_role(role):
        raise ValidationError(f"role must be one of {', '.join(ROLES)}")


def create_user(username: str, password: str, *, name: str | None = None, role: str = DEFAULT_ROLE) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: bad username, role or weak password
        ConflictError: username already taken
    """
    if not isinstance(username, str) or not username.strip():
        raise ValidationError("username is required")
    username = username.strip()
    if len(username) > 64:
        raise ValidationError("username exceeds max length 64")
    _check_role(role)

    if db.session.query(User).filter_by(username=username).first() is not None:
        raise ConflictError("Username already exists", details={"username": username})

    user = User(
        username=username,
        name=(name or "").strip() or username,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username already exists", details={"username": username})

    log.info("user_created user_id=%s username=%s role=%s", user.id, user.username, user.role)
    return user


def update_user(user_id: int, *, patch: dict, password: str | None = None) -> User:
    user = get_user(user_id)
    if "role" in patch:
        _check_role(patch["role"])

    for k, v in patch.items():
        if k in USER_MUTABLE_FIELDS:
            setattr(user, k, v)
    if password is not None:
        user.password_hash = hash_password(password)

    _ensure_active_admin_remains()
    db.session.commit()
    return user


def delete_user(user_id: int) -> None:
    user = get_user(user_id)
    db.session.delete(user)
    db.session.flush()
    _ensure_active_admin_remains()
    db.session.commit()
    log.info("user_deleted user_id=%s", user_id)


def _ensure_active_admin_remains() -> None:
    """Refuse changes that would leave the system without an active admin."""
    remaining = (
        db.session.query(User)
        .filter(User.role == ROLE_ADMIN, User.is_active.is_(True))
        .count()
    )
    if remaining == 0:
        db.session.rollback()
        raise ConflictError("At least one active ADMIN is required")


def seed_admin(username: str, password: str, name: str | None = None) -> tuple[User, bool]:
    """
    Create or refresh the admin account.

    An existing user with that username is promoted to ADMIN, reactivated
    and gets the new password. Returns (user, created).
    """
    user = db.session.query(User).filter_by(username=username).first()
    if user is None:
        return create_user(username, password, name=name, role=ROLE_ADMIN), True

    user.password_hash = hash_password(password)
    user.role = ROLE_ADMIN
    user.is_active = True
    if name:
        user.name = name
    db.session.commit()
    return user, False
