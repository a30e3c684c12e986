from __future__ import annotations

from ..extensions import db
from agrokasir.time_utils import to_utc_z


class User(db.Model):
    """
    Back-office account.

    role is one of permissions.ROLES. The role is read from this row on
    every request, so a demotion takes effect before the token expires.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(128), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default="VIEWER")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "lastLoginAt": to_utc_z(self.last_login_at),
        }


class LoginAudit(db.Model):
    """
    One row per login attempt.

    IMMUTABLE: Never update or delete. user_id and role are null when the
    username did not resolve to an account.
    """
    __tablename__ = "login_audits"
    __table_args__ = (
        db.Index("ix_login_audits_at", "at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    username = db.Column(db.String(64), nullable=False)
    role = db.Column(db.String(16), nullable=True)
    success = db.Column(db.Boolean, nullable=False, default=False)

    # Client context
    ip = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "username": self.username,
            "role": self.role,
            "success": self.success,
            "ip": self.ip,
            "userAgent": self.user_agent,
            "at": to_utc_z(self.at),
        }
