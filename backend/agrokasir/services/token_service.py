# Overview: Session token issue/verify (signed JWT bearer tokens).

"""
Tokens are stateless HS256 JWTs carrying sub (user id), role, name and
username. They expire after JWT_EXPIRES_HOURS. The role claim is
informational; request authorization re-reads the role from the users
table.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from ..errors import ServerMisconfiguredError, UnauthorizedError
from ..models import User


@dataclass(frozen=True)
class TokenContext:
    user_id: int
    role: str
    name: str
    username: str
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "sub": self.user_id,
            "role": self.role,
            "name": self.name,
            "username": self.username,
            "exp": int(self.expires_at.timestamp()),
        }


def _secret() -> str:
    secret = current_app.config.get("JWT_SECRET")
    if not secret:
        current_app.logger.error("JWT_SECRET is not configured")
        raise ServerMisconfiguredError("Server misconfigured")
    return secret


def issue_token(user: User) -> str:
    """Create a signed session token for `user`."""
    secret = _secret()
    expire = datetime.now(timezone.utc) + timedelta(hours=current_app.config["JWT_EXPIRES_HOURS"])
    claims = {
        "sub": str(user.id),
        "role": user.role,
        "name": user.name,
        "username": user.username,
        "exp": expire,
    }
    return jwt.encode(claims, secret, algorithm=current_app.config["JWT_ALGORITHM"])


def verify_token(token: str) -> TokenContext:
    """
    Verify signature and expiry and return the claims.

    Raises:
        UnauthorizedError: token invalid, expired or missing claims
        ServerMisconfiguredError: no signing secret configured
    """
    secret = _secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[current_app.config["JWT_ALGORITHM"]])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError("Invalid token")

    return TokenContext(
        user_id=user_id,
        role=payload.get("role", ""),
        name=payload.get("name", ""),
        username=payload.get("username", ""),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
