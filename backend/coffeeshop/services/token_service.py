# Overview: Signed HS256 access tokens carrying user id, email and role.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from ..exceptions import AuthError

ALGORITHM = "HS256"


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def issue_token(user_id: int, email: str, role: str, *, now: datetime | None = None) -> str:
    cfg = current_app.config
    issued = now or datetime.now(timezone.utc)
    claims = {
        "id": user_id,
        "email": email,
        "role": role,
        "iat": issued,
        "exp": issued + timedelta(hours=cfg["JWT_EXPIRES_HOURS"]),
        "iss": cfg["JWT_ISSUER"],
    }
    return jwt.encode(claims, cfg["JWT_SECRET"], algorithm=ALGORITHM)


def decode_token(token: str) -> Identity:
    """Verify signature, expiry and issuer; raises AuthError on any failure."""
    cfg = current_app.config
    try:
        claims = jwt.decode(
            token,
            cfg["JWT_SECRET"],
            algorithms=[ALGORITHM],
            issuer=cfg["JWT_ISSUER"],
            options={"require": ["exp", "iss"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token")

    try:
        return Identity(id=int(claims["id"]), email=str(claims["email"]), role=str(claims["role"]))
    except (KeyError, TypeError, ValueError):
        raise AuthError("Invalid token")
