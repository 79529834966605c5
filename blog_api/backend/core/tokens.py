from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import UUID

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

from blog_api.backend.core.config import settings
from blog_api.backend.core.errors import AccessTokenExpired, InvalidAccessToken

# 40 random bytes -> 80 hex chars for the refresh token value,
# 16 bytes for the family id shared along one rotation chain
REFRESH_TOKEN_BYTES = 40
FAMILY_BYTES = 16


@dataclass(frozen=True, slots=True)
class Identity:
    """Claims carried by a verified access token."""

    user_id: UUID
    role: str


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _make_jwt(payload: Dict[str, Any], secret: str, exp: datetime) -> str:
    to_encode = payload.copy()
    to_encode["iat"] = int(_utcnow().timestamp())
    to_encode["exp"] = int(exp.timestamp())
    return jwt.encode(to_encode, secret, algorithm=settings.jwt_algorithm)


# ---- Access Token ----
def create_access_token(user_id: UUID, role: str, expires_delta: timedelta | None = None) -> str:
    ttl = expires_delta if expires_delta is not None else timedelta(
        minutes=settings.access_token_expire_minutes
    )
    payload = {"sub": str(user_id), "role": str(role), "typ": "access"}
    return _make_jwt(payload, settings.jwt_secret_key, _utcnow() + ttl)


def verify_access_token(token: str) -> Identity:
    """Fails closed: any malformed, tampered, mistyped or expired token raises."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise AccessTokenExpired()
    except JWTError:
        raise InvalidAccessToken()

    if payload.get("typ") != "access":
        raise InvalidAccessToken("Invalid token type")
    try:
        return Identity(user_id=UUID(str(payload["sub"])), role=str(payload["role"]))
    except (KeyError, ValueError):
        raise InvalidAccessToken("Malformed token payload")


# ---- Refresh Token (opaque, rotated) ----
def new_refresh_token_value() -> str:
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def new_family_id() -> str:
    return secrets.token_hex(FAMILY_BYTES)


def sha256_hex(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()
