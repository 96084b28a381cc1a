"""
Bearer-token authentication helpers.

Access tokens are short-lived HS256 JWTs issued by /auth/login and
/auth/register. The `sub` claim is the user id; the `role` claim is
informational only, deps.py re-reads the role from the profile on every
request so promotions and demotions take effect immediately.
"""
import logging
from datetime import datetime, timezone, timedelta
from fastapi import HTTPException, Header
from typing import Optional

import jwt

from config import settings
from domain.errors import UnauthorizedError

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _require_secret() -> str:
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    return settings.jwt_secret


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def decode_access_token(token: str) -> dict:
    secret = _require_secret()
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid access token.")


def issue_access_token(*, user_id: str, role: str) -> tuple[str, int]:
    """Return (token, expires_in_seconds)."""
    secret = _require_secret()
    now = _now_utc()
    ttl = timedelta(minutes=settings.jwt_access_ttl_minutes)
    exp = now.replace(microsecond=0) + ttl
    payload = {
        "iss": settings.jwt_issuer,
        "sub": user_id,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256"), int(ttl.total_seconds())


async def get_token_subject(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Optional[str]:
    """User id from a bearer token, or None when no token was sent."""
    token = _parse_bearer_token(authorization)
    if not token:
        return None
    payload = decode_access_token(token)
    return payload.get("sub")


async def require_token_subject(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> str:
    subject = await get_token_subject(authorization=authorization)
    if not subject:
        raise UnauthorizedError("Authentication required. Provide Authorization: Bearer <token>.")
    return subject
