# teacher_eval/core/security.py
from __future__ import annotations

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from teacher_eval.core.config import Settings

logger = logging.getLogger(__name__)


def password_matches(candidate: str | None, settings: Settings) -> bool:
    """Constant-time comparison against the shared admin password."""
    if not candidate:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), settings.ADMIN_PASSWORD.encode("utf-8"))


def create_admin_token(settings: Settings, expires_seconds: int | None = None) -> str:
    """
    Signed admin flag stored in the session cookie.
    'iat' as epoch seconds, 'exp' matching the cookie lifetime.
    """
    if expires_seconds is None:
        expires_seconds = settings.ADMIN_COOKIE_MAX_AGE

    now = datetime.now(timezone.utc)
    to_encode = {
        "adm": True,
        "iat": int(now.timestamp()),
        "exp": now + timedelta(seconds=expires_seconds),
    }
    return jwt.encode(to_encode, settings.SESSION_SECRET, algorithm=settings.SESSION_ALGORITHM)


def decode_admin_token(token: str, settings: Settings) -> dict[str, Any] | None:
    """
    Returns the claims of a valid admin token, None otherwise.
    """
    try:
        claims = jwt.decode(
            token,
            settings.SESSION_SECRET,
            algorithms=[settings.SESSION_ALGORITHM],
            options={"require": ["exp", "iat"], "verify_exp": True},
            leeway=5,
        )
    except jwt.ExpiredSignatureError:
        logger.info("Admin cookie expired")
        return None
    except jwt.InvalidTokenError:
        logger.warning("Admin cookie with invalid signature")
        return None
    if claims.get("adm") is not True:
        return None
    return claims


def is_admin_cookie(token: str | None, settings: Settings) -> bool:
    if not token:
        return False
    return decode_admin_token(token, settings) is not None
