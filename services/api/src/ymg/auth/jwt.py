"""
Hosted-auth JWT handling.

Access tokens are issued by the hosted auth service and signed with the
project's shared secret (HS256). ``sub`` carries the user id and ``aud`` is
"authenticated" for signed-in users.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from ymg.config import get_settings


def create_access_token(
    user_id: str,
    email: str = "",
    wallet_address: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    """
    Mint an access token shaped like the hosted auth service's.

    Used by tests and local tooling; production tokens come from hosted auth.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    if expires_in is None:
        expires_in = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
        "user_metadata": {"wallet_address": wallet_address} if wallet_address else {},
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or has no subject.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if not payload.get("sub"):
        msg = "Token has no subject"
        raise jwt.InvalidTokenError(msg)

    return payload


def parse_bearer(header: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
