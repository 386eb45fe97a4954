"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Header

from ymg.auth.jwt import parse_bearer, verify_token
from ymg.middleware.error_handler import EndpointError


def authenticate(authorization: str | None) -> str:
    """
    Verify an Authorization header value and return the caller's user id.

    Raises:
        EndpointError: 401 when the header is missing or the token is invalid.
    """
    if not authorization:
        raise EndpointError(401, "Missing authorization header")
    token = parse_bearer(authorization)
    if token is None:
        raise EndpointError(401, "Unauthorized", "Invalid token")
    try:
        payload = verify_token(token)
    except jwt.InvalidTokenError as e:
        raise EndpointError(401, "Unauthorized", str(e) or "Invalid token") from e
    return str(payload["sub"])


async def get_current_user_id(authorization: str | None = Header(default=None)) -> str:
    """Authenticated user id for the request (FastAPI dependency)."""
    return authenticate(authorization)
