"""Admin endpoints: role verification and game configuration.

Bodies are read by hand rather than through a pydantic body model so that a
malformed body yields the endpoint's own 400 message before any credential
check, which is the order the dashboard client relies on.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ymg.admin.schemas import (
    ErrorResponse,
    GameConfigResponse,
    GameConfigsResponse,
    UpdateGameConfigResponse,
    VerifyAdminRoleResponse,
)
from ymg.admin.service import (
    get_profile_for_wallet,
    get_profile_roles,
    is_admin,
    list_game_configs,
    upsert_game_config,
)
from ymg.auth.dependencies import authenticate
from ymg.dependencies import get_db
from ymg.middleware.error_handler import EndpointError

logger = structlog.get_logger()

router = APIRouter(prefix="/functions/v1", tags=["Admin"])

_ERRORS: dict[int | str, dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 500)
}


@asynccontextmanager
async def _internal_errors(event: str) -> AsyncIterator[None]:
    """Turn anything but an EndpointError into a 500 with a generic message."""
    try:
        yield
    except EndpointError:
        raise
    except Exception:
        logger.exception(event)
        raise EndpointError(500, "Internal server error") from None


async def _json_object(request: Request) -> dict[str, Any] | None:
    """Parsed JSON body when it is an object, otherwise None."""
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


async def _require_admin(db: AsyncSession, user_id: str) -> None:
    roles = await get_profile_roles(db, user_id)
    if roles is None:
        raise EndpointError(404, "User profile not found")
    if not is_admin(roles):
        logger.warning("admin_access_denied", user_id=user_id)
        raise EndpointError(403, "Forbidden: Admin access required")


@router.post("/verify-admin-role", response_model=VerifyAdminRoleResponse, responses=_ERRORS)
async def verify_admin_role(
    request: Request,
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> VerifyAdminRoleResponse:
    """Confirm the caller owns the claimed wallet and report whether they are an admin."""
    async with _internal_errors("admin_verification_error"):
        body = await _json_object(request)
        wallet_address = body.get("wallet_address") if body else None
        if not wallet_address or not isinstance(wallet_address, str):
            raise EndpointError(400, "Invalid wallet address")

        user_id = authenticate(authorization)
        profile = await get_profile_for_wallet(db, user_id, wallet_address)
        if profile is None:
            logger.warning("wallet_verification_failed", user_id=user_id)
            raise EndpointError(403, "Wallet address verification failed")

        admin = is_admin(profile.roles)
        logger.info("admin_role_verified", user_id=user_id, is_admin=admin)
        return VerifyAdminRoleResponse(is_admin=admin, user_id=user_id, wallet_address=wallet_address)


@router.get("/admin-get-game-configs", response_model=GameConfigsResponse, responses=_ERRORS)
async def admin_get_game_configs(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> GameConfigsResponse:
    """List every game configuration entry, ordered by key."""
    async with _internal_errors("admin_get_configs_error"):
        user_id = authenticate(authorization)
        await _require_admin(db, user_id)
        try:
            configs = await list_game_configs(db)
        except SQLAlchemyError as e:
            logger.error("game_configs_fetch_failed", error=str(e))
            raise EndpointError(500, "Failed to fetch configurations") from e
        return GameConfigsResponse(
            configs=[GameConfigResponse.model_validate(c) for c in configs],
            timestamp=datetime.now(timezone.utc),
        )


@router.post("/admin-update-game-config", response_model=UpdateGameConfigResponse, responses=_ERRORS)
async def admin_update_game_config(
    request: Request,
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> UpdateGameConfigResponse:
    """Create or replace one game configuration value."""
    async with _internal_errors("admin_update_config_error"):
        body = await _json_object(request)
        key = body.get("key") if body else None
        if not key or not isinstance(key, str):
            raise EndpointError(400, "Invalid configuration key")
        if "value" not in body:
            raise EndpointError(400, "Configuration value is required")

        user_id = authenticate(authorization)
        await _require_admin(db, user_id)
        try:
            config = await upsert_game_config(db, key, body["value"], user_id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("game_config_update_failed", key=key, error=str(e))
            raise EndpointError(500, "Failed to update configuration") from e
        return UpdateGameConfigResponse(
            success=True,
            config=GameConfigResponse.model_validate(config),
            timestamp=datetime.now(timezone.utc),
        )
