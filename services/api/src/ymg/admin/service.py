"""Admin role checks and game configuration persistence."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select

from ymg.db.models import GameConfig, UserProfileRow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ADMIN_ROLE = "admin"


def is_admin(roles: list[str] | None) -> bool:
    """True when the role set carries the administrative role."""
    return ADMIN_ROLE in (roles or [])


async def get_profile_for_wallet(
    db: AsyncSession,
    user_id: str,
    wallet_address: str,
) -> UserProfileRow | None:
    """Profile owned by ``user_id`` whose wallet matches the claimed address."""
    result = await db.execute(
        select(UserProfileRow).where(
            UserProfileRow.id == user_id,
            UserProfileRow.wallet_address == wallet_address,
        )
    )
    return result.scalar_one_or_none()


async def get_profile_roles(db: AsyncSession, user_id: str) -> list[str] | None:
    """Role set of the user's profile, or None when there is no profile."""
    result = await db.execute(select(UserProfileRow.roles).where(UserProfileRow.id == user_id))
    row = result.first()
    if row is None:
        return None
    return list(row[0] or [])


async def list_game_configs(db: AsyncSession) -> list[GameConfig]:
    """All configuration rows ordered by key."""
    result = await db.execute(select(GameConfig).order_by(GameConfig.key))
    return list(result.scalars().all())


async def upsert_game_config(
    db: AsyncSession,
    key: str,
    value: Any,  # noqa: ANN401
    admin_user_id: str,
) -> GameConfig:
    """Update an existing configuration value or insert a new key."""
    now = datetime.now(timezone.utc)
    config = await db.get(GameConfig, key)
    if config is None:
        config = GameConfig(
            key=key,
            value=value,
            created_at=now,
            created_by=admin_user_id,
            updated_at=now,
            updated_by=admin_user_id,
        )
        db.add(config)
        action = "created"
    else:
        previous = config.value
        config.value = value
        config.updated_at = now
        config.updated_by = admin_user_id
        action = "updated"
        logger.info("admin_config_previous_value", key=key, previous=previous)
    await db.flush()
    logger.info("admin_config_change", action=action, key=key, admin_id=admin_user_id)
    return config
