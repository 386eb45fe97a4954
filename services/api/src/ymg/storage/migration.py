"""One-shot migration of a user's locally staged game state into the hosted backend.

Rules:
- Writes run strictly one after another, in a fixed order
- Local copies are removed only after every write succeeded
- Any failure aborts the run with MigrationError and leaves local data intact,
  so the migration can simply be retried (hosted updates overwrite, referral
  creation returns the existing row for a repeated pair)
- Nothing already written to the hosted backend is rolled back
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ymg.storage.errors import MigrationError
from ymg.storage.local import (
    CLAN_KEY,
    POWER_UPS_KEY,
    PROFILE_KEY,
    REFERRALS_KEY,
    SETTINGS_KEY,
    STATISTICS_KEY,
    LocalStore,
    has_staged_data,
    read_json,
    staged_keys,
)
from ymg.storage.protocol import Clan, PowerUp, Referral

if TYPE_CHECKING:
    from ymg.storage.hosted import HostedBackend
    from ymg.storage.selector import StorageSelector

logger = logging.getLogger(__name__)


class DataMigration:
    """Copies staged local data for one user into the hosted backend."""

    def __init__(self, hosted: HostedBackend, local_store: LocalStore) -> None:
        self._hosted = hosted
        self._local = local_store

    async def has_local_data(self, user_id: str) -> bool:
        """True when any staging key exists for the user."""
        return await has_staged_data(self._local, user_id)

    async def migrate_user_data(self, user_id: str) -> None:
        """
        Transfer profile, settings, statistics, power-ups, owned clan and
        referrals made by the user, then clear the local copies.

        Raises:
            MigrationError: If any hosted write (or staged record) fails. No
                local key is removed in that case.
        """
        logger.info("Migrating local data for user %s", user_id)
        try:
            await self._transfer(user_id)
        except Exception as exc:
            logger.error("Error during data migration for user %s: %s", user_id, exc)
            raise MigrationError(user_id, exc) from exc

        await self._clear_local_data(user_id)
        logger.info("Successfully migrated data for user %s to hosted storage", user_id)

    async def _read_object(self, key: str) -> dict[str, Any] | None:
        value = await read_json(self._local, key)
        if value is None:
            return None
        if not isinstance(value, dict):
            logger.error("Ignoring %s: expected a JSON object", key)
            return None
        return value

    async def _read_list(self, key: str) -> list[Any]:
        value = await read_json(self._local, key)
        if value is None:
            return []
        if not isinstance(value, list):
            logger.error("Ignoring %s: expected a JSON array", key)
            return []
        return value

    async def _transfer(self, user_id: str) -> None:
        profile = await self._read_object(PROFILE_KEY.format(user_id=user_id))
        if profile:
            await self._hosted.update_user_profile(user_id, profile)

        settings = await self._read_object(SETTINGS_KEY.format(user_id=user_id))
        if settings:
            await self._hosted.update_game_settings(user_id, settings)

        statistics = await self._read_object(STATISTICS_KEY.format(user_id=user_id))
        if statistics:
            await self._hosted.update_statistics(user_id, statistics)

        # The hosted update is scoped to one power-up type, so one write per row.
        for item in await self._read_list(POWER_UPS_KEY.format(user_id=user_id)):
            power_up = PowerUp.model_validate(item)
            await self._hosted.update_power_up(
                user_id, power_up.type, power_up.quantity, power_up.last_purchased
            )

        clan_data = await self._read_object(CLAN_KEY.format(user_id=user_id))
        if clan_data:
            clan = Clan.model_validate(clan_data)
            if clan.owner_id == user_id:
                await self._hosted.update_clan(clan.id, clan)

        # Referrals are first created in the hosted system, not updated.
        for item in await self._read_list(REFERRALS_KEY.format(user_id=user_id)):
            referral = Referral.model_validate(item)
            if referral.referrer_id == user_id:
                await self._hosted.create_referral(referral.referrer_id, referral.referred_id)

    async def _clear_local_data(self, user_id: str) -> None:
        for key in staged_keys(user_id):
            try:
                await self._local.remove_item(key)
            except Exception:
                # Best effort: the hosted copy is already written.
                logger.exception("Error removing %s from local storage", key)


async def migrate_if_needed(selector: StorageSelector, local_store: LocalStore, user_id: str) -> bool:
    """
    Run the migration when hosted storage is active and the user has staged data.

    Returns True if a migration ran. Raises MigrationError if it failed.
    """
    if not selector.is_hosted_enabled():
        return False
    migration = DataMigration(selector.get_active_backend(), local_store)
    if not await migration.has_local_data(user_id):
        return False
    await migration.migrate_user_data(user_id)
    return True
