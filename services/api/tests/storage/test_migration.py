"""Tests for migrating staged local data into hosted storage."""

import json
from unittest.mock import AsyncMock

import pytest

from ymg.storage import (
    DataMigration,
    HostedBackend,
    InMemoryLocalStore,
    MigrationError,
    StorageSelector,
    StorageType,
    migrate_if_needed,
    staged_keys,
)

pytestmark = pytest.mark.asyncio

USER = "42"


def _stage(store: InMemoryLocalStore, user_id: str = USER) -> None:
    store.items.update(
        {
            f"user_profile_{user_id}": json.dumps({"id": user_id, "username": "yo-mama", "walletAddress": "0x42"}),
            f"game_settings_{user_id}": json.dumps({"userId": user_id, "theme": "dark", "preferences": {"sound": False}}),
            f"game_statistics_{user_id}": json.dumps({"userId": user_id, "totalClicks": 50, "streakCount": 4}),
            f"power_ups_{user_id}": json.dumps(
                [{"type": "double_click", "quantity": 3}, {"type": "auto_clicker", "quantity": 1}]
            ),
            f"clan_{user_id}": json.dumps({"id": "clan-1", "name": "Jokers", "ownerId": user_id, "members": ["7"]}),
            f"referrals_{user_id}": json.dumps(
                [
                    {"referrerId": user_id, "referredId": "7", "status": "pending"},
                    {"referrerId": "99", "referredId": user_id, "status": "pending"},
                ]
            ),
        }
    )


async def test_staged_statistics_reach_hosted_and_keys_are_removed(
    hosted: HostedBackend, local_store: InMemoryLocalStore
) -> None:
    local_store.items[f"game_statistics_{USER}"] = json.dumps({"totalClicks": 50})

    await DataMigration(hosted, local_store).migrate_user_data(USER)

    assert (await hosted.get_statistics(USER)).total_clicks == 50
    assert local_store.items == {}


async def test_full_migration(hosted: HostedBackend, local_store: InMemoryLocalStore) -> None:
    _stage(local_store)
    migration = DataMigration(hosted, local_store)
    assert await migration.has_local_data(USER) is True

    await migration.migrate_user_data(USER)

    profile = await hosted.get_user_profile(USER)
    assert profile.username == "yo-mama"
    assert profile.wallet_address == "0x42"
    assert (await hosted.get_game_settings(USER)).theme == "dark"
    assert (await hosted.get_statistics(USER)).streak_count == 4
    assert {p.type: p.quantity for p in await hosted.get_power_ups(USER)} == {"double_click": 3, "auto_clicker": 1}
    clan = await hosted.get_clan("clan-1")
    assert clan.owner_id == USER
    assert set(clan.members) == {USER, "7"}
    # Only referrals made by the user are created.
    referrals = await hosted.get_referrals(USER)
    assert [(r.referrer_id, r.referred_id) for r in referrals] == [(USER, "7")]

    assert await migration.has_local_data(USER) is False
    assert all(key not in local_store.items for key in staged_keys(USER))


async def test_clan_owned_by_someone_else_is_skipped(hosted: HostedBackend, local_store: InMemoryLocalStore) -> None:
    local_store.items[f"clan_{USER}"] = json.dumps({"id": "clan-2", "name": "Others", "ownerId": "7"})

    await DataMigration(hosted, local_store).migrate_user_data(USER)

    assert await hosted.get_clan("clan-2") is None
    assert f"clan_{USER}" not in local_store.items


async def test_retry_after_success_is_harmless(hosted: HostedBackend, local_store: InMemoryLocalStore) -> None:
    _stage(local_store)
    await DataMigration(hosted, local_store).migrate_user_data(USER)
    _stage(local_store)
    await DataMigration(hosted, local_store).migrate_user_data(USER)

    assert len(await hosted.get_referrals("7")) == 1
    assert len(await hosted.get_power_ups(USER)) == 2


async def test_failure_keeps_local_data(hosted: HostedBackend, local_store: InMemoryLocalStore) -> None:
    _stage(local_store)
    before = dict(local_store.items)
    hosted.update_power_up = AsyncMock(side_effect=RuntimeError("connection reset"))

    with pytest.raises(MigrationError) as exc_info:
        await DataMigration(hosted, local_store).migrate_user_data(USER)

    assert exc_info.value.user_id == USER
    assert USER in str(exc_info.value)
    assert "connection reset" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert local_store.items == before
    # Writes before the failure are not rolled back.
    assert (await hosted.get_statistics(USER)).total_clicks == 50


async def test_write_order(local_store: InMemoryLocalStore) -> None:
    _stage(local_store)
    hosted = AsyncMock(spec=HostedBackend)
    calls: list[str] = []
    for name in ("update_user_profile", "update_game_settings", "update_statistics", "update_power_up",
                 "update_clan", "create_referral"):
        getattr(hosted, name).side_effect = lambda *args, _name=name, **kwargs: calls.append(_name)

    await DataMigration(hosted, local_store).migrate_user_data(USER)

    assert calls == [
        "update_user_profile",
        "update_game_settings",
        "update_statistics",
        "update_power_up",
        "update_power_up",
        "update_clan",
        "create_referral",
    ]


async def test_malformed_staged_value_is_ignored(hosted: HostedBackend, local_store: InMemoryLocalStore) -> None:
    local_store.items[f"game_statistics_{USER}"] = "{not json"
    local_store.items[f"power_ups_{USER}"] = json.dumps({"type": "not-a-list"})

    await DataMigration(hosted, local_store).migrate_user_data(USER)

    assert await hosted.get_statistics(USER) is None
    assert await hosted.get_power_ups(USER) == []
    assert local_store.items == {}


async def test_removal_failure_does_not_fail_migration(hosted: HostedBackend) -> None:
    store = InMemoryLocalStore({f"game_statistics_{USER}": json.dumps({"totalClicks": 5})})
    store.remove_item = AsyncMock(side_effect=OSError("disk full"))

    await DataMigration(hosted, store).migrate_user_data(USER)

    assert (await hosted.get_statistics(USER)).total_clicks == 5
    assert store.remove_item.await_count == len(staged_keys(USER))


class TestMigrateIfNeeded:
    async def test_local_selector_skips(self, hosted: HostedBackend, local_store: InMemoryLocalStore) -> None:
        _stage(local_store)
        selector = StorageSelector(lambda: hosted, StorageType.LOCAL)
        assert await migrate_if_needed(selector, local_store, USER) is False
        assert f"game_statistics_{USER}" in local_store.items

    async def test_nothing_staged(self, selector: StorageSelector, local_store: InMemoryLocalStore) -> None:
        assert await migrate_if_needed(selector, local_store, USER) is False

    async def test_runs_when_hosted(
        self, selector: StorageSelector, hosted: HostedBackend, local_store: InMemoryLocalStore
    ) -> None:
        _stage(local_store)
        assert await migrate_if_needed(selector, local_store, USER) is True
        assert (await hosted.get_statistics(USER)).total_clicks == 50
