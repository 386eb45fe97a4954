"""Local staging store: per-user game state kept before the hosted backend is enabled.

Values are JSON text under flat keys, the same layout the web client uses
for its device storage (``game_statistics_<user id>`` and friends).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

import redis.asyncio as redis

logger = logging.getLogger(__name__)

PROFILE_KEY = "user_profile_{user_id}"
SETTINGS_KEY = "game_settings_{user_id}"
STATISTICS_KEY = "game_statistics_{user_id}"
POWER_UPS_KEY = "power_ups_{user_id}"
CLAN_KEY = "clan_{user_id}"
REFERRALS_KEY = "referrals_{user_id}"

STAGED_KEY_TEMPLATES = (
    PROFILE_KEY,
    SETTINGS_KEY,
    STATISTICS_KEY,
    POWER_UPS_KEY,
    CLAN_KEY,
    REFERRALS_KEY,
)


def staged_keys(user_id: str) -> list[str]:
    """All six staging keys for a user."""
    return [template.format(user_id=user_id) for template in STAGED_KEY_TEMPLATES]


@runtime_checkable
class LocalStore(Protocol):
    """Key/value store holding JSON text."""

    async def get_item(self, key: str) -> str | None:
        ...

    async def set_item(self, key: str, value: str) -> None:
        ...

    async def remove_item(self, key: str) -> None:
        ...


class RedisLocalStore:
    """LocalStore backed by Redis strings."""

    def __init__(self, client: redis.Redis, prefix: str = "") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "") -> RedisLocalStore:
        client = redis.from_url(  # type: ignore[no-untyped-call]
            url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=20,
        )
        return cls(client, prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get_item(self, key: str) -> str | None:
        value = await self._client.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set_item(self, key: str, value: str) -> None:
        await self._client.set(self._key(key), value)

    async def remove_item(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()


class InMemoryLocalStore:
    """Dict-backed LocalStore for development and tests."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    async def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


async def read_json(store: LocalStore, key: str) -> Any:  # noqa: ANN401
    """Decode a stored JSON value. Missing or unreadable values read as None."""
    raw = await store.get_item(key)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.error("Error reading %s from local storage: not valid JSON", key)
        return None


async def write_json(store: LocalStore, key: str, value: Any) -> None:  # noqa: ANN401
    await store.set_item(key, json.dumps(value, default=str))


async def has_staged_data(store: LocalStore, user_id: str) -> bool:
    """True when any staging key exists for the user."""
    for key in staged_keys(user_id):
        if await store.get_item(key):
            return True
    return False
