"""Admin endpoint tests: role verification and game configuration."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ymg.auth.jwt import create_access_token
from ymg.db.models import GameConfig

pytestmark = pytest.mark.asyncio

WALLET = "0xA11CE"


class TestVerifyAdminRole:
    async def test_admin_wallet_verified(self, client: AsyncClient, make_profile, auth_header) -> None:
        await make_profile("admin-1", wallet_address=WALLET, roles=["admin"])
        response = await client.post(
            "/functions/v1/verify-admin-role",
            json={"wallet_address": WALLET},
            headers=auth_header("admin-1"),
        )
        assert response.status_code == 200
        assert response.json() == {"isAdmin": True, "userId": "admin-1", "walletAddress": WALLET}

    async def test_regular_user_is_not_admin(self, client: AsyncClient, make_profile, auth_header) -> None:
        await make_profile("player-1", wallet_address=WALLET, roles=["player"])
        response = await client.post(
            "/functions/v1/verify-admin-role",
            json={"wallet_address": WALLET},
            headers=auth_header("player-1"),
        )
        assert response.status_code == 200
        assert response.json()["isAdmin"] is False

    async def test_wallet_mismatch(self, client: AsyncClient, make_profile, auth_header) -> None:
        await make_profile("admin-1", wallet_address=WALLET, roles=["admin"])
        response = await client.post(
            "/functions/v1/verify-admin-role",
            json={"wallet_address": "0xB0B"},
            headers=auth_header("admin-1"),
        )
        assert response.status_code == 403
        assert response.json() == {"error": "Wallet address verification failed"}

    async def test_missing_header(self, client: AsyncClient) -> None:
        response = await client.post("/functions/v1/verify-admin-role", json={"wallet_address": WALLET})
        assert response.status_code == 401
        assert response.json() == {"error": "Missing authorization header"}

    async def test_invalid_token(self, client: AsyncClient) -> None:
        response = await client.post(
            "/functions/v1/verify-admin-role",
            json={"wallet_address": WALLET},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401
        data = response.json()
        assert data["error"] == "Unauthorized"
        assert data["details"]

    async def test_expired_token(self, client: AsyncClient) -> None:
        token = create_access_token("admin-1", expires_in=timedelta(seconds=-5))
        response = await client.post(
            "/functions/v1/verify-admin-role",
            json={"wallet_address": WALLET},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized", "details": "Token has expired"}

    @pytest.mark.parametrize("body", [{}, {"wallet_address": ""}, {"wallet_address": 42}, ["0xA11CE"]])
    async def test_invalid_wallet_checked_before_auth(self, client: AsyncClient, body) -> None:
        response = await client.post("/functions/v1/verify-admin-role", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid wallet address"}

    async def test_non_json_body(self, client: AsyncClient, auth_header) -> None:
        response = await client.post(
            "/functions/v1/verify-admin-role",
            content=b"wallet=0xA11CE",
            headers=auth_header("admin-1"),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid wallet address"}


class TestGetGameConfigs:
    async def test_admin_gets_configs_ordered_by_key(
        self, client: AsyncClient, db_session: AsyncSession, make_profile, auth_header
    ) -> None:
        await make_profile("admin-1", roles=["admin"])
        db_session.add_all(
            [
                GameConfig(key="pvp_reward", value={"winner": 100}, description="PvP payouts"),
                GameConfig(key="click_multiplier", value=2),
            ]
        )
        await db_session.commit()

        response = await client.get("/functions/v1/admin-get-game-configs", headers=auth_header("admin-1"))
        assert response.status_code == 200
        data = response.json()
        assert [c["key"] for c in data["configs"]] == ["click_multiplier", "pvp_reward"]
        assert data["configs"][1]["value"] == {"winner": 100}
        assert data["configs"][1]["description"] == "PvP payouts"
        assert "timestamp" in data

    async def test_empty_configs(self, client: AsyncClient, make_profile, auth_header) -> None:
        await make_profile("admin-1", roles=["admin"])
        response = await client.get("/functions/v1/admin-get-game-configs", headers=auth_header("admin-1"))
        assert response.status_code == 200
        assert response.json()["configs"] == []

    async def test_non_admin_forbidden(self, client: AsyncClient, make_profile, auth_header) -> None:
        await make_profile("player-1", roles=[])
        response = await client.get("/functions/v1/admin-get-game-configs", headers=auth_header("player-1"))
        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden: Admin access required"}

    async def test_unknown_profile(self, client: AsyncClient, auth_header) -> None:
        response = await client.get("/functions/v1/admin-get-game-configs", headers=auth_header("ghost"))
        assert response.status_code == 404
        assert response.json() == {"error": "User profile not found"}

    async def test_missing_header(self, client: AsyncClient) -> None:
        response = await client.get("/functions/v1/admin-get-game-configs")
        assert response.status_code == 401
        assert response.json() == {"error": "Missing authorization header"}


class TestUpdateGameConfig:
    async def test_insert_then_update(
        self, client: AsyncClient, db_session: AsyncSession, make_profile, auth_header
    ) -> None:
        await make_profile("admin-1", roles=["admin"])
        await make_profile("admin-2", roles=["admin"])

        response = await client.post(
            "/functions/v1/admin-update-game-config",
            json={"key": "click_multiplier", "value": 2},
            headers=auth_header("admin-1"),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["config"]["value"] == 2
        assert data["config"]["created_by"] == "admin-1"

        response = await client.post(
            "/functions/v1/admin-update-game-config",
            json={"key": "click_multiplier", "value": 3},
            headers=auth_header("admin-2"),
        )
        assert response.status_code == 200
        config = response.json()["config"]
        assert config["value"] == 3
        assert config["created_by"] == "admin-1"
        assert config["updated_by"] == "admin-2"

        rows = (await db_session.execute(select(GameConfig))).scalars().all()
        assert len(rows) == 1

    async def test_null_value_allowed(self, client: AsyncClient, make_profile, auth_header) -> None:
        await make_profile("admin-1", roles=["admin"])
        response = await client.post(
            "/functions/v1/admin-update-game-config",
            json={"key": "event_banner", "value": None},
            headers=auth_header("admin-1"),
        )
        assert response.status_code == 200
        assert response.json()["config"]["value"] is None

    async def test_missing_key(self, client: AsyncClient) -> None:
        response = await client.post("/functions/v1/admin-update-game-config", json={"value": 1})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid configuration key"}

    async def test_missing_value(self, client: AsyncClient) -> None:
        response = await client.post("/functions/v1/admin-update-game-config", json={"key": "x"})
        assert response.status_code == 400
        assert response.json() == {"error": "Configuration value is required"}

    async def test_non_admin_forbidden(self, client: AsyncClient, make_profile, auth_header) -> None:
        await make_profile("player-1")
        response = await client.post(
            "/functions/v1/admin-update-game-config",
            json={"key": "x", "value": 1},
            headers=auth_header("player-1"),
        )
        assert response.status_code == 403


class TestServerErrors:
    async def test_config_query_failure(
        self, client: AsyncClient, make_profile, auth_header, monkeypatch
    ) -> None:
        await make_profile("admin-1", roles=["admin"])
        monkeypatch.setattr(
            "ymg.admin.router.list_game_configs",
            AsyncMock(side_effect=OperationalError("SELECT ...", {}, Exception("db gone"))),
        )
        response = await client.get("/functions/v1/admin-get-game-configs", headers=auth_header("admin-1"))
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch configurations"}

    async def test_config_write_failure(
        self, client: AsyncClient, make_profile, auth_header, monkeypatch
    ) -> None:
        await make_profile("admin-1", roles=["admin"])
        monkeypatch.setattr(
            "ymg.admin.router.upsert_game_config",
            AsyncMock(side_effect=OperationalError("INSERT ...", {}, Exception("disk full"))),
        )
        response = await client.post(
            "/functions/v1/admin-update-game-config",
            json={"key": "click_multiplier", "value": 2},
            headers=auth_header("admin-1"),
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to update configuration"}

    async def test_unexpected_error_is_generic(self, client: AsyncClient, auth_header, monkeypatch) -> None:
        monkeypatch.setattr(
            "ymg.admin.router.get_profile_for_wallet",
            AsyncMock(side_effect=RuntimeError("connection pool exhausted")),
        )
        response = await client.post(
            "/functions/v1/verify-admin-role",
            json={"wallet_address": WALLET},
            headers=auth_header("admin-1"),
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
