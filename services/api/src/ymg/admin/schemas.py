"""Pydantic response models for the admin endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


class VerifyAdminRoleResponse(BaseModel):
    """Serialized with camelCase keys: isAdmin, userId, walletAddress."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_admin: bool
    user_id: str
    wallet_address: str


class GameConfigResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    value: Any = None
    description: str | None = None
    created_at: datetime | None = None
    created_by: str | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None


class GameConfigsResponse(BaseModel):
    configs: list[GameConfigResponse]
    timestamp: datetime


class UpdateGameConfigResponse(BaseModel):
    success: bool
    config: GameConfigResponse
    timestamp: datetime
