"""ORM models for the hosted game database.

The hosted service owns the schema (tables, triggers, row-level security);
these models mirror the columns this service reads and writes.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ymg.db.base import Base, BigIntPK, JSONType


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class UserProfileRow(Base):
    """Maps to 'user_profiles'. One row per hosted-auth user, keyed by the auth id."""

    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    username: Mapped[str | None] = mapped_column(String(64), nullable=True)
    wallet_address: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    roles: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Settings & statistics
# ---------------------------------------------------------------------------


class GameSettingsRow(Base):
    """Per-user preference bundle, overwritten wholesale on update."""

    __tablename__ = "game_settings"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    preferences: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    theme: Mapped[str] = mapped_column(String(32), nullable=False, default="light")
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class GameStatisticsRow(Base):
    """Per-user counters."""

    __tablename__ = "game_statistics"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    total_clicks: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    power_ups_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    streak_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    prestige: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_click_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ClickEvent(Base):
    """One row per recorded click, used for windowed leaderboards."""

    __tablename__ = "click_events"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    clicked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


# ---------------------------------------------------------------------------
# Power-ups
# ---------------------------------------------------------------------------


class PowerUpRow(Base):
    """Inventory record, unique per (user, type)."""

    __tablename__ = "power_ups"
    __table_args__ = (UniqueConstraint("user_id", "type", name="uq_power_ups_user_type"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_purchased: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Clans
# ---------------------------------------------------------------------------


class ClanRow(Base):
    """Named group with an owner. The owner is always present in clan_members."""

    __tablename__ = "clans"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    members: Mapped[list[ClanMember]] = relationship(
        "ClanMember",
        back_populates="clan",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ClanMember.joined_at",
    )


class ClanMember(Base):
    """Clan membership row."""

    __tablename__ = "clan_members"

    clan_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("clans.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    clan: Mapped[ClanRow] = relationship("ClanRow", back_populates="members")


# ---------------------------------------------------------------------------
# Referrals
# ---------------------------------------------------------------------------


class ReferralRow(Base):
    """Referrer/referred pair. pending -> completed, never back."""

    __tablename__ = "referrals"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    referrer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    referred_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# PvP
# ---------------------------------------------------------------------------


class PvPMatchRow(Base):
    """Head-to-head match between two players."""

    __tablename__ = "pvp_matches"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    player1_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    player2_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    player1_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    player2_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    winner_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    winner_reward: Mapped[int | None] = mapped_column(Integer, nullable=True)
    loser_reward: Mapped[int | None] = mapped_column(Integer, nullable=True)
    match_data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Admin: game configuration
# ---------------------------------------------------------------------------


class GameConfig(Base):
    """Key/value game configuration editable from the admin dashboard."""

    __tablename__ = "game_configs"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[Any] = mapped_column(JSONType, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
