"""Hosted backend: the StorageBackend contract over the hosted Postgres database.

Each operation runs in its own session and commits on success. Database and
transport failures surface as StorageError naming the operation.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import SQLAlchemyError

from ymg.database import build_engine, build_session_factory
from ymg.db.models import (
    ClanMember,
    ClanRow,
    ClickEvent,
    GameSettingsRow,
    GameStatisticsRow,
    PowerUpRow,
    PvPMatchRow,
    ReferralRow,
    UserProfileRow,
)
from ymg.storage.errors import InvalidOperationError, NotFoundError, StorageError
from ymg.storage.protocol import (
    AuthUser,
    Clan,
    GamePreferences,
    GameSettings,
    GameStatistics,
    LeaderboardCategory,
    LeaderboardData,
    LeaderboardEntry,
    LeaderboardTimeframe,
    MatchStatus,
    PowerUp,
    PvPMatch,
    Referral,
    ReferralStatus,
    UserProfile,
    normalize_fields,
)
from ymg.storage.timeframes import window_start

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

    from ymg.config import Settings

logger = logging.getLogger(__name__)

PVP_WINNER_REWARD = 100
PVP_LOSER_REWARD = 10

# Columns a client may write through update_statistics.
_STATISTICS_FIELDS = ("total_clicks", "power_ups_used", "streak_count", "prestige", "last_click_time")


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Row -> model conversion
# ---------------------------------------------------------------------------


def _profile(row: UserProfileRow) -> UserProfile:
    return UserProfile(
        id=row.id,
        email=row.email,
        username=row.username,
        wallet_address=row.wallet_address,
        roles=list(row.roles or []),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _settings(row: GameSettingsRow) -> GameSettings:
    return GameSettings(
        user_id=row.user_id,
        preferences=GamePreferences.model_validate(row.preferences or {}),
        theme=row.theme,
        last_updated=row.last_updated,
    )


def _statistics(row: GameStatisticsRow) -> GameStatistics:
    return GameStatistics(
        user_id=row.user_id,
        total_clicks=row.total_clicks,
        power_ups_used=row.power_ups_used,
        streak_count=row.streak_count,
        prestige=row.prestige,
        last_click_time=row.last_click_time,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _power_up(row: PowerUpRow) -> PowerUp:
    return PowerUp(
        id=row.id,
        user_id=row.user_id,
        type=row.type,
        quantity=row.quantity,
        last_purchased=row.last_purchased,
    )


def _clan(row: ClanRow) -> Clan:
    return Clan(
        id=row.id,
        name=row.name,
        owner_id=row.owner_id,
        members=[m.user_id for m in row.members],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _referral(row: ReferralRow) -> Referral:
    return Referral(
        id=row.id,
        referrer_id=row.referrer_id,
        referred_id=row.referred_id,
        status=ReferralStatus(row.status),
        created_at=row.created_at,
        completed_at=row.completed_at,
    )


def _match(row: PvPMatchRow) -> PvPMatch:
    return PvPMatch(
        id=row.id,
        player1_id=row.player1_id,
        player2_id=row.player2_id,
        player1_score=row.player1_score,
        player2_score=row.player2_score,
        start_time=row.start_time,
        end_time=row.end_time,
        status=MatchStatus(row.status),
        winner_id=row.winner_id,
        winner_reward=row.winner_reward,
        loser_reward=row.loser_reward,
        match_data=dict(row.match_data or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class HostedBackend:
    """StorageBackend implementation backed by the hosted database."""

    def __init__(
        self,
        database_url: str | None = None,
        *,
        pool_size: int = 10,
        max_overflow: int = 5,
        engine: AsyncEngine | None = None,
    ) -> None:
        if engine is None:
            if database_url is None:
                msg = "HostedBackend needs a database URL or an engine"
                raise ValueError(msg)
            engine = build_engine(database_url, pool_size, max_overflow)
        self._engine = engine
        self._sessions = build_session_factory(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> HostedBackend:
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def close(self) -> None:
        """Dispose of the engine's connection pool."""
        await self._engine.dispose()

    async def ping(self) -> bool:
        """Connection check against the hosted database."""
        try:
            async with self._sessions() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Hosted database connection check failed", exc_info=True)
            return False
        return True

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Session that commits on success and wraps database failures."""
        async with self._sessions() as session:
            try:
                yield session
                await session.commit()
            except StorageError:
                await session.rollback()
                raise
            except ValidationError as exc:
                await session.rollback()
                raise InvalidOperationError(f"{operation}: {exc}") from exc
            except SQLAlchemyError as exc:
                await session.rollback()
                # Driver text (SQL, bound parameters) stays in the log only.
                logger.error("Hosted storage operation %s failed: %s", operation, exc)
                msg = f"{operation} failed"
                raise StorageError(msg) from exc

    # -- shared lookups -----------------------------------------------------

    @staticmethod
    async def _get_statistics_row(
        db: AsyncSession, user_id: str, *, create: bool = False, lock: bool = False
    ) -> GameStatisticsRow | None:
        q = select(GameStatisticsRow).where(GameStatisticsRow.user_id == user_id)
        if lock:
            q = q.with_for_update()
        row = (await db.execute(q)).scalar_one_or_none()
        if row is None and create:
            now = _now()
            row = GameStatisticsRow(
                user_id=user_id,
                total_clicks=0,
                power_ups_used=0,
                streak_count=0,
                prestige=0,
                created_at=now,
                updated_at=now,
            )
            db.add(row)
        return row

    @staticmethod
    async def _get_power_up_row(db: AsyncSession, user_id: str, power_up_type: str) -> PowerUpRow | None:
        result = await db.execute(
            select(PowerUpRow)
            .where(PowerUpRow.user_id == user_id, PowerUpRow.type == power_up_type)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def _get_clan_row(db: AsyncSession, clan_id: str) -> ClanRow | None:
        result = await db.execute(select(ClanRow).where(ClanRow.id == clan_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def _require_match(db: AsyncSession, match_id: str) -> PvPMatchRow:
        result = await db.execute(select(PvPMatchRow).where(PvPMatchRow.id == match_id).with_for_update())
        row = result.scalar_one_or_none()
        if row is None:
            msg = f"PvP match {match_id} not found"
            raise NotFoundError(msg)
        return row

    # -- profiles -----------------------------------------------------------

    async def create_user_profile(self, user: AuthUser) -> UserProfile:
        async with self._session("create_user_profile") as db:
            existing = await db.get(UserProfileRow, user.id)
            if existing is not None:
                return _profile(existing)
            now = _now()
            row = UserProfileRow(
                id=user.id,
                email=user.email,
                username=user.user_metadata.get("username"),
                wallet_address=user.user_metadata.get("wallet_address"),
                roles=[],
                created_at=now,
                updated_at=now,
            )
            db.add(row)
            await db.flush()
            logger.info("Profile created for user %s", user.id)
            return _profile(row)

    async def get_user_profile(self, user_id: str) -> UserProfile | None:
        async with self._session("get_user_profile") as db:
            row = await db.get(UserProfileRow, user_id)
            return _profile(row) if row else None

    async def update_user_profile(self, user_id: str, data: Mapping[str, Any]) -> UserProfile:
        fields = normalize_fields(UserProfile, data)
        async with self._session("update_user_profile") as db:
            row = await db.get(UserProfileRow, user_id)
            now = _now()
            if row is None:
                row = UserProfileRow(id=user_id, email="", roles=[], created_at=now)
                db.add(row)
            # Roles are granted on the hosted side only, never through a client update.
            if "email" in fields:
                row.email = fields["email"] or ""
            for name in ("username", "wallet_address"):
                if name in fields:
                    setattr(row, name, fields[name])
            row.updated_at = now
            await db.flush()
            return _profile(row)

    # -- settings -----------------------------------------------------------

    async def get_game_settings(self, user_id: str) -> GameSettings | None:
        async with self._session("get_game_settings") as db:
            row = await db.get(GameSettingsRow, user_id)
            return _settings(row) if row else None

    async def update_game_settings(self, user_id: str, settings: Mapping[str, Any]) -> GameSettings:
        """Replace the whole bundle; omitted keys take the model defaults."""
        fields = normalize_fields(GameSettings, settings)
        async with self._session("update_game_settings") as db:
            bundle = GameSettings.model_validate({**fields, "user_id": user_id, "last_updated": _now()})
            row = await db.get(GameSettingsRow, user_id)
            if row is None:
                row = GameSettingsRow(user_id=user_id)
                db.add(row)
            row.preferences = bundle.preferences.model_dump()
            row.theme = bundle.theme
            row.last_updated = bundle.last_updated
            await db.flush()
            return _settings(row)

    # -- statistics ---------------------------------------------------------

    async def get_statistics(self, user_id: str) -> GameStatistics | None:
        async with self._session("get_statistics") as db:
            row = await self._get_statistics_row(db, user_id)
            return _statistics(row) if row else None

    async def update_statistics(self, user_id: str, stats: Mapping[str, Any]) -> GameStatistics:
        fields = {k: v for k, v in normalize_fields(GameStatistics, stats).items() if k in _STATISTICS_FIELDS}
        async with self._session("update_statistics") as db:
            row = await self._get_statistics_row(db, user_id, create=True, lock=True)
            # Validate the merged record so counters can never go negative.
            merged = GameStatistics.model_validate({**_statistics(row).model_dump(), **fields})
            for name in _STATISTICS_FIELDS:
                setattr(row, name, getattr(merged, name))
            row.updated_at = _now()
            await db.flush()
            return _statistics(row)

    # -- clicks -------------------------------------------------------------

    async def record_click(self, user_id: str) -> None:
        async with self._session("record_click") as db:
            row = await self._get_statistics_row(db, user_id, create=True, lock=True)
            now = _now()
            row.total_clicks += 1
            row.last_click_time = now
            row.updated_at = now
            db.add(ClickEvent(user_id=user_id, clicked_at=now))

    async def get_click_count(self, user_id: str) -> int:
        async with self._session("get_click_count") as db:
            row = await self._get_statistics_row(db, user_id)
            return row.total_clicks if row else 0

    # -- power-ups ----------------------------------------------------------

    async def get_power_ups(self, user_id: str) -> list[PowerUp]:
        async with self._session("get_power_ups") as db:
            result = await db.execute(
                select(PowerUpRow).where(PowerUpRow.user_id == user_id).order_by(PowerUpRow.type)
            )
            return [_power_up(row) for row in result.scalars()]

    async def add_power_up(self, user_id: str, power_up_type: str, quantity: int) -> PowerUp:
        if quantity <= 0:
            msg = "Power-up quantity must be positive"
            raise InvalidOperationError(msg)
        async with self._session("add_power_up") as db:
            row = await self._get_power_up_row(db, user_id, power_up_type)
            now = _now()
            if row is None:
                row = PowerUpRow(user_id=user_id, type=power_up_type, quantity=0)
                db.add(row)
            row.quantity += quantity
            row.last_purchased = now
            await db.flush()
            return _power_up(row)

    async def use_power_up(self, user_id: str, power_up_type: str) -> PowerUp:
        async with self._session("use_power_up") as db:
            row = await self._get_power_up_row(db, user_id, power_up_type)
            if row is None or row.quantity <= 0:
                msg = f"No '{power_up_type}' power-ups left"
                raise InvalidOperationError(msg)
            row.quantity -= 1
            await db.flush()
            return _power_up(row)

    async def update_power_up(
        self,
        user_id: str,
        power_up_type: str,
        quantity: int,
        last_purchased: datetime | None = None,
    ) -> PowerUp:
        """Overwrite the inventory count for one power-up type (upsert)."""
        if quantity < 0:
            msg = "Power-up quantity cannot be negative"
            raise InvalidOperationError(msg)
        async with self._session("update_power_up") as db:
            row = await self._get_power_up_row(db, user_id, power_up_type)
            if row is None:
                row = PowerUpRow(user_id=user_id, type=power_up_type)
                db.add(row)
            row.quantity = quantity
            row.last_purchased = last_purchased or row.last_purchased or _now()
            await db.flush()
            return _power_up(row)

    # -- streaks ------------------------------------------------------------

    async def get_streak(self, user_id: str) -> int:
        async with self._session("get_streak") as db:
            row = await self._get_statistics_row(db, user_id)
            return row.streak_count if row else 0

    async def update_streak(self, user_id: str) -> int:
        async with self._session("update_streak") as db:
            row = await self._get_statistics_row(db, user_id, create=True, lock=True)
            row.streak_count += 1
            row.updated_at = _now()
            await db.flush()
            return row.streak_count

    async def reset_streak(self, user_id: str) -> None:
        async with self._session("reset_streak") as db:
            row = await self._get_statistics_row(db, user_id, lock=True)
            if row is not None and row.streak_count:
                row.streak_count = 0
                row.updated_at = _now()

    # -- clans --------------------------------------------------------------

    async def create_clan(self, name: str, owner_id: str) -> Clan:
        async with self._session("create_clan") as db:
            existing = await db.execute(select(ClanRow.id).where(func.lower(ClanRow.name) == name.lower()))
            if existing.scalar_one_or_none() is not None:
                msg = f"A clan named '{name}' already exists"
                raise InvalidOperationError(msg)
            now = _now()
            row = ClanRow(name=name, owner_id=owner_id, created_at=now, updated_at=now)
            row.members.append(ClanMember(user_id=owner_id, joined_at=now))
            db.add(row)
            await db.flush()
            logger.info("Clan created: %s (id=%s, owner=%s)", name, row.id, owner_id)
            return _clan(row)

    async def get_clan(self, clan_id: str) -> Clan | None:
        async with self._session("get_clan") as db:
            row = await self._get_clan_row(db, clan_id)
            return _clan(row) if row else None

    async def add_clan_member(self, clan_id: str, user_id: str) -> None:
        async with self._session("add_clan_member") as db:
            row = await self._get_clan_row(db, clan_id)
            if row is None:
                msg = f"Clan {clan_id} not found"
                raise NotFoundError(msg)
            if any(m.user_id == user_id for m in row.members):
                return
            now = _now()
            row.members.append(ClanMember(user_id=user_id, joined_at=now))
            row.updated_at = now

    async def remove_clan_member(self, clan_id: str, user_id: str) -> None:
        async with self._session("remove_clan_member") as db:
            row = await self._get_clan_row(db, clan_id)
            if row is None:
                msg = f"Clan {clan_id} not found"
                raise NotFoundError(msg)
            if user_id == row.owner_id:
                msg = "The clan owner cannot be removed"
                raise InvalidOperationError(msg)
            member = next((m for m in row.members if m.user_id == user_id), None)
            if member is None:
                msg = f"User {user_id} is not a member of clan {clan_id}"
                raise NotFoundError(msg)
            row.members.remove(member)
            row.updated_at = _now()

    async def update_clan(self, clan_id: str, clan: Clan | Mapping[str, Any]) -> Clan:
        """Overwrite a clan's name, owner and member set (upsert)."""
        if not isinstance(clan, Clan):
            clan = Clan.model_validate({"id": clan_id, **normalize_fields(Clan, clan)})
        async with self._session("update_clan") as db:
            row = await self._get_clan_row(db, clan_id)
            now = _now()
            if row is None:
                row = ClanRow(id=clan_id, created_at=clan.created_at or now)
                db.add(row)
            row.name = clan.name
            row.owner_id = clan.owner_id
            row.updated_at = now
            wanted = set(clan.members)
            for member in [m for m in row.members if m.user_id not in wanted]:
                row.members.remove(member)
            present = {m.user_id for m in row.members}
            for user_id in clan.members:
                if user_id not in present:
                    row.members.append(ClanMember(user_id=user_id, joined_at=now))
            await db.flush()
            return _clan(row)

    # -- referrals ----------------------------------------------------------

    async def create_referral(self, referrer_id: str, referred_id: str) -> Referral:
        """
        Record a referral as pending.

        A player can only be referred once: repeating the same pair returns the
        existing referral, a different referrer for the same player is rejected.
        """
        if referrer_id == referred_id:
            msg = "Players cannot refer themselves"
            raise InvalidOperationError(msg)
        async with self._session("create_referral") as db:
            result = await db.execute(select(ReferralRow).where(ReferralRow.referred_id == referred_id))
            existing = result.scalars().first()
            if existing is not None:
                if existing.referrer_id == referrer_id:
                    return _referral(existing)
                msg = f"User {referred_id} was already referred by another player"
                raise InvalidOperationError(msg)
            row = ReferralRow(
                referrer_id=referrer_id,
                referred_id=referred_id,
                status=ReferralStatus.PENDING.value,
                created_at=_now(),
            )
            db.add(row)
            await db.flush()
            return _referral(row)

    async def complete_referral(self, referral_id: str) -> Referral:
        async with self._session("complete_referral") as db:
            result = await db.execute(select(ReferralRow).where(ReferralRow.id == referral_id).with_for_update())
            row = result.scalar_one_or_none()
            if row is None:
                msg = f"Referral {referral_id} not found"
                raise NotFoundError(msg)
            if row.status == ReferralStatus.COMPLETED.value:
                msg = f"Referral {referral_id} is already completed"
                raise InvalidOperationError(msg)
            row.status = ReferralStatus.COMPLETED.value
            row.completed_at = _now()
            await db.flush()
            return _referral(row)

    async def get_referrals(self, user_id: str) -> list[Referral]:
        async with self._session("get_referrals") as db:
            result = await db.execute(
                select(ReferralRow)
                .where(or_(ReferralRow.referrer_id == user_id, ReferralRow.referred_id == user_id))
                .order_by(ReferralRow.created_at)
            )
            return [_referral(row) for row in result.scalars()]

    # -- PvP ----------------------------------------------------------------

    async def create_pvp_match(self, player1_id: str, player2_id: str) -> PvPMatch:
        if player1_id == player2_id:
            msg = "A player cannot be matched against themselves"
            raise InvalidOperationError(msg)
        async with self._session("create_pvp_match") as db:
            now = _now()
            row = PvPMatchRow(
                player1_id=player1_id,
                player2_id=player2_id,
                player1_score=0,
                player2_score=0,
                status=MatchStatus.PENDING.value,
                start_time=now,
                match_data={},
                created_at=now,
                updated_at=now,
            )
            db.add(row)
            await db.flush()
            return _match(row)

    async def get_pvp_match(self, match_id: str) -> PvPMatch | None:
        async with self._session("get_pvp_match") as db:
            row = await db.get(PvPMatchRow, match_id)
            return _match(row) if row else None

    async def update_pvp_score(self, match_id: str, player_id: str, score: int) -> PvPMatch:
        if score < 0:
            msg = "Score cannot be negative"
            raise InvalidOperationError(msg)
        async with self._session("update_pvp_score") as db:
            row = await self._require_match(db, match_id)
            status = MatchStatus(row.status)
            if status.is_finished:
                msg = f"Cannot update score of a {status.value} match"
                raise InvalidOperationError(msg)
            if player_id == row.player1_id:
                row.player1_score = score
            elif player_id == row.player2_id:
                row.player2_score = score
            else:
                msg = f"Player {player_id} is not part of match {match_id}"
                raise InvalidOperationError(msg)
            if status.can_move_to(MatchStatus.ACTIVE):
                row.status = MatchStatus.ACTIVE.value
            row.updated_at = _now()
            await db.flush()
            return _match(row)

    async def complete_pvp_match(self, match_id: str, winner_id: str) -> PvPMatch:
        async with self._session("complete_pvp_match") as db:
            row = await self._require_match(db, match_id)
            status = MatchStatus(row.status)
            if not status.can_move_to(MatchStatus.COMPLETED):
                msg = f"Cannot complete a {status.value} match"
                raise InvalidOperationError(msg)
            if winner_id not in (row.player1_id, row.player2_id):
                msg = f"Winner {winner_id} is not part of match {match_id}"
                raise InvalidOperationError(msg)
            now = _now()
            row.status = MatchStatus.COMPLETED.value
            row.winner_id = winner_id
            row.winner_reward = PVP_WINNER_REWARD
            row.loser_reward = PVP_LOSER_REWARD
            row.end_time = now
            row.updated_at = now
            await db.flush()
            logger.info("PvP match %s completed, winner=%s", match_id, winner_id)
            return _match(row)

    async def cancel_pvp_match(self, match_id: str) -> PvPMatch:
        async with self._session("cancel_pvp_match") as db:
            row = await self._require_match(db, match_id)
            status = MatchStatus(row.status)
            if not status.can_move_to(MatchStatus.CANCELLED):
                msg = f"Cannot cancel a {status.value} match"
                raise InvalidOperationError(msg)
            now = _now()
            row.status = MatchStatus.CANCELLED.value
            row.end_time = now
            row.updated_at = now
            await db.flush()
            return _match(row)

    async def get_player_matches(self, player_id: str, limit: int = 10) -> list[PvPMatch]:
        async with self._session("get_player_matches") as db:
            result = await db.execute(
                select(PvPMatchRow)
                .where(or_(PvPMatchRow.player1_id == player_id, PvPMatchRow.player2_id == player_id))
                .order_by(PvPMatchRow.start_time.desc())
                .limit(limit)
            )
            return [_match(row) for row in result.scalars()]

    # -- leaderboards -------------------------------------------------------

    @staticmethod
    async def _ranking(
        db: AsyncSession,
        category: LeaderboardCategory,
        since: datetime | None,
    ) -> list[tuple[str, int, datetime | None]]:
        """(user_id, value, updated_at) for every ranked user, best first."""
        if category is LeaderboardCategory.CLICKS and since is not None:
            q = (
                select(ClickEvent.user_id, func.count(ClickEvent.id), func.max(ClickEvent.clicked_at))
                .where(ClickEvent.clicked_at >= since)
                .group_by(ClickEvent.user_id)
            )
        elif category is LeaderboardCategory.PVP:
            q = select(PvPMatchRow.winner_id, func.count(PvPMatchRow.id), func.max(PvPMatchRow.end_time)).where(
                PvPMatchRow.status == MatchStatus.COMPLETED.value,
                PvPMatchRow.winner_id.is_not(None),
            )
            if since is not None:
                q = q.where(PvPMatchRow.end_time >= since)
            q = q.group_by(PvPMatchRow.winner_id)
        else:
            column = {
                LeaderboardCategory.CLICKS: GameStatisticsRow.total_clicks,
                LeaderboardCategory.STREAK: GameStatisticsRow.streak_count,
                LeaderboardCategory.PRESTIGE: GameStatisticsRow.prestige,
            }[category]
            q = select(GameStatisticsRow.user_id, column, GameStatisticsRow.updated_at).where(column > 0)
            if since is not None:
                q = q.where(GameStatisticsRow.updated_at >= since)

        rows = [(str(uid), int(value), updated) for uid, value, updated in (await db.execute(q)).all()]
        rows.sort(key=lambda r: (-r[1], r[0]))
        return rows

    @staticmethod
    async def _player_labels(db: AsyncSession, user_ids: list[str]) -> tuple[dict[str, str], dict[str, str]]:
        """Batch-load usernames and clan names for leaderboard enrichment."""
        if not user_ids:
            return {}, {}
        names_result = await db.execute(
            select(UserProfileRow.id, UserProfileRow.username).where(UserProfileRow.id.in_(user_ids))
        )
        usernames = {uid: name for uid, name in names_result.all() if name}
        clans_result = await db.execute(
            select(ClanMember.user_id, ClanRow.name)
            .join(ClanRow, ClanMember.clan_id == ClanRow.id)
            .where(ClanMember.user_id.in_(user_ids))
        )
        clans = dict(clans_result.all())
        return usernames, clans

    async def _entries(
        self, db: AsyncSession, ranking: list[tuple[str, int, datetime | None]], start_rank: int = 1
    ) -> list[LeaderboardEntry]:
        usernames, clans = await self._player_labels(db, [uid for uid, _, _ in ranking])
        return [
            LeaderboardEntry(
                rank=start_rank + offset,
                user_id=uid,
                username=usernames.get(uid, f"Player-{uid[:8]}"),
                clan=clans.get(uid),
                value=value,
                updated_at=updated,
            )
            for offset, (uid, value, updated) in enumerate(ranking)
        ]

    async def get_leaderboard(
        self,
        category: LeaderboardCategory,
        timeframe: LeaderboardTimeframe,
        limit: int = 100,
        user_id: str | None = None,
    ) -> LeaderboardData:
        category = LeaderboardCategory(category)
        timeframe = LeaderboardTimeframe(timeframe)
        async with self._session("get_leaderboard") as db:
            ranking = await self._ranking(db, category, window_start(timeframe))
            user_rank = None
            if user_id is not None:
                user_rank = next((i + 1 for i, (uid, _, _) in enumerate(ranking) if uid == user_id), None)
            entries = await self._entries(db, ranking[: max(limit, 0)])
            return LeaderboardData(entries=entries, user_rank=user_rank)

    async def get_player_rank(self, player_id: str) -> LeaderboardEntry | None:
        async with self._session("get_player_rank") as db:
            ranking = await self._ranking(db, LeaderboardCategory.CLICKS, None)
            for index, row in enumerate(ranking):
                if row[0] == player_id:
                    entries = await self._entries(db, [row], start_rank=index + 1)
                    return entries[0]
            return None
