"""Storage contract and data models for game persistence.

Every backend (hosted database today, anything else later) implements
`StorageBackend`; callers only ever see this protocol and the models below.

Models use snake_case attributes but accept and emit camelCase aliases, which
is the shape the web client stages in local storage.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class StorageType(str, Enum):
    HOSTED = "hosted"
    LOCAL = "local"


class LeaderboardCategory(str, Enum):
    CLICKS = "clicks"
    PRESTIGE = "prestige"
    STREAK = "streak"
    PVP = "pvp"


class LeaderboardTimeframe(str, Enum):
    ALL = "all"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ReferralStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class MatchStatus(str, Enum):
    WAITING = "waiting"
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_finished(self) -> bool:
        return self in (MatchStatus.COMPLETED, MatchStatus.CANCELLED)

    def can_move_to(self, target: MatchStatus) -> bool:
        """Statuses only move forward; a finished match never changes again."""
        if self.is_finished:
            return False
        return _MATCH_ORDER[target] > _MATCH_ORDER[self]


_MATCH_ORDER = {
    MatchStatus.WAITING: 0,
    MatchStatus.PENDING: 1,
    MatchStatus.ACTIVE: 2,
    MatchStatus.COMPLETED: 3,
    MatchStatus.CANCELLED: 3,
}


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthUser(CamelModel):
    """Identity returned by hosted auth; input to profile creation."""

    id: str
    email: str = ""
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class UserProfile(CamelModel):
    id: str
    email: str = ""
    username: str | None = None
    wallet_address: str | None = None
    roles: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class GamePreferences(CamelModel):
    sound: bool = True
    music: bool = True
    notifications: bool = True


class GameSettings(CamelModel):
    user_id: str
    preferences: GamePreferences = Field(default_factory=GamePreferences)
    theme: str = "light"
    last_updated: datetime | None = None


class GameStatistics(CamelModel):
    user_id: str
    total_clicks: int = Field(default=0, ge=0)
    power_ups_used: int = Field(default=0, ge=0)
    streak_count: int = Field(default=0, ge=0)
    prestige: int = Field(default=0, ge=0)
    last_click_time: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PowerUp(CamelModel):
    id: str | None = None
    user_id: str | None = None
    type: str
    quantity: int = Field(default=0, ge=0)
    last_purchased: datetime | None = None


class Clan(CamelModel):
    id: str
    name: str
    owner_id: str
    members: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _owner_is_member(self) -> Clan:
        if self.owner_id not in self.members:
            self.members.insert(0, self.owner_id)
        return self


class Referral(CamelModel):
    id: str | None = None
    referrer_id: str
    referred_id: str
    status: ReferralStatus = ReferralStatus.PENDING
    created_at: datetime | None = None
    completed_at: datetime | None = None


class PvPMatch(CamelModel):
    id: str
    player1_id: str
    player2_id: str
    player1_score: int = 0
    player2_score: int = 0
    start_time: datetime
    end_time: datetime | None = None
    status: MatchStatus = MatchStatus.PENDING
    winner_id: str | None = None
    winner_reward: int | None = None
    loser_reward: int | None = None
    # Free-form payload (power-up usage, round log, ...) owned by the game client.
    match_data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def has_player(self, player_id: str) -> bool:
        return player_id in (self.player1_id, self.player2_id)


class LeaderboardEntry(CamelModel):
    rank: int
    user_id: str
    username: str
    clan: str | None = None
    value: int
    updated_at: datetime | None = None
    rating: float | None = None


class LeaderboardData(CamelModel):
    entries: list[LeaderboardEntry] = Field(default_factory=list)
    user_rank: int | None = None


def normalize_fields(model: type[BaseModel], data: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    """Map camelCase or snake_case keys onto ``model``'s field names.

    Unknown keys are dropped, so a partial update can never write a column the
    model does not declare.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    lookup: dict[str, str] = {}
    for name, info in model.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
    return {lookup[key]: value for key, value in data.items() if key in lookup}


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


@runtime_checkable
class StorageBackend(Protocol):
    """
    Abstract game storage interface.

    Reads return None (or 0 / an empty list) when nothing is stored. Writes
    against a missing entity raise NotFoundError, rule violations raise
    InvalidOperationError, and transport failures raise StorageError.
    """

    # Profiles
    async def create_user_profile(self, user: AuthUser) -> UserProfile:
        """Create the profile for a freshly authenticated user."""
        ...

    async def get_user_profile(self, user_id: str) -> UserProfile | None:
        ...

    async def update_user_profile(self, user_id: str, data: Mapping[str, Any]) -> UserProfile:
        """Apply a partial profile update, creating the row if needed."""
        ...

    # Game settings
    async def get_game_settings(self, user_id: str) -> GameSettings | None:
        ...

    async def update_game_settings(self, user_id: str, settings: Mapping[str, Any]) -> GameSettings:
        """Replace the settings bundle wholesale; omitted keys take their defaults."""
        ...

    # Statistics
    async def get_statistics(self, user_id: str) -> GameStatistics | None:
        ...

    async def update_statistics(self, user_id: str, stats: Mapping[str, Any]) -> GameStatistics:
        ...

    # Clicks
    async def record_click(self, user_id: str) -> None:
        ...

    async def get_click_count(self, user_id: str) -> int:
        ...

    # Power-ups
    async def get_power_ups(self, user_id: str) -> list[PowerUp]:
        ...

    async def add_power_up(self, user_id: str, power_up_type: str, quantity: int) -> PowerUp:
        """Add ``quantity`` (> 0) to the user's inventory of ``power_up_type``."""
        ...

    async def use_power_up(self, user_id: str, power_up_type: str) -> PowerUp:
        """Consume one unit. Raises InvalidOperationError when none are left."""
        ...

    # Streaks
    async def get_streak(self, user_id: str) -> int:
        ...

    async def update_streak(self, user_id: str) -> int:
        """Extend the streak by one and return the new count."""
        ...

    async def reset_streak(self, user_id: str) -> None:
        ...

    # Clans
    async def create_clan(self, name: str, owner_id: str) -> Clan:
        """Create a clan; the owner becomes its first member."""
        ...

    async def get_clan(self, clan_id: str) -> Clan | None:
        ...

    async def add_clan_member(self, clan_id: str, user_id: str) -> None:
        ...

    async def remove_clan_member(self, clan_id: str, user_id: str) -> None:
        """Remove a member. The owner cannot be removed."""
        ...

    # Referrals
    async def create_referral(self, referrer_id: str, referred_id: str) -> Referral:
        ...

    async def complete_referral(self, referral_id: str) -> Referral:
        """Mark a pending referral completed. Completing twice is an error."""
        ...

    async def get_referrals(self, user_id: str) -> list[Referral]:
        """Referrals where the user is either the referrer or the referred player."""
        ...

    # PvP
    async def create_pvp_match(self, player1_id: str, player2_id: str) -> PvPMatch:
        ...

    async def get_pvp_match(self, match_id: str) -> PvPMatch | None:
        ...

    async def update_pvp_score(self, match_id: str, player_id: str, score: int) -> PvPMatch:
        ...

    async def complete_pvp_match(self, match_id: str, winner_id: str) -> PvPMatch:
        ...

    async def get_player_matches(self, player_id: str, limit: int = 10) -> list[PvPMatch]:
        """Most recent matches first."""
        ...

    # Leaderboards
    async def get_leaderboard(
        self,
        category: LeaderboardCategory,
        timeframe: LeaderboardTimeframe,
        limit: int = 100,
        user_id: str | None = None,
    ) -> LeaderboardData:
        """
        Ranked entries for a category and timeframe.

        ``user_rank`` is the 1-based rank of ``user_id`` over the whole
        ranking, or None when the user is not ranked (or not given).
        """
        ...

    async def get_player_rank(self, player_id: str) -> LeaderboardEntry | None:
        ...
