"""Storage abstraction: contract, hosted backend, selector and local-data migration."""

from ymg.storage.errors import (
    InvalidOperationError,
    MigrationError,
    NotFoundError,
    StorageError,
    StorageNotSupportedError,
)
from ymg.storage.hosted import HostedBackend
from ymg.storage.local import InMemoryLocalStore, LocalStore, RedisLocalStore, has_staged_data, staged_keys
from ymg.storage.migration import DataMigration, migrate_if_needed
from ymg.storage.protocol import (
    AuthUser,
    Clan,
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
    StorageBackend,
    StorageType,
    UserProfile,
)
from ymg.storage.selector import StorageSelector

__all__ = [
    "AuthUser",
    "Clan",
    "DataMigration",
    "GameSettings",
    "GameStatistics",
    "HostedBackend",
    "InMemoryLocalStore",
    "InvalidOperationError",
    "LeaderboardCategory",
    "LeaderboardData",
    "LeaderboardEntry",
    "LeaderboardTimeframe",
    "LocalStore",
    "MatchStatus",
    "MigrationError",
    "NotFoundError",
    "PowerUp",
    "PvPMatch",
    "RedisLocalStore",
    "Referral",
    "ReferralStatus",
    "StorageBackend",
    "StorageError",
    "StorageNotSupportedError",
    "StorageSelector",
    "StorageType",
    "UserProfile",
    "has_staged_data",
    "migrate_if_needed",
    "staged_keys",
]
