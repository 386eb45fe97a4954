"""Leaderboard timeframe boundaries (UTC calendar periods)."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from ymg.storage.protocol import LeaderboardTimeframe


def get_monday(dt: datetime | date) -> date:
    """Get the Monday of the ISO week containing dt."""
    d = dt.date() if isinstance(dt, datetime) else dt
    return d - timedelta(days=d.weekday())


def _midnight(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def window_start(timeframe: LeaderboardTimeframe, now: datetime | None = None) -> datetime | None:
    """
    Start of the current period for a timeframe.

    daily -> today 00:00, weekly -> Monday 00:00 of the ISO week,
    monthly -> the 1st 00:00. Returns None for the all-time board.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    timeframe = LeaderboardTimeframe(timeframe)
    if timeframe is LeaderboardTimeframe.ALL:
        return None
    if timeframe is LeaderboardTimeframe.DAILY:
        return _midnight(now.date())
    if timeframe is LeaderboardTimeframe.WEEKLY:
        return _midnight(get_monday(now))
    return _midnight(now.date().replace(day=1))
