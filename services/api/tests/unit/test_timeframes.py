"""Unit tests for leaderboard timeframe boundaries."""

from datetime import date, datetime, timezone

from ymg.storage.protocol import LeaderboardTimeframe
from ymg.storage.timeframes import get_monday, window_start

# Thursday afternoon
NOW = datetime(2026, 10, 15, 14, 30, tzinfo=timezone.utc)


class TestWindowStart:
    def test_all_time_has_no_start(self):
        assert window_start(LeaderboardTimeframe.ALL, NOW) is None

    def test_daily_is_midnight_utc(self):
        assert window_start(LeaderboardTimeframe.DAILY, NOW) == datetime(2026, 10, 15, tzinfo=timezone.utc)

    def test_weekly_is_monday(self):
        start = window_start(LeaderboardTimeframe.WEEKLY, NOW)
        assert start == datetime(2026, 10, 12, tzinfo=timezone.utc)
        assert start.weekday() == 0

    def test_monthly_is_first_of_month(self):
        assert window_start("monthly", NOW) == datetime(2026, 10, 1, tzinfo=timezone.utc)

    def test_monday_maps_to_itself(self):
        assert get_monday(date(2026, 10, 12)) == date(2026, 10, 12)

    def test_sunday_belongs_to_previous_monday(self):
        assert get_monday(datetime(2026, 10, 18, 23, 59, tzinfo=timezone.utc)) == date(2026, 10, 12)
