"""Pure streak transition tests (no database)."""

from datetime import date

from studyquest.gamification.streak_service import next_streak, streak_at_risk

TODAY = date(2026, 3, 10)


class TestNextStreak:
    def test_cold_start(self):
        assert next_streak(0, None, TODAY) == (1, False, True)

    def test_same_day_is_noop(self):
        assert next_streak(4, TODAY, TODAY) == (4, False, False)

    def test_yesterday_increments(self):
        assert next_streak(4, date(2026, 3, 9), TODAY) == (5, False, True)

    def test_gap_resets(self):
        assert next_streak(12, date(2026, 3, 8), TODAY) == (1, True, True)

    def test_future_date_is_noop(self):
        assert next_streak(2, date(2026, 3, 11), TODAY) == (2, False, False)


class TestStreakAtRisk:
    def test_active_yesterday_is_at_risk(self):
        assert streak_at_risk(3, date(2026, 3, 9), TODAY)

    def test_active_today_is_safe(self):
        assert not streak_at_risk(3, TODAY, TODAY)

    def test_already_broken_is_not_at_risk(self):
        assert not streak_at_risk(3, date(2026, 3, 7), TODAY)

    def test_no_streak(self):
        assert not streak_at_risk(0, None, TODAY)
