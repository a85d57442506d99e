"""Calendar-day helper tests."""

from datetime import date, datetime, timezone

from studyquest.gamification.clock import Clock, days_between, is_same_day, is_yesterday, last_n_days


class TestDayHelpers:
    def test_same_day(self):
        assert is_same_day(date(2026, 3, 1), date(2026, 3, 1))
        assert not is_same_day(date(2026, 3, 1), date(2026, 3, 2))

    def test_yesterday_across_month_boundary(self):
        assert is_yesterday(date(2026, 2, 28), date(2026, 3, 1))
        assert not is_yesterday(date(2026, 2, 27), date(2026, 3, 1))

    def test_yesterday_across_year_boundary(self):
        assert is_yesterday(date(2025, 12, 31), date(2026, 1, 1))

    def test_days_between(self):
        assert days_between(date(2026, 1, 1), date(2026, 1, 4)) == 3
        assert days_between(date(2026, 1, 4), date(2026, 1, 1)) == -3

    def test_last_n_days_oldest_first(self):
        days = last_n_days(date(2026, 3, 2), 7)
        assert len(days) == 7
        assert days[0] == date(2026, 2, 24)
        assert days[-1] == date(2026, 3, 2)


class TestClock:
    def test_late_evening_utc_is_next_day_in_tokyo(self):
        moment = datetime(2026, 3, 1, 23, 59, tzinfo=timezone.utc)
        assert Clock("UTC").date_of(moment) == date(2026, 3, 1)
        assert Clock("Asia/Tokyo").date_of(moment) == date(2026, 3, 2)

    def test_naive_datetimes_are_utc(self):
        moment = datetime(2026, 3, 1, 23, 30)
        assert Clock("America/New_York").date_of(moment) == date(2026, 3, 1)

    def test_today_matches_now(self):
        clock = Clock("UTC")
        assert clock.today() == clock.now().date()
