"""Tests for clock helpers and calendar boundaries."""

from datetime import date, datetime, timedelta, timezone

from sharaspot_engine.clock import FixedClock, SystemClock, hours_between, resolve_timezone


class TestFixedClock:
    def test_naive_datetime_treated_as_utc(self) -> None:
        clock = FixedClock(datetime(2026, 3, 1, 12, 0))
        assert clock.now().tzinfo == timezone.utc

    def test_advance_and_set(self) -> None:
        clock = FixedClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))
        clock.advance(hours=13)
        assert clock.today() == date(2026, 3, 2)

        clock.set(datetime(2026, 1, 31, 23, 59, tzinfo=timezone.utc))
        assert clock.today() == date(2026, 1, 31)

    def test_start_of_month_and_day_utc(self) -> None:
        clock = FixedClock(datetime(2026, 3, 17, 8, 30, tzinfo=timezone.utc))
        assert clock.start_of_month() == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert clock.start_of_day() == datetime(2026, 3, 17, tzinfo=timezone.utc)

    def test_start_of_day_in_engine_timezone(self) -> None:
        # 20:00 UTC is 01:30 the next day in Kolkata
        clock = FixedClock(datetime(2026, 3, 17, 20, 0, tzinfo=timezone.utc), tz_name="Asia/Kolkata")
        assert clock.today() == date(2026, 3, 18)
        assert clock.start_of_day() == datetime(2026, 3, 17, 18, 30, tzinfo=timezone.utc)


class TestHelpers:
    def test_hours_between(self) -> None:
        start = datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert hours_between(start, start + timedelta(hours=36)) == 36.0
        assert hours_between(start + timedelta(hours=2), start) == -2.0

    def test_resolve_utc(self) -> None:
        assert resolve_timezone("UTC") is timezone.utc
        assert resolve_timezone("utc") is timezone.utc

    def test_system_clock_is_aware(self) -> None:
        assert SystemClock("UTC").now().tzinfo is not None
