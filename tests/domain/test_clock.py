"""Tests for clocks (budget_kernel.domain.clock)."""

from datetime import datetime, timezone

from budget_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:
    def test_default_time(self):
        assert DeterministicClock().current_year() == 2024

    def test_set_and_advance(self):
        clock = DeterministicClock(datetime(2023, 12, 31, 23, 59, 59, tzinfo=timezone.utc))
        clock.advance(1)
        assert clock.current_year() == 2024
        clock.set_time(datetime(2020, 5, 1, tzinfo=timezone.utc))
        assert clock.now().year == 2020


class TestSystemClock:
    def test_now_is_timezone_aware(self):
        assert SystemClock().now().tzinfo is not None
