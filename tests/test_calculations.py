#!/usr/bin/env python3
"""Tests for calculation helper functions."""
from datetime import datetime

from dateutil import tz

from models import INTERVAL_MONTHS, MaintenanceKind, calc_due_date, is_overdue


def at(year, month, day):
    return datetime(year, month, day, tzinfo=tz.UTC)


class TestIntervals:
    """Tests for the maintenance interval table."""

    def test_interval_months(self):
        assert INTERVAL_MONTHS[MaintenanceKind.SERVICE] == 6
        assert INTERVAL_MONTHS[MaintenanceKind.OIL] == 3
        assert INTERVAL_MONTHS[MaintenanceKind.ACCU] == 12


class TestCalcDueDate:
    """Tests for calc_due_date helper function."""

    def test_adds_calendar_months(self):
        """last_date + interval_months."""
        assert calc_due_date(at(2024, 1, 15), 6) == at(2024, 7, 15)

    def test_crosses_year(self):
        assert calc_due_date(at(2023, 11, 15), 3) == at(2024, 2, 15)

    def test_rolls_over_short_month(self):
        """Days past the end of a shorter month carry into the next month."""
        assert calc_due_date(at(2024, 8, 31), 6) == at(2025, 3, 3)

    def test_rolls_over_leap_february(self):
        assert calc_due_date(at(2023, 11, 30), 3) == at(2024, 3, 1)

    def test_month_end_that_fits(self):
        assert calc_due_date(at(2024, 1, 31), 12) == at(2025, 1, 31)

    def test_keeps_time_of_day(self):
        last = datetime(2024, 1, 15, 10, 30, tzinfo=tz.UTC)
        assert calc_due_date(last, 12) == datetime(2025, 1, 15, 10, 30, tzinfo=tz.UTC)

    def test_without_last_date(self):
        """None when there is no last date."""
        assert calc_due_date(None, 6) is None

    def test_no_interval(self):
        """None when no interval defined."""
        assert calc_due_date(at(2025, 1, 15), None) is None


class TestIsOverdue:
    """Tests for is_overdue helper function."""

    def test_strictly_before_now(self):
        assert is_overdue(at(2024, 7, 15), at(2024, 7, 16)) is True

    def test_equal_is_not_overdue(self):
        assert is_overdue(at(2024, 7, 15), at(2024, 7, 15)) is False

    def test_future_is_not_overdue(self):
        assert is_overdue(at(2024, 7, 15), at(2024, 7, 14)) is False

    def test_none_is_not_overdue(self):
        assert is_overdue(None, at(2024, 7, 16)) is False
