"""Tests for period arithmetic."""

from datetime import date
from decimal import Decimal

from src.analytics.periods import (
    business_days,
    day_label,
    describe_range,
    month_buckets,
    previous_period,
    round_money,
    uses_monthly_buckets,
)
from src.models.finance import DateRange


class TestPreviousPeriod:

    def test_leap_february(self):
        """Feb 2024 (29 days) maps to the 29 days ending Jan 31."""
        feb = DateRange.for_month(2024, 2)
        prev = previous_period(feb)
        assert prev.start_date == date(2024, 1, 3)
        assert prev.end_date == date(2024, 1, 31)

    def test_same_length(self):
        r = DateRange(start_date=date(2024, 3, 10), end_date=date(2024, 3, 19))
        prev = previous_period(r)
        assert prev.span_days == r.span_days
        assert prev.end_date == date(2024, 3, 9)

    def test_single_day(self):
        r = DateRange(start_date=date(2024, 1, 1), end_date=date(2024, 1, 1))
        prev = previous_period(r)
        assert prev.start_date == prev.end_date == date(2023, 12, 31)


class TestBusinessDays:

    def test_sundays_excluded(self):
        assert business_days(DateRange.for_month(2024, 1)) == 27

    def test_custom_rest_day(self):
        week = DateRange(start_date=date(2024, 1, 1), end_date=date(2024, 1, 7))
        assert business_days(week, rest_weekday=0) == 6

    def test_reversed_range(self):
        r = DateRange(start_date=date(2024, 1, 7), end_date=date(2024, 1, 1))
        assert business_days(r) == 0


class TestBuckets:

    def test_threshold(self):
        assert not uses_monthly_buckets(DateRange(start_date=date(2024, 1, 1), end_date=date(2024, 3, 1)))
        assert uses_monthly_buckets(DateRange(start_date=date(2024, 1, 1), end_date=date(2024, 3, 2)))

    def test_month_buckets_are_clipped(self):
        r = DateRange(start_date=date(2024, 1, 15), end_date=date(2024, 3, 10))
        buckets = month_buckets(r)
        assert [b.start_date for b in buckets] == [date(2024, 1, 15), date(2024, 2, 1), date(2024, 3, 1)]
        assert buckets[-1].end_date == date(2024, 3, 10)

    def test_month_buckets_across_year_end(self):
        r = DateRange(start_date=date(2023, 11, 1), end_date=date(2024, 2, 29))
        assert len(month_buckets(r)) == 4


class TestFormatting:

    def test_round_money_half_up(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("-2.345")) == Decimal("-2.35")

    def test_labels(self):
        assert day_label(date(2024, 1, 5)) == "05 ene"
        assert describe_range(DateRange.for_month(2024, 3)) == "marzo 2024"
