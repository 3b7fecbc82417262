"""
Period Arithmetic

Range filtering, previous-period derivation, business days and bucketing.
Everything here is pure: same input, same output, no shared state.
"""

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from src.config import get_finance_settings
from src.models.finance import DateRange, Transaction


CENT = Decimal("0.01")

# Spanish month abbreviations used in chart labels
MONTH_ABBREVIATIONS = (
    "ene", "feb", "mar", "abr", "may", "jun",
    "jul", "ago", "sep", "oct", "nov", "dic",
)
MONTH_NAMES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def filter_by_range(
    transactions: Iterable[Transaction],
    date_range: DateRange,
) -> list[Transaction]:
    """Transactions whose date lies in [start, end], both ends included."""
    return [t for t in transactions if date_range.start_date <= t.date <= date_range.end_date]


def previous_period(date_range: DateRange) -> DateRange:
    """
    Window of the same length immediately before `date_range`.

    duration = end - start; prev_end = start - 1 day; prev_start = prev_end - duration.
    Only calendar-aligned when the current range is itself a calendar month
    of the same length as the one before it.
    """
    duration = date_range.end_date - date_range.start_date
    prev_end = date_range.start_date - timedelta(days=1)
    return DateRange(start_date=prev_end - duration, end_date=prev_end)


def business_days(date_range: DateRange, rest_weekday: Optional[int] = None) -> int:
    """
    Days in the range that are not the weekly rest day (Sunday by default).

    Six-day trading week. A reversed range has no days.
    """
    if rest_weekday is None:
        rest_weekday = get_finance_settings().rest_weekday
    return sum(1 for day in date_range.days() if day.weekday() != rest_weekday)


def uses_monthly_buckets(date_range: DateRange, threshold_days: Optional[int] = None) -> bool:
    """Ranges spanning more than the threshold (60 days) are bucketed by month."""
    if threshold_days is None:
        threshold_days = get_finance_settings().monthly_bucket_threshold_days
    return date_range.span_days > threshold_days


def month_buckets(date_range: DateRange) -> list[DateRange]:
    """
    Calendar months touched by the range, each clipped to the range.

    Empty for a reversed range.
    """
    if date_range.is_reversed:
        return []
    buckets = []
    current = date_range.start_date.replace(day=1)
    while current <= date_range.end_date:
        month_range = DateRange.for_month(current.year, current.month)
        buckets.append(DateRange(
            start_date=max(month_range.start_date, date_range.start_date),
            end_date=min(month_range.end_date, date_range.end_date),
        ))
        current += relativedelta(months=1)
    return buckets


def day_label(day: date) -> str:
    """'05 ene'"""
    return f"{day.day:02d} {MONTH_ABBREVIATIONS[day.month - 1]}"


def month_label(year: int, month: int) -> str:
    """'ene 2024'"""
    return f"{MONTH_ABBREVIATIONS[month - 1]} {year}"


def describe_range(date_range: DateRange) -> str:
    """Human-readable range for headings."""
    start, end = date_range.start_date, date_range.end_date
    if start == end:
        return f"{start.day} de {MONTH_NAMES[start.month - 1]} de {start.year}"
    if date_range == DateRange.for_month(start.year, start.month):
        return f"{MONTH_NAMES[start.month - 1]} {start.year}"
    return f"{day_label(start)} - {day_label(end)}, {end.year}"
