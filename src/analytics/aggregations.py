"""
Aggregation Engine

DESIGN DECISION: Every metric is a pure function of the transaction list
(and a DateRange where the metric is scoped to a period).

- GLOBAL metrics (balance, projected balance) ignore the range.
- PERIOD metrics count only transactions dated inside the range.
- PAID vs PENDING: the realized balance and every chart use PAID only.
  PENDING only shows up in the projection and the pending totals.

No function here performs I/O or raises on valid input. Empty lists and
reversed ranges give zeros and empty series.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from src.analytics.periods import (
    business_days,
    day_label,
    filter_by_range,
    month_buckets,
    month_label,
    previous_period,
    round_money,
    uses_monthly_buckets,
)
from src.config import get_finance_settings
from src.models.finance import (
    DateRange,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from src.models.reports import (
    ZERO,
    AggregationConfig,
    CashSplit,
    CategoryTotal,
    DaySummary,
    EvolutionPoint,
    Kpis,
    Metrics,
)


def _sum_amounts(
    transactions: Iterable[Transaction],
    transaction_type: Optional[TransactionType] = None,
    status: Optional[TransactionStatus] = None,
) -> Decimal:
    total = ZERO
    for t in transactions:
        if transaction_type is not None and t.type != transaction_type:
            continue
        if status is not None and t.status != status:
            continue
        total += t.amount
    return total


# =============================================================================
# GLOBAL
# =============================================================================

def balance(transactions: Iterable[Transaction]) -> Decimal:
    """Realized balance: paid income minus paid expenses, all time."""
    return sum((t.signed_amount for t in transactions if t.is_paid), ZERO)


def projected_balance(transactions: Iterable[Transaction]) -> Decimal:
    """Balance if every pending item settled as recorded, all time."""
    return sum((t.signed_amount for t in transactions), ZERO)


# =============================================================================
# PERIOD
# =============================================================================

def period_income(transactions: Iterable[Transaction], date_range: DateRange) -> Decimal:
    return _sum_amounts(
        filter_by_range(transactions, date_range),
        TransactionType.INCOME,
        TransactionStatus.PAID,
    )


def period_expenses(transactions: Iterable[Transaction], date_range: DateRange) -> Decimal:
    return _sum_amounts(
        filter_by_range(transactions, date_range),
        TransactionType.EXPENSE,
        TransactionStatus.PAID,
    )


def period_pending_income(transactions: Iterable[Transaction], date_range: DateRange) -> Decimal:
    return _sum_amounts(
        filter_by_range(transactions, date_range),
        TransactionType.INCOME,
        TransactionStatus.PENDING,
    )


def period_pending_expenses(transactions: Iterable[Transaction], date_range: DateRange) -> Decimal:
    return _sum_amounts(
        filter_by_range(transactions, date_range),
        TransactionType.EXPENSE,
        TransactionStatus.PENDING,
    )


def previous_period_income(transactions: Iterable[Transaction], date_range: DateRange) -> Decimal:
    """Paid income over the window of equal length just before `date_range`."""
    return period_income(transactions, previous_period(date_range))


def previous_period_expenses(transactions: Iterable[Transaction], date_range: DateRange) -> Decimal:
    return period_expenses(transactions, previous_period(date_range))


def percent_change(current: Decimal, previous: Decimal) -> Decimal:
    """
    (current - previous) / previous * 100, rounded to cents.

    From zero: 100 if the value grew, else 0.
    """
    current, previous = Decimal(current), Decimal(previous)
    if previous == 0:
        return Decimal("100") if current > 0 else ZERO
    return round_money((current - previous) / previous * 100)


# =============================================================================
# BREAKDOWNS
# =============================================================================

def _group_totals(
    transactions: Iterable[Transaction],
    key: Callable[[Transaction], str],
) -> list[CategoryTotal]:
    totals: dict[str, Decimal] = {}
    for t in transactions:
        name = key(t)
        totals[name] = totals.get(name, ZERO) + t.amount
    # sorted() is stable: ties keep first-seen order
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [CategoryTotal(name=name, value=round_money(value)) for name, value in ordered]


def category_breakdown(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType = TransactionType.EXPENSE,
    status: TransactionStatus = TransactionStatus.PAID,
) -> list[CategoryTotal]:
    """Totals per category, largest first. Uncategorized records land in the default bucket."""
    default_category = get_finance_settings().default_category
    selected = [t for t in transactions if t.type == transaction_type and t.status == status]
    return _group_totals(selected, lambda t: t.category or default_category)


def payment_method_breakdown(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType = TransactionType.INCOME,
    unspecified_label: Optional[str] = None,
) -> list[CategoryTotal]:
    """Paid totals per payment method; records without one go to the legacy bucket."""
    if unspecified_label is None:
        unspecified_label = get_finance_settings().unspecified_payment_method
    selected = [t for t in transactions if t.type == transaction_type and t.is_paid]
    return _group_totals(selected, lambda t: t.payment_method or unspecified_label)


def cash_split(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType = TransactionType.INCOME,
    cash_label: Optional[str] = None,
) -> CashSplit:
    """
    Paid totals split into cash and everything else.

    A record without a payment method counts as "everything else".
    """
    if cash_label is None:
        cash_label = get_finance_settings().cash_payment_method
    cash = other = ZERO
    for t in transactions:
        if t.type != transaction_type or not t.is_paid:
            continue
        if t.payment_method == cash_label:
            cash += t.amount
        else:
            other += t.amount
    return CashSplit(cash=round_money(cash), other=round_money(other))


def top_expenses(
    transactions: Iterable[Transaction],
    date_range: DateRange,
    limit: Optional[int] = None,
) -> list[Transaction]:
    """Largest paid expenses in the range."""
    if limit is None:
        limit = get_finance_settings().top_expenses_limit
    expenses = [
        t for t in filter_by_range(transactions, date_range)
        if t.type == TransactionType.EXPENSE and t.is_paid
    ]
    expenses.sort(key=lambda t: t.amount, reverse=True)
    return expenses[:limit]


# =============================================================================
# TIME SERIES
# =============================================================================

def _bucket_point(key: str, label: str, income: Decimal, expense: Decimal) -> EvolutionPoint:
    income, expense = round_money(income), round_money(expense)
    return EvolutionPoint(
        key=key,
        label=label,
        income=income,
        expense=expense,
        profit=round_money(income - expense),
    )


def evolution_series(
    transactions: Iterable[Transaction],
    date_range: DateRange,
    threshold_days: Optional[int] = None,
) -> list[EvolutionPoint]:
    """
    Paid income, expense and profit per bucket, with no gaps.

    Daily buckets unless the range spans more than `threshold_days`
    (60 by default), in which case calendar months clipped to the range.
    A reversed range gives an empty series.
    """
    if date_range.is_reversed:
        return []

    income_by_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
    expense_by_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for t in filter_by_range(transactions, date_range):
        if not t.is_paid:
            continue
        if t.type == TransactionType.INCOME:
            income_by_day[t.date] += t.amount
        else:
            expense_by_day[t.date] += t.amount

    if not uses_monthly_buckets(date_range, threshold_days):
        return [
            _bucket_point(day.isoformat(), day_label(day), income_by_day[day], expense_by_day[day])
            for day in date_range.days()
        ]

    points = []
    for bucket in month_buckets(date_range):
        income = sum((v for d, v in income_by_day.items() if bucket.contains(d)), ZERO)
        expense = sum((v for d, v in expense_by_day.items() if bucket.contains(d)), ZERO)
        year, month = bucket.start_date.year, bucket.start_date.month
        points.append(_bucket_point(f"{year:04d}-{month:02d}", month_label(year, month), income, expense))
    return points


def business_day_average(
    transactions: Iterable[Transaction],
    date_range: DateRange,
    transaction_type: TransactionType = TransactionType.EXPENSE,
    rest_weekday: Optional[int] = None,
) -> Decimal:
    """
    Paid total in the range divided by its business days (never less than 1).
    """
    total = _sum_amounts(
        filter_by_range(transactions, date_range),
        transaction_type,
        TransactionStatus.PAID,
    )
    days = max(1, business_days(date_range, rest_weekday))
    return round_money(total / days)


def kpis(transactions: Sequence[Transaction], date_range: DateRange) -> Kpis:
    """Income, expenses, savings and daily averages for the analytics view."""
    in_range = filter_by_range(transactions, date_range)
    total_income = _sum_amounts(in_range, TransactionType.INCOME, TransactionStatus.PAID)
    total_expenses = _sum_amounts(in_range, TransactionType.EXPENSE, TransactionStatus.PAID)
    savings = total_income - total_expenses
    savings_rate = round_money(savings / total_income * 100) if total_income > 0 else ZERO
    return Kpis(
        total_income=total_income,
        total_expenses=total_expenses,
        savings=savings,
        savings_rate=savings_rate,
        business_days=business_days(date_range),
        avg_daily_income=business_day_average(in_range, date_range, TransactionType.INCOME),
        avg_daily_expense=business_day_average(in_range, date_range, TransactionType.EXPENSE),
    )


# =============================================================================
# CALENDAR
# =============================================================================

def day_summary(transactions: Iterable[Transaction], day: date) -> DaySummary:
    """
    Everything recorded on one day.

    The calendar shows every movement, so pending ones are included here.
    """
    selected = [t for t in transactions if t.date == day]
    income = _sum_amounts(selected, TransactionType.INCOME)
    expense = _sum_amounts(selected, TransactionType.EXPENSE)
    return DaySummary(
        day=day,
        income=income,
        expense=expense,
        net=income - expense,
        transactions=selected,
    )


def calendar_month(transactions: Iterable[Transaction], year_month: str) -> list[DaySummary]:
    """One summary per day of the month that has movements, in date order."""
    month_range = DateRange.from_year_month(year_month)
    by_day: dict[date, list[Transaction]] = defaultdict(list)
    for t in filter_by_range(transactions, month_range):
        by_day[t.date].append(t)
    return [day_summary(by_day[day], day) for day in sorted(by_day)]


# =============================================================================
# ENTRY POINT
# =============================================================================

def aggregate(
    transactions: Iterable[Transaction],
    date_range: Optional[DateRange] = None,
    config: Optional[AggregationConfig] = None,
) -> Metrics:
    """
    Compute every dashboard metric for one snapshot.

    Args:
        transactions: The full collection as currently known
        date_range: Period for period metrics (defaults to the current month)
        config: What to break down and whether to build series

    Returns:
        Metrics; all zeros for an empty collection
    """
    transactions = tuple(transactions)
    date_range = date_range or DateRange.current_month()
    config = config or AggregationConfig()

    in_range = filter_by_range(transactions, date_range)
    prev_range = previous_period(date_range)

    income = period_income(in_range, date_range)
    expenses = period_expenses(in_range, date_range)
    prev_income = period_income(transactions, prev_range)
    prev_expenses = period_expenses(transactions, prev_range)

    return Metrics(
        date_range=date_range,
        balance=balance(transactions),
        projected_balance=projected_balance(transactions),
        period_income=income,
        period_expenses=expenses,
        period_pending_income=period_pending_income(in_range, date_range),
        period_pending_expenses=period_pending_expenses(in_range, date_range),
        previous_range=prev_range,
        previous_period_income=prev_income,
        previous_period_expenses=prev_expenses,
        income_change=percent_change(income, prev_income),
        expense_change=percent_change(expenses, prev_expenses),
        category_breakdown=category_breakdown(in_range, config.breakdown_type, config.breakdown_status),
        method_breakdown=payment_method_breakdown(in_range, config.method_type),
        cash_split=cash_split(in_range, config.method_type),
        top_expenses=top_expenses(in_range, date_range, config.top_limit),
        evolution=evolution_series(in_range, date_range) if config.include_series else [],
        kpis=kpis(in_range, date_range),
    )
