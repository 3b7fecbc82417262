"""
Period Comparisons

Evaluates one metric on arbitrary periods (a month, a full year, a year to
date, or a custom range) and compares them. Also builds year-over-year
overlays with one 12-point series per year, aligned by month of year.

Every value uses the same rule as the dashboard: PAID transactions only.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, model_validator

from src.analytics.aggregations import percent_change
from src.analytics.periods import MONTH_ABBREVIATIONS, filter_by_range
from src.models.finance import (
    CategorySet,
    DateRange,
    Transaction,
    TransactionType,
    parse_year_month,
)
from src.models.reports import ZERO, ComparisonResult, YearOverYearRow, YearSeries


class PeriodKind(str, Enum):
    MONTH = "month"
    YEAR = "year"
    YTD = "ytd"
    CUSTOM = "custom"


class PeriodSpec(BaseModel):
    """
    A period to compare.

    - month:  `year_month` = 'YYYY-MM'
    - year:   `year`
    - ytd:    `year`, from Jan 1 through the month/day of `as_of`
    - custom: `date_range`
    """
    model_config = ConfigDict(frozen=True)

    kind: PeriodKind
    year_month: Optional[str] = None
    year: Optional[int] = None
    as_of: Optional[date] = None
    date_range: Optional[DateRange] = None

    @model_validator(mode='after')
    def check_fields(self) -> 'PeriodSpec':
        if self.kind == PeriodKind.MONTH:
            if not self.year_month:
                raise ValueError("Month periods need year_month")
            parse_year_month(self.year_month)
        elif self.kind in (PeriodKind.YEAR, PeriodKind.YTD) and self.year is None:
            raise ValueError(f"{self.kind.value} periods need a year")
        elif self.kind == PeriodKind.CUSTOM and self.date_range is None:
            raise ValueError("Custom periods need a date_range")
        return self

    @classmethod
    def month(cls, year_month: str) -> "PeriodSpec":
        return cls(kind=PeriodKind.MONTH, year_month=year_month)

    @classmethod
    def full_year(cls, year: int) -> "PeriodSpec":
        return cls(kind=PeriodKind.YEAR, year=year)

    @classmethod
    def year_to_date(cls, year: int, as_of: Optional[date] = None) -> "PeriodSpec":
        return cls(kind=PeriodKind.YTD, year=year, as_of=as_of)

    @classmethod
    def custom(cls, start_date: date, end_date: date) -> "PeriodSpec":
        return cls(kind=PeriodKind.CUSTOM, date_range=DateRange(start_date=start_date, end_date=end_date))

    def to_range(self) -> DateRange:
        if self.kind == PeriodKind.MONTH:
            return DateRange.from_year_month(self.year_month)
        if self.kind == PeriodKind.YEAR:
            return DateRange.for_year(self.year)
        if self.kind == PeriodKind.YTD:
            as_of = self.as_of or date.today()
            start = date(self.year, 1, 1)
            # Feb 29 lands on Feb 28 in common years
            end = start + relativedelta(month=as_of.month, day=as_of.day)
            return DateRange(start_date=start, end_date=end)
        return self.date_range

    def label(self) -> str:
        if self.kind == PeriodKind.MONTH:
            year, month = parse_year_month(self.year_month)
            return f"{MONTH_ABBREVIATIONS[month - 1]} {year}"
        if self.kind == PeriodKind.YEAR:
            return str(self.year)
        if self.kind == PeriodKind.YTD:
            return f"{self.year} (acumulado)"
        return str(self.date_range)


class MetricKind(str, Enum):
    TOTAL_INCOME = "total_income"
    TOTAL_EXPENSE = "total_expense"
    NET_INCOME = "net_income"
    CATEGORY = "category"


CATEGORY_METRIC_PREFIXES = {
    "cat_exp_": TransactionType.EXPENSE,
    "cat_inc_": TransactionType.INCOME,
}


class ComparisonMetric(BaseModel):
    """What to measure on each period."""
    model_config = ConfigDict(frozen=True)

    kind: MetricKind
    category: Optional[str] = None
    transaction_type: Optional[TransactionType] = None

    @model_validator(mode='after')
    def check_category(self) -> 'ComparisonMetric':
        if self.kind == MetricKind.CATEGORY and (not self.category or self.transaction_type is None):
            raise ValueError("Category metrics need a category and a transaction type")
        return self

    @classmethod
    def parse(cls, metric_id: str) -> "ComparisonMetric":
        """
        Read a metric id: 'total_income', 'total_expense', 'net_income',
        'cat_exp_<name>' or 'cat_inc_<name>'.
        """
        for prefix, transaction_type in CATEGORY_METRIC_PREFIXES.items():
            if metric_id.startswith(prefix):
                return cls(
                    kind=MetricKind.CATEGORY,
                    category=metric_id[len(prefix):],
                    transaction_type=transaction_type,
                )
        return cls(kind=MetricKind(metric_id))

    @property
    def metric_id(self) -> str:
        if self.kind != MetricKind.CATEGORY:
            return self.kind.value
        prefix = "cat_exp_" if self.transaction_type == TransactionType.EXPENSE else "cat_inc_"
        return f"{prefix}{self.category}"

    @property
    def label(self) -> str:
        if self.kind == MetricKind.TOTAL_INCOME:
            return "Facturación Total"
        if self.kind == MetricKind.TOTAL_EXPENSE:
            return "Gastos Totales"
        if self.kind == MetricKind.NET_INCOME:
            return "Beneficio Neto"
        side = "Gasto" if self.transaction_type == TransactionType.EXPENSE else "Ingreso"
        return f"{side}: {self.category}"


def available_metrics(categories: CategorySet) -> list[ComparisonMetric]:
    """Base metrics followed by one per expense category, then per income category."""
    metrics = [
        ComparisonMetric(kind=MetricKind.TOTAL_INCOME),
        ComparisonMetric(kind=MetricKind.TOTAL_EXPENSE),
        ComparisonMetric(kind=MetricKind.NET_INCOME),
    ]
    for transaction_type in (TransactionType.EXPENSE, TransactionType.INCOME):
        seen = set()
        for label in categories.labels(transaction_type):
            if label in seen:
                continue
            seen.add(label)
            metrics.append(ComparisonMetric(
                kind=MetricKind.CATEGORY,
                category=label,
                transaction_type=transaction_type,
            ))
    return metrics


def _range_value(
    transactions: Iterable[Transaction],
    date_range: DateRange,
    metric: ComparisonMetric,
) -> Decimal:
    income = expense = ZERO
    for t in filter_by_range(transactions, date_range):
        if not t.is_paid:
            continue
        if metric.kind == MetricKind.CATEGORY:
            if t.type != metric.transaction_type or t.category != metric.category:
                continue
        if t.type == TransactionType.INCOME:
            income += t.amount
        else:
            expense += t.amount

    if metric.kind == MetricKind.TOTAL_INCOME:
        return income
    if metric.kind == MetricKind.TOTAL_EXPENSE:
        return expense
    if metric.kind == MetricKind.NET_INCOME:
        return income - expense
    return income if metric.transaction_type == TransactionType.INCOME else expense


def metric_value(
    transactions: Iterable[Transaction],
    period: PeriodSpec,
    metric: ComparisonMetric,
) -> Decimal:
    """The metric over one period, paid transactions only."""
    return _range_value(transactions, period.to_range(), metric)


def compare_periods(
    transactions: Iterable[Transaction],
    period_a: PeriodSpec,
    period_b: PeriodSpec,
    metric: ComparisonMetric,
) -> ComparisonResult:
    """
    Evaluate `metric` on both periods independently.

    difference = B - A; percent change relative to A (100 when A is zero
    and B grew, 0 when both are zero).
    """
    transactions = tuple(transactions)
    value_a = metric_value(transactions, period_a, metric)
    value_b = metric_value(transactions, period_b, metric)
    return ComparisonResult(
        metric=metric.metric_id,
        period_a=period_a.to_range(),
        period_b=period_b.to_range(),
        value_a=value_a,
        value_b=value_b,
        difference=value_b - value_a,
        percent_change=percent_change(value_b, value_a),
    )


def year_over_year(
    transactions: Iterable[Transaction],
    years: Sequence[int],
    metric: ComparisonMetric,
) -> list[YearSeries]:
    """
    One series per year, twelve monthly values each, in the order given.

    Month N of every year lines up with month N of the others regardless of
    how many days each month has.
    """
    transactions = tuple(transactions)
    series = []
    for year in years:
        values = [
            _range_value(transactions, DateRange.for_month(year, month), metric)
            for month in range(1, 13)
        ]
        series.append(YearSeries(year=year, values=values))
    return series


def year_over_year_rows(series: Sequence[YearSeries]) -> list[YearOverYearRow]:
    """Pivot series into twelve rows, one value per year, for overlay charts."""
    return [
        YearOverYearRow(
            month=month,
            label=MONTH_ABBREVIATIONS[month - 1],
            values={s.year: s.values[month - 1] for s in series},
        )
        for month in range(1, 13)
    ]
