"""
Aggregation engine package.

Pure functions from a transaction collection (plus a range or a period
pair) to derived metrics.
"""

from src.analytics.aggregations import (
    aggregate,
    balance,
    business_day_average,
    calendar_month,
    cash_split,
    category_breakdown,
    day_summary,
    evolution_series,
    kpis,
    payment_method_breakdown,
    percent_change,
    period_expenses,
    period_income,
    period_pending_expenses,
    period_pending_income,
    previous_period_expenses,
    previous_period_income,
    projected_balance,
    top_expenses,
)
from src.analytics.comparisons import (
    ComparisonMetric,
    MetricKind,
    PeriodKind,
    PeriodSpec,
    available_metrics,
    compare_periods,
    metric_value,
    year_over_year,
    year_over_year_rows,
)
from src.analytics.export import export_tables
from src.analytics.periods import (
    business_days,
    filter_by_range,
    month_buckets,
    previous_period,
    round_money,
)

__all__ = [
    # Engine
    "aggregate",
    "balance",
    "business_day_average",
    "calendar_month",
    "cash_split",
    "category_breakdown",
    "day_summary",
    "evolution_series",
    "kpis",
    "payment_method_breakdown",
    "percent_change",
    "period_expenses",
    "period_income",
    "period_pending_expenses",
    "period_pending_income",
    "previous_period_expenses",
    "previous_period_income",
    "projected_balance",
    "top_expenses",
    # Comparisons
    "ComparisonMetric",
    "MetricKind",
    "PeriodKind",
    "PeriodSpec",
    "available_metrics",
    "compare_periods",
    "metric_value",
    "year_over_year",
    "year_over_year_rows",
    # Periods
    "business_days",
    "filter_by_range",
    "month_buckets",
    "previous_period",
    "round_money",
    # Export
    "export_tables",
]
