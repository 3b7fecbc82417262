"""
Report Models

Outputs of the aggregation engine and the fixed-expense processor.
All monetary values are Decimals already rounded to cents where they feed
a chart, so re-running an aggregation gives identical output.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.finance import (
    DateRange,
    FixedExpense,
    Transaction,
    TransactionStatus,
    TransactionType,
)


ZERO = Decimal("0")


class AggregationConfig(BaseModel):
    """
    Explicit selection of what `aggregate` should compute.

    Replaces the scattered UI toggles with one immutable value.
    """
    model_config = ConfigDict(frozen=True)

    breakdown_type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="Which side the category breakdown groups"
    )
    breakdown_status: TransactionStatus = TransactionStatus.PAID
    method_type: TransactionType = Field(
        default=TransactionType.INCOME,
        description="Which side the payment method breakdown groups"
    )
    top_limit: Optional[int] = Field(
        default=None,
        ge=1,
        description="Number of top expenses, None uses the configured default"
    )
    include_series: bool = True


class CategoryTotal(BaseModel):
    """One slice of a breakdown."""
    name: str
    value: Decimal


class CashSplit(BaseModel):
    """Coarse cash vs. everything-else split."""
    cash: Decimal = ZERO
    other: Decimal = ZERO


class EvolutionPoint(BaseModel):
    """One bucket (a day or a month) of the evolution series."""
    key: str = Field(..., description="ISO day or YYYY-MM")
    label: str
    income: Decimal = ZERO
    expense: Decimal = ZERO
    profit: Decimal = ZERO


class Kpis(BaseModel):
    """Headline numbers for the analytics view."""
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    savings: Decimal = ZERO
    savings_rate: Decimal = ZERO
    business_days: int = 0
    avg_daily_income: Decimal = ZERO
    avg_daily_expense: Decimal = ZERO


class DaySummary(BaseModel):
    """Calendar cell: every movement of one day, whatever its status."""
    day: date
    income: Decimal = ZERO
    expense: Decimal = ZERO
    net: Decimal = ZERO
    transactions: list[Transaction] = Field(default_factory=list)


class Metrics(BaseModel):
    """Everything the dashboard needs for one snapshot and range."""

    date_range: DateRange

    # Global (ignore the range)
    balance: Decimal = ZERO
    projected_balance: Decimal = ZERO

    # Period
    period_income: Decimal = ZERO
    period_expenses: Decimal = ZERO
    period_pending_income: Decimal = ZERO
    period_pending_expenses: Decimal = ZERO

    # Previous window of the same length
    previous_range: DateRange
    previous_period_income: Decimal = ZERO
    previous_period_expenses: Decimal = ZERO
    income_change: Decimal = ZERO
    expense_change: Decimal = ZERO

    # Breakdowns
    category_breakdown: list[CategoryTotal] = Field(default_factory=list)
    method_breakdown: list[CategoryTotal] = Field(default_factory=list)
    cash_split: CashSplit = Field(default_factory=CashSplit)
    top_expenses: list[Transaction] = Field(default_factory=list)

    # Series
    evolution: list[EvolutionPoint] = Field(default_factory=list)
    kpis: Kpis = Field(default_factory=Kpis)

    @property
    def period_net(self) -> Decimal:
        return self.period_income - self.period_expenses


class ComparisonResult(BaseModel):
    """Metric evaluated on two periods."""
    metric: str
    period_a: DateRange
    period_b: DateRange
    value_a: Decimal
    value_b: Decimal
    difference: Decimal
    percent_change: Decimal


class YearSeries(BaseModel):
    """Twelve monthly values of one metric for one year."""
    year: int
    values: list[Decimal] = Field(..., min_length=12, max_length=12)

    @property
    def total(self) -> Decimal:
        return sum(self.values, ZERO)


class YearOverYearRow(BaseModel):
    """One month of an overlay chart, one value per year."""
    month: int = Field(..., ge=1, le=12)
    label: str
    values: dict[int, Decimal] = Field(default_factory=dict)


class FixedExpenseStatus(BaseModel):
    """Derived payment state of a template for one month."""
    template: FixedExpense
    year_month: str
    scheduled_date: date
    payment: Optional[Transaction] = None
    last_month_amount: Optional[Decimal] = None

    @property
    def is_paid(self) -> bool:
        return self.payment is not None


class FixedExpenseOverview(BaseModel):
    """All templates for one month, with totals."""
    year_month: str
    rows: list[FixedExpenseStatus] = Field(default_factory=list)
    total_expected: Decimal = ZERO
    total_paid: Decimal = ZERO
    total_outstanding: Decimal = ZERO

    @property
    def paid_count(self) -> int:
        return sum(1 for row in self.rows if row.is_paid)
