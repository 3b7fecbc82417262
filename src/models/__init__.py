"""
Data Models Package

This package contains all Pydantic models used in Finanzas Pro.
Every record the store hands to the engine conforms to these schemas.
"""

from src.models.finance import (
    CategorySet,
    DateRange,
    FinanceSnapshot,
    FixedExpense,
    FixedExpenseDraft,
    Transaction,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
)
from src.models.notice import (
    Notice,
    NoticeBuilder,
    NoticeSeverity,
    NoticeType,
)
from src.models.reports import (
    AggregationConfig,
    CashSplit,
    CategoryTotal,
    ComparisonResult,
    DaySummary,
    EvolutionPoint,
    FixedExpenseOverview,
    FixedExpenseStatus,
    Kpis,
    Metrics,
    YearOverYearRow,
    YearSeries,
)
from src.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Domain models
    "CategorySet",
    "DateRange",
    "FinanceSnapshot",
    "FixedExpense",
    "FixedExpenseDraft",
    "Transaction",
    "TransactionDraft",
    "TransactionStatus",
    "TransactionType",
    # Report models
    "AggregationConfig",
    "CashSplit",
    "CategoryTotal",
    "ComparisonResult",
    "DaySummary",
    "EvolutionPoint",
    "FixedExpenseOverview",
    "FixedExpenseStatus",
    "Kpis",
    "Metrics",
    "YearOverYearRow",
    "YearSeries",
    # Notice models
    "Notice",
    "NoticeBuilder",
    "NoticeSeverity",
    "NoticeType",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
]
