"""Fixed-expense processing package."""

from src.fixed_expenses.processor import (
    build_fixed_expense_draft,
    get_last_month_reference,
    get_payment_status,
    monthly_overview,
    previous_year_month,
    process_fixed_expense,
    scheduled_date,
)

__all__ = [
    "build_fixed_expense_draft",
    "get_last_month_reference",
    "get_payment_status",
    "monthly_overview",
    "previous_year_month",
    "process_fixed_expense",
    "scheduled_date",
]
