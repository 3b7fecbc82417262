"""
Fixed-Expense Processor

A FixedExpense is a forecast, not a movement. Paying it for a month creates
one concrete expense Transaction linked back by `fixed_expense_id`.

Payment status is NEVER stored. It is derived every time by looking for a
matching transaction in the month:
    Unpaid -> Paid   by processing the template (creates the transaction)
    Paid   -> Unpaid by deleting that transaction

Matching is best-effort. Records created before templates were linked by id
are matched by description and amount; when several qualify the first one
wins. Two identical legacy payments in one month cannot be told apart.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from src.analytics.periods import filter_by_range
from src.config import get_finance_settings
from src.models.finance import (
    DateRange,
    FixedExpense,
    Transaction,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
    format_year_month,
    parse_year_month,
)
from src.models.reports import ZERO, FixedExpenseOverview, FixedExpenseStatus


def process_fixed_expense(
    template: FixedExpense,
    actual_amount: Decimal,
    payment_date: date,
    transaction_id: Optional[str] = None,
) -> Transaction:
    """
    Build the paid expense for one occurrence of `template`.

    `actual_amount` may differ from the template's expected amount; the user
    confirms what was really paid.
    """
    return build_fixed_expense_draft(template, actual_amount, payment_date).to_transaction(transaction_id)


def build_fixed_expense_draft(
    template: FixedExpense,
    actual_amount: Decimal,
    payment_date: date,
) -> TransactionDraft:
    """Same as `process_fixed_expense`, without an id, for the store to assign one."""
    return TransactionDraft(
        description=template.description,
        amount=actual_amount,
        type=TransactionType.EXPENSE,
        date=payment_date,
        category=template.category or get_finance_settings().fixed_expense_category,
        status=TransactionStatus.PAID,
        fixed_expense_id=template.id,
    )


def scheduled_date(template: FixedExpense, year_month: str) -> date:
    """The template's day in that month, clamped to the month's length (day 1 if unset)."""
    first_day = DateRange.from_year_month(year_month).start_date
    return first_day + relativedelta(day=template.day or 1)


def _first(transactions: Iterable[Transaction], predicate) -> Optional[Transaction]:
    for t in transactions:
        if predicate(t):
            return t
    return None


def get_payment_status(
    template: FixedExpense,
    year_month: str,
    transactions: Iterable[Transaction],
) -> Optional[Transaction]:
    """
    The transaction that paid `template` in `year_month`, or None.

    Linked records win; otherwise the first legacy record in the month with
    the same description and amount.
    """
    in_month = filter_by_range(transactions, DateRange.from_year_month(year_month))
    linked = _first(in_month, lambda t: t.fixed_expense_id == template.id)
    if linked is not None:
        return linked
    return _first(
        in_month,
        lambda t: t.description == template.description and t.amount == template.amount,
    )


def previous_year_month(year_month: str) -> str:
    year, month = parse_year_month(year_month)
    previous = date(year, month, 1) - relativedelta(months=1)
    return format_year_month(previous.year, previous.month)


def get_last_month_reference(
    template: FixedExpense,
    year_month: str,
    transactions: Iterable[Transaction],
) -> Optional[Decimal]:
    """
    What was paid for `template` the month before `year_month`.

    Only a hint for the confirmation form, so the legacy match is relaxed to
    description alone: the amount may well have changed.
    """
    in_month = filter_by_range(transactions, DateRange.from_year_month(previous_year_month(year_month)))
    match = _first(in_month, lambda t: t.fixed_expense_id == template.id)
    if match is None:
        match = _first(in_month, lambda t: t.description == template.description)
    return match.amount if match is not None else None


def monthly_overview(
    templates: Sequence[FixedExpense],
    year_month: str,
    transactions: Iterable[Transaction],
) -> FixedExpenseOverview:
    """Status of every template for one month, with expected/paid/outstanding totals."""
    transactions = tuple(transactions)
    rows = []
    total_expected = total_paid = total_outstanding = ZERO
    for template in templates:
        payment = get_payment_status(template, year_month, transactions)
        rows.append(FixedExpenseStatus(
            template=template,
            year_month=year_month,
            scheduled_date=scheduled_date(template, year_month),
            payment=payment,
            last_month_amount=get_last_month_reference(template, year_month, transactions),
        ))
        total_expected += template.amount
        if payment is not None:
            total_paid += payment.amount
        else:
            total_outstanding += template.amount
    return FixedExpenseOverview(
        year_month=year_month,
        rows=rows,
        total_expected=total_expected,
        total_paid=total_paid,
        total_outstanding=total_outstanding,
    )
