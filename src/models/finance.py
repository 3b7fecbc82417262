"""
Core Domain Models for Finanzas Pro

These models define the records held by the document store and consumed by
the aggregation engine. They are designed to:
1. Reject malformed records before they reach any calculation
2. Accept the store's camelCase documents as well as snake_case keywords
3. Be immutable, so a snapshot can be shared between callers safely

DESIGN DECISION: Dates are native `date` values. Range checks compare them
inclusively on both ends, which matches ordering fixed-width ISO strings.
"""

from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from dateutil.relativedelta import relativedelta
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from src.config import get_finance_settings


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of the cash effect."""
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, Enum):
    """
    Whether the cash effect has happened.

    PAID transactions count towards the real balance.
    PENDING ones are forecasts and only count towards the projection.
    """
    PAID = "paid"
    PENDING = "pending"


def new_record_id() -> str:
    """Opaque identifier for a new document."""
    return uuid4().hex


def _default_category(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return get_finance_settings().default_category
    return value


class DocumentModel(BaseModel):
    """Base for records stored as camelCase documents."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_document(self) -> dict:
        """Serialize for the document store (camelCase keys, no empty fields)."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(DocumentModel):
    """
    A transaction as entered, before the store assigns its id.

    This is the payload of the add-transaction intent.
    """

    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the movement was"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount in currency units (always positive)"
    )
    type: TransactionType
    date: date
    category: str = Field(
        default="",
        max_length=100,
        validate_default=True,
        description="Free-text label, defaults to the configured fallback"
    )
    status: TransactionStatus = TransactionStatus.PAID
    payment_method: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Cash, card, transfer... absent on legacy records"
    )
    fixed_expense_id: Optional[str] = Field(
        default=None,
        description="Template that generated this transaction"
    )

    @field_validator('category', mode='before')
    @classmethod
    def fallback_category(cls, v: Any) -> Any:
        return _default_category(v)

    @field_validator('payment_method', 'fixed_expense_id', mode='before')
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_transaction(self, transaction_id: Optional[str] = None) -> "Transaction":
        """Attach an id, producing the stored record."""
        return Transaction(
            id=transaction_id or new_record_id(),
            **self.model_dump(),
        )


class Transaction(TransactionDraft):
    """
    A recorded income or expense.

    Edits replace the whole record by id; there is no history.
    """

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Opaque unique identifier, immutable"
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        # Older documents used numeric timestamps as ids
        if isinstance(v, int):
            return str(v)
        return v

    @property
    def is_paid(self) -> bool:
        return self.status == TransactionStatus.PAID

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign of its cash effect."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount

    def year_month(self) -> str:
        return self.date.strftime("%Y-%m")


# =============================================================================
# FIXED EXPENSES
# =============================================================================

class FixedExpenseDraft(DocumentModel):
    """A recurring obligation as entered, before the store assigns its id."""

    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Expected amount; the actual payment may differ"
    )
    day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Day of month the payment is due"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=100,
    )

    def to_fixed_expense(self, expense_id: Optional[str] = None) -> "FixedExpense":
        return FixedExpense(id=expense_id or new_record_id(), **self.model_dump())


class FixedExpense(FixedExpenseDraft):
    """
    Recurring expense template.

    This is NOT a transaction. Paying it for a month creates one.
    """

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, int):
            return str(v)
        return v


# =============================================================================
# CATEGORIES
# =============================================================================

DEFAULT_INCOME_CATEGORIES = ("Servicios", "Productos", "Cursos", "Otros")
DEFAULT_EXPENSE_CATEGORIES = (
    "Alquiler",
    "Insumos",
    "Marketing",
    "Impuestos",
    "Servicios Públicos",
    "Personal",
    "Otros",
)


class CategorySet(BaseModel):
    """
    Ordered category labels per transaction type.

    Not tied to transactions: removing a label leaves tagged records alone.
    """
    model_config = ConfigDict(frozen=True)

    income: tuple[str, ...] = DEFAULT_INCOME_CATEGORIES
    expense: tuple[str, ...] = DEFAULT_EXPENSE_CATEGORIES

    def labels(self, transaction_type: TransactionType) -> tuple[str, ...]:
        return getattr(self, TransactionType(transaction_type).value)

    def with_category(self, transaction_type: TransactionType, label: str) -> "CategorySet":
        """Append a label (duplicates are allowed)."""
        kind = TransactionType(transaction_type).value
        return self.model_copy(update={kind: self.labels(transaction_type) + (label,)})

    def without_category(self, transaction_type: TransactionType, label: str) -> "CategorySet":
        """Drop every label equal to `label`."""
        kind = TransactionType(transaction_type).value
        remaining = tuple(c for c in self.labels(transaction_type) if c != label)
        return self.model_copy(update={kind: remaining})


# =============================================================================
# DATE RANGES
# =============================================================================

class DateRange(DocumentModel):
    """
    Inclusive [start_date, end_date] window for period metrics.

    A reversed range is allowed; it simply contains no days.
    """

    start_date: date
    end_date: date

    @property
    def is_reversed(self) -> bool:
        return self.end_date < self.start_date

    @property
    def span_days(self) -> int:
        """end - start in days (0 for a single-day range)."""
        return (self.end_date - self.start_date).days

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def days(self) -> list[date]:
        """Every day in the range, empty when reversed."""
        return [
            self.start_date + timedelta(days=offset)
            for offset in range(self.span_days + 1)
        ]

    def __str__(self) -> str:
        return f"{self.start_date.isoformat()}..{self.end_date.isoformat()}"

    # Presets ---------------------------------------------------------------

    @classmethod
    def for_month(cls, year: int, month: int) -> "DateRange":
        start = date(year, month, 1)
        return cls(start_date=start, end_date=start + relativedelta(months=1, days=-1))

    @classmethod
    def from_year_month(cls, year_month: str) -> "DateRange":
        """Parse 'YYYY-MM' into that calendar month."""
        year, month = parse_year_month(year_month)
        return cls.for_month(year, month)

    @classmethod
    def for_year(cls, year: int) -> "DateRange":
        return cls(start_date=date(year, 1, 1), end_date=date(year, 12, 31))

    @classmethod
    def current_month(cls, today: Optional[date] = None) -> "DateRange":
        today = today or date.today()
        return cls.for_month(today.year, today.month)

    @classmethod
    def previous_month(cls, today: Optional[date] = None) -> "DateRange":
        today = today or date.today()
        start = today.replace(day=1) - relativedelta(months=1)
        return cls.for_month(start.year, start.month)

    @classmethod
    def last_three_months(cls, today: Optional[date] = None) -> "DateRange":
        today = today or date.today()
        return cls(
            start_date=today.replace(day=1) - relativedelta(months=2),
            end_date=cls.current_month(today).end_date,
        )

    @classmethod
    def current_year(cls, today: Optional[date] = None) -> "DateRange":
        today = today or date.today()
        return cls.for_year(today.year)


def parse_year_month(year_month: str) -> tuple[int, int]:
    """'2024-03' -> (2024, 3)."""
    try:
        year_text, month_text = year_month.split("-")
        year, month = int(year_text), int(month_text)
    except (AttributeError, ValueError):
        raise ValueError(f"Expected YYYY-MM, got {year_month!r}")
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in {year_month!r}")
    return year, month


def format_year_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


# =============================================================================
# SNAPSHOT
# =============================================================================

class FinanceSnapshot(BaseModel):
    """
    The collections as currently known from the store.

    The engine only ever sees one of these; it may be stale but is always valid.
    """
    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()
    fixed_expenses: tuple[FixedExpense, ...] = ()
    categories: CategorySet = Field(default_factory=CategorySet)

    @field_validator('transactions')
    @classmethod
    def newest_first(cls, v: tuple[Transaction, ...]) -> tuple[Transaction, ...]:
        """Transactions are listed newest first, like the store returns them."""
        return tuple(sorted(v, key=lambda t: t.date, reverse=True))

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for transaction in self.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None
