"""
Main Orchestrator for Finanzas Pro

This module ties together the store, the validators and the aggregation
engine. It defines the flows for:
1. Sync (store pushes snapshot → session keeps the latest)
2. Reporting (latest snapshot + range → Metrics)
3. Mutations (form input → validate → store intent → new snapshot)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the store without passing validation
- The engine only ever sees a complete, valid snapshot
- Store failures become notices; they never reach the engine

If the store is unreachable, reports keep working on the last snapshot
that was synced.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence, Union

import structlog

from src.analytics import aggregate, calendar_month, compare_periods, year_over_year
from src.analytics.comparisons import ComparisonMetric, PeriodSpec
from src.analytics.export import export_tables
from src.fixed_expenses import build_fixed_expense_draft, monthly_overview
from src.models.finance import (
    CategorySet,
    DateRange,
    FinanceSnapshot,
    FixedExpense,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from src.models.reports import (
    AggregationConfig,
    ComparisonResult,
    DaySummary,
    FixedExpenseOverview,
    Metrics,
    YearSeries,
)
from src.notices import NoticeLogger
from src.services.storage import (
    ConnectionError,
    FinanceStoreInterface,
    GoogleSheetsFinanceStore,
    InMemoryFinanceStore,
    NotFoundError,
    StorageError,
)
from src.validation import FixedExpenseValidator, InputRejectedError, TransactionValidator


logger = structlog.get_logger(__name__)


class FinanceSession:
    """
    One user's view of the store.

    Holds the latest snapshot pushed by the store and routes every
    mutation intent through validation first. Methods that change data
    return the stored record (or True) on success and None (or False)
    when the change was refused or failed; the reason is in `notices`.
    """

    def __init__(
        self,
        store: FinanceStoreInterface,
        notice_logger: Optional[NoticeLogger] = None,
        transaction_validator: Optional[TransactionValidator] = None,
        fixed_expense_validator: Optional[FixedExpenseValidator] = None,
    ):
        self._store = store
        self.notices = notice_logger or NoticeLogger()
        self._transaction_validator = transaction_validator or TransactionValidator()
        self._fixed_expense_validator = fixed_expense_validator or FixedExpenseValidator()
        self.latest = FinanceSnapshot()
        self._subscription = store.subscribe(self._on_snapshot)

    def _on_snapshot(self, snapshot: FinanceSnapshot) -> None:
        self.latest = snapshot

    def close(self) -> None:
        """Stop listening to the store."""
        self._subscription.cancel()

    @property
    def store(self) -> FinanceStoreInterface:
        return self._store

    # =========================================================================
    # SYNC
    # =========================================================================

    async def refresh(self) -> FinanceSnapshot:
        """
        Pull a fresh snapshot from the store.

        On failure the previous snapshot is kept and a notice is recorded.
        """
        try:
            snapshot = await self._store.snapshot()
        except ConnectionError as e:
            self.notices.connection_failed(str(e))
            return self.latest
        except StorageError as e:
            self.notices.read_failed("refresh", str(e))
            return self.latest
        self.latest = snapshot
        self.notices.snapshot_refreshed(len(snapshot.transactions), len(snapshot.fixed_expenses))
        return snapshot

    # =========================================================================
    # REPORTING
    # =========================================================================

    def metrics(
        self,
        date_range: Optional[DateRange] = None,
        config: Optional[AggregationConfig] = None,
    ) -> Metrics:
        return aggregate(self.latest.transactions, date_range, config)

    def calendar(self, year_month: str) -> list[DaySummary]:
        return calendar_month(self.latest.transactions, year_month)

    def compare(
        self,
        period_a: PeriodSpec,
        period_b: PeriodSpec,
        metric: Union[ComparisonMetric, str],
    ) -> ComparisonResult:
        if isinstance(metric, str):
            metric = ComparisonMetric.parse(metric)
        return compare_periods(self.latest.transactions, period_a, period_b, metric)

    def year_over_year(
        self,
        years: Sequence[int],
        metric: Union[ComparisonMetric, str],
    ) -> list[YearSeries]:
        if isinstance(metric, str):
            metric = ComparisonMetric.parse(metric)
        return year_over_year(self.latest.transactions, years, metric)

    def fixed_expense_overview(self, year_month: str) -> FixedExpenseOverview:
        return monthly_overview(self.latest.fixed_expenses, year_month, self.latest.transactions)

    def export(self, date_range: Optional[DateRange] = None) -> dict[str, list[dict]]:
        """Rows for the three export sheets, optionally limited to a range."""
        transactions = self.latest.transactions
        if date_range is not None:
            transactions = [t for t in transactions if date_range.contains(t.date)]
        return export_tables(transactions)

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def add_transaction(self, data: dict) -> Optional[Transaction]:
        """Validate form input and store it as a new transaction."""
        try:
            draft = self._transaction_validator.build_draft(data)
        except InputRejectedError as e:
            self._rejected("add_transaction", e)
            return None
        try:
            return await self._store.add_transaction(draft)
        except StorageError as e:
            self.notices.write_failed("add_transaction", str(e))
            return None

    async def edit_transaction(self, data: dict) -> Optional[Transaction]:
        """Replace the whole record with the same id."""
        try:
            transaction = self._transaction_validator.build_transaction(data)
        except InputRejectedError as e:
            self._rejected("edit_transaction", e)
            return None
        return await self._replace(transaction, "edit_transaction")

    async def toggle_status(self, transaction_id: str) -> Optional[Transaction]:
        """Flip a transaction between paid and pending."""
        current = self.latest.find_transaction(transaction_id)
        if current is None:
            self.notices.not_found("toggle_status", transaction_id)
            return None
        status = (
            TransactionStatus.PENDING if current.is_paid else TransactionStatus.PAID
        )
        return await self._replace(current.model_copy(update={"status": status}), "toggle_status")

    async def remove_transaction(self, transaction_id: str) -> bool:
        try:
            removed = await self._store.remove_transaction(transaction_id)
        except StorageError as e:
            self.notices.write_failed("remove_transaction", str(e), transaction_id)
            return False
        if not removed:
            self.notices.not_found("remove_transaction", transaction_id)
        return removed

    async def _replace(self, transaction: Transaction, operation: str) -> Optional[Transaction]:
        try:
            return await self._store.edit_transaction(transaction)
        except NotFoundError:
            self.notices.not_found(operation, transaction.id)
            return None
        except StorageError as e:
            self.notices.write_failed(operation, str(e), transaction.id)
            return None

    # =========================================================================
    # FIXED EXPENSES
    # =========================================================================

    async def add_fixed_expense(self, data: dict) -> Optional[FixedExpense]:
        try:
            draft = self._fixed_expense_validator.build_draft(data)
        except InputRejectedError as e:
            self._rejected("add_fixed_expense", e)
            return None
        try:
            return await self._store.add_fixed_expense(draft)
        except StorageError as e:
            self.notices.write_failed("add_fixed_expense", str(e))
            return None

    async def update_fixed_expense(self, expense_id: str, changes: dict) -> Optional[FixedExpense]:
        try:
            return await self._store.update_fixed_expense(expense_id, changes)
        except NotFoundError:
            self.notices.not_found("update_fixed_expense", expense_id)
            return None
        except StorageError as e:
            self.notices.write_failed("update_fixed_expense", str(e), expense_id)
            return None
        except ValueError as e:
            # pydantic rejected the merged template
            self.notices.input_rejected("update_fixed_expense", [{"message": str(e)}])
            return None

    async def remove_fixed_expense(self, expense_id: str) -> bool:
        try:
            removed = await self._store.remove_fixed_expense(expense_id)
        except StorageError as e:
            self.notices.write_failed("remove_fixed_expense", str(e), expense_id)
            return False
        if not removed:
            self.notices.not_found("remove_fixed_expense", expense_id)
        return removed

    async def pay_fixed_expense(
        self,
        expense_id: str,
        actual_amount: Decimal,
        payment_date: date,
    ) -> Optional[Transaction]:
        """
        Record this month's payment of a template.

        Marking a paid template as unpaid again is `remove_transaction` on
        the payment.
        """
        template = next((e for e in self.latest.fixed_expenses if e.id == expense_id), None)
        if template is None:
            self.notices.not_found("pay_fixed_expense", expense_id)
            return None
        try:
            draft = build_fixed_expense_draft(template, actual_amount, payment_date)
        except ValueError as e:
            self.notices.input_rejected("pay_fixed_expense", [{"message": str(e)}])
            return None
        try:
            return await self._store.add_transaction(draft)
        except StorageError as e:
            self.notices.write_failed("pay_fixed_expense", str(e), expense_id)
            return None

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    async def add_category(self, transaction_type: TransactionType, label: str) -> Optional[CategorySet]:
        label = (label or "").strip()
        if not label:
            self.notices.input_rejected("add_category", [{"field": "label", "message": "Etiqueta vacía"}])
            return None
        try:
            return await self._store.add_category(transaction_type, label)
        except StorageError as e:
            self.notices.write_failed("add_category", str(e))
            return None

    async def remove_category(self, transaction_type: TransactionType, label: str) -> Optional[CategorySet]:
        try:
            return await self._store.remove_category(transaction_type, label)
        except StorageError as e:
            self.notices.write_failed("remove_category", str(e))
            return None

    def _rejected(self, operation: str, error: InputRejectedError) -> None:
        issues: list[dict[str, Any]] = [issue.model_dump() for issue in error.issues]
        self.notices.input_rejected(operation, issues)


def create_session(use_storage: bool = True) -> FinanceSession:
    """
    Factory function to create a session.

    Args:
        use_storage: Whether to use the Google Sheets store.
                    Set to False for an in-memory store.
    """
    store: FinanceStoreInterface
    if use_storage:
        try:
            store = GoogleSheetsFinanceStore()
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            store = InMemoryFinanceStore()
    else:
        store = InMemoryFinanceStore()

    return FinanceSession(store)
