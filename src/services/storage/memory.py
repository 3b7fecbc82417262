"""
In-Memory Store

Keeps the collections in process and pushes a snapshot to subscribers after
every mutation, which is how the live document store behaves. Used by the
tests and for running the app without a backend.
"""

from typing import Iterable, Optional

from src.models.finance import (
    CategorySet,
    FinanceSnapshot,
    FixedExpense,
    FixedExpenseDraft,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from src.services.storage.interface import (
    FinanceStoreInterface,
    NotFoundError,
    merge_fixed_expense,
)


class InMemoryFinanceStore(FinanceStoreInterface):
    """Process-local implementation of the finance store."""

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        fixed_expenses: Iterable[FixedExpense] = (),
        categories: Optional[CategorySet] = None,
    ):
        super().__init__()
        # Newest additions first, like the live collection
        self._transactions: list[Transaction] = list(transactions)
        self._fixed_expenses: list[FixedExpense] = list(fixed_expenses)
        self._categories = categories or CategorySet()

    def _current(self) -> FinanceSnapshot:
        return FinanceSnapshot(
            transactions=tuple(self._transactions),
            fixed_expenses=tuple(self._fixed_expenses),
            categories=self._categories,
        )

    def _changed(self) -> None:
        self._publish(self._current())

    async def snapshot(self) -> FinanceSnapshot:
        return self._current()

    async def add_transaction(self, draft: TransactionDraft) -> Transaction:
        transaction = draft.to_transaction()
        self._transactions.insert(0, transaction)
        self._changed()
        return transaction

    async def edit_transaction(self, transaction: Transaction) -> Transaction:
        for idx, existing in enumerate(self._transactions):
            if existing.id == transaction.id:
                self._transactions[idx] = transaction
                self._changed()
                return transaction
        raise NotFoundError(f"Transaction not found: {transaction.id}")

    async def remove_transaction(self, transaction_id: str) -> bool:
        remaining = [t for t in self._transactions if t.id != transaction_id]
        if len(remaining) == len(self._transactions):
            return False
        self._transactions = remaining
        self._changed()
        return True

    async def add_fixed_expense(self, draft: FixedExpenseDraft) -> FixedExpense:
        expense = draft.to_fixed_expense()
        self._fixed_expenses.insert(0, expense)
        self._changed()
        return expense

    async def update_fixed_expense(self, expense_id: str, changes: dict) -> FixedExpense:
        for idx, existing in enumerate(self._fixed_expenses):
            if existing.id == expense_id:
                updated = merge_fixed_expense(existing, changes)
                self._fixed_expenses[idx] = updated
                self._changed()
                return updated
        raise NotFoundError(f"Fixed expense not found: {expense_id}")

    async def remove_fixed_expense(self, expense_id: str) -> bool:
        remaining = [e for e in self._fixed_expenses if e.id != expense_id]
        if len(remaining) == len(self._fixed_expenses):
            return False
        self._fixed_expenses = remaining
        self._changed()
        return True

    async def add_category(self, transaction_type: TransactionType, label: str) -> CategorySet:
        self._categories = self._categories.with_category(transaction_type, label)
        self._changed()
        return self._categories

    async def remove_category(self, transaction_type: TransactionType, label: str) -> CategorySet:
        self._categories = self._categories.without_category(transaction_type, label)
        self._changed()
        return self._categories
