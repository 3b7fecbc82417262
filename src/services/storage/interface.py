"""
Abstract Store Interface

DESIGN DECISION: The engine never talks to the document store. It consumes
snapshots. The store adapter:
1. Accepts mutation intents (add/edit/remove)
2. Pushes a fresh snapshot to subscribers after each successful change
3. Can be swapped (Google Sheets, in-memory for tests, a managed
   document database) without touching the reporting code

Last write wins. There is no locking, versioning or conflict detection.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import structlog

from src.models.finance import (
    CategorySet,
    FinanceSnapshot,
    FixedExpense,
    FixedExpenseDraft,
    Transaction,
    TransactionDraft,
    TransactionType,
)


logger = structlog.get_logger(__name__)

SnapshotListener = Callable[[FinanceSnapshot], None]
TransactionPredicate = Callable[[Transaction], bool]


class Subscription:
    """Handle returned by `subscribe`; cancel it to stop receiving snapshots."""

    def __init__(
        self,
        publisher: "SnapshotPublisher",
        listener: SnapshotListener,
        predicate: Optional[TransactionPredicate] = None,
    ):
        self._publisher = publisher
        self.listener = listener
        self.predicate = predicate
        self.active = True

    def deliver(self, snapshot: FinanceSnapshot) -> None:
        if not self.active:
            return
        if self.predicate is not None:
            snapshot = snapshot.model_copy(update={
                "transactions": tuple(t for t in snapshot.transactions if self.predicate(t)),
            })
        self.listener(snapshot)

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._publisher._unsubscribe(self)


class SnapshotPublisher:
    """
    Collection observer shared by store implementations.

    Listeners receive every published snapshot, optionally narrowed to the
    transactions matching a predicate.
    """

    def __init__(self):
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        listener: SnapshotListener,
        predicate: Optional[TransactionPredicate] = None,
    ) -> Subscription:
        subscription = Subscription(self, listener, predicate)
        self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _publish(self, snapshot: FinanceSnapshot) -> None:
        for subscription in list(self._subscriptions):
            try:
                subscription.deliver(snapshot)
            except Exception as e:
                # One broken listener must not starve the others
                logger.error(
                    "snapshot_listener_failed",
                    listener=getattr(subscription.listener, "__name__", repr(subscription.listener)),
                    error=str(e),
                )


class FinanceStoreInterface(SnapshotPublisher, ABC):
    """
    Abstract interface for the finance document store.

    Any backend must implement these intents. Each successful mutation is
    followed by a published snapshot.
    """

    @abstractmethod
    async def snapshot(self) -> FinanceSnapshot:
        """
        Read the current collections.

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    # Transactions -----------------------------------------------------------

    @abstractmethod
    async def add_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Store a new transaction; the store assigns its id.

        Returns:
            The stored transaction
        """
        pass

    @abstractmethod
    async def edit_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace the whole record with the same id.

        Raises:
            NotFoundError: If no record has that id
        """
        pass

    @abstractmethod
    async def remove_transaction(self, transaction_id: str) -> bool:
        """
        Delete by id.

        Returns:
            True if a record was deleted, False if none had that id
        """
        pass

    # Fixed expenses ---------------------------------------------------------

    @abstractmethod
    async def add_fixed_expense(self, draft: FixedExpenseDraft) -> FixedExpense:
        pass

    @abstractmethod
    async def update_fixed_expense(self, expense_id: str, changes: dict) -> FixedExpense:
        """
        Apply a partial update to a template.

        Raises:
            NotFoundError: If no template has that id
            ValidationError: If the merged template is invalid
        """
        pass

    @abstractmethod
    async def remove_fixed_expense(self, expense_id: str) -> bool:
        pass

    # Categories -------------------------------------------------------------

    @abstractmethod
    async def add_category(self, transaction_type: TransactionType, label: str) -> CategorySet:
        """Append a label (no duplicate check)."""
        pass

    @abstractmethod
    async def remove_category(self, transaction_type: TransactionType, label: str) -> CategorySet:
        """Remove every label equal to `label`; transactions keep theirs."""
        pass


def merge_fixed_expense(existing: FixedExpense, changes: dict) -> FixedExpense:
    """Apply a partial update (snake_case or camelCase keys); the id never changes."""
    draft = FixedExpenseDraft.model_validate({**existing.model_dump(exclude={"id"}), **changes})
    return draft.to_fixed_expense(existing.id)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
