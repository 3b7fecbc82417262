"""Services package."""

from src.services.storage import (
    ConnectionError,
    FinanceStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsFinanceStore,
    InMemoryFinanceStore,
    NotFoundError,
    SnapshotPublisher,
    StorageError,
    Subscription,
)

__all__ = [
    "ConnectionError",
    "FinanceStoreInterface",
    "GoogleSheetsClient",
    "GoogleSheetsFinanceStore",
    "InMemoryFinanceStore",
    "NotFoundError",
    "SnapshotPublisher",
    "StorageError",
    "Subscription",
]
