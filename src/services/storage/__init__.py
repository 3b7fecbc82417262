"""
Storage Services Package

Provides the abstract store interface and its implementations: Google Sheets
as the persistent backend and an in-memory store for tests and offline use.
"""

from src.services.storage.interface import (
    ConnectionError,
    FinanceStoreInterface,
    NotFoundError,
    SnapshotPublisher,
    StorageError,
    Subscription,
)
from src.services.storage.memory import InMemoryFinanceStore
from src.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsFinanceStore,
)

__all__ = [
    # Interfaces
    "FinanceStoreInterface",
    "SnapshotPublisher",
    "Subscription",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsFinanceStore",
    "InMemoryFinanceStore",
]
