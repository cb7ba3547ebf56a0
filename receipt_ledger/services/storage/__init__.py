"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the production backend; the in-memory stores back tests
and credential-less runs.
"""

from receipt_ledger.services.storage.interface import (
    AuditStorageInterface,
    StoreConnectionError,
    StoreError,
    StoreValidationError,
    TransactionStoreInterface,
)
from receipt_ledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
)
from receipt_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryTransactionStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "TransactionStoreInterface",
    # Exceptions
    "StoreConnectionError",
    "StoreError",
    "StoreValidationError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStore",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryTransactionStore",
]
