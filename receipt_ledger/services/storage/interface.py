"""
Abstract Storage Interface

DESIGN DECISION: The ledger is an append-only log, so storage needs very
little:
1. Append one transaction (the store assigns id and timestamp)
2. List every transaction of a household

Balances are recomputed from the full list every time, so there is no
update, delete or aggregate query here. This keeps Google Sheets, an
in-memory store for tests, or a real database equally easy to plug in.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from receipt_ledger.models.audit import AuditEvent
from receipt_ledger.models.ledger import Transaction, TransactionDraft


class TransactionStoreInterface(ABC):
    """
    Abstract interface for the household transaction log.

    Implementations never mutate or delete stored transactions.
    """

    @abstractmethod
    async def list_transactions(self, household_id: str) -> list[Transaction]:
        """
        All transactions of a household, in the order they were appended.

        Raises:
            StoreError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def append_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Append a transaction to the log.

        Args:
            draft: Validated transaction without identity

        Returns:
            The stored transaction with its assigned id and created_at

        Raises:
            StoreError: If the append fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one receipt workflow).

        Returns:
            List of related events in chronological order
        """
        pass


class StoreError(Exception):
    """Base exception for storage operations."""
    pass


class StoreConnectionError(StoreError):
    """Could not reach the storage backend."""
    pass


class StoreValidationError(StoreError):
    """The backend rejected the data, or returned data that fails validation."""
    pass
