"""
In-memory storage.

Used by the test suite and for running the workflow without Google
credentials. Same append-only contract as the Sheets backend.
"""

from typing import Optional
from uuid import UUID

from receipt_ledger.models.audit import AuditEvent
from receipt_ledger.models.ledger import Transaction, TransactionDraft
from receipt_ledger.services.storage.interface import (
    AuditStorageInterface,
    StoreError,
    TransactionStoreInterface,
)


class InMemoryTransactionStore(TransactionStoreInterface):
    """
    Transaction log held in a list.

    fail_next_appends makes the next N appends raise, to exercise
    submission failure handling.
    """

    def __init__(self, transactions: Optional[list[Transaction]] = None):
        self._transactions: list[Transaction] = list(transactions or [])
        self.fail_next_appends = 0

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    async def list_transactions(self, household_id: str) -> list[Transaction]:
        return [t for t in self._transactions if t.household_id == household_id]

    async def append_transaction(self, draft: TransactionDraft) -> Transaction:
        if self.fail_next_appends > 0:
            self.fail_next_appends -= 1
            raise StoreError("Simulated append failure")

        transaction = Transaction.from_draft(draft)
        self._transactions.append(transaction)
        return transaction


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit events held in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)
