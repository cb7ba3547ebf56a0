"""
Tests for storage backends.

The Google Sheets store is exercised against a fake worksheet; no network
access happens in these tests.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from receipt_ledger.models import (
    AuditEvent,
    AuditEventType,
    TransactionDraft,
    TransactionKind,
)
from receipt_ledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsTransactionStore,
    InMemoryAuditStorage,
    InMemoryTransactionStore,
    StoreError,
    StoreValidationError,
)
from receipt_ledger.services.storage.google_sheets import AUDIT_COLUMNS, TRANSACTION_COLUMNS


def make_draft(household_id="flat-1", amount="12.40", split_with="both"):
    return TransactionDraft(
        kind=TransactionKind.EXPENSE,
        amount=Decimal(amount),
        description="REWE (shared)",
        date=date(2024, 3, 15),
        paid_by="alice",
        split_with=split_with,
        household_id=household_id,
    )


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the stores."""

    def __init__(self, header):
        self.rows = [list(header)]
        self.fail = False

    def get_all_values(self):
        if self.fail:
            raise RuntimeError("quota exceeded")
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        if self.fail:
            raise RuntimeError("quota exceeded")
        self.rows.append([str(value) for value in row])


class FakeSheetsClient:
    def __init__(self):
        self.transactions = FakeWorksheet(TRANSACTION_COLUMNS)
        self.audit = FakeWorksheet(AUDIT_COLUMNS)

    def get_transactions_sheet(self):
        return self.transactions

    def get_audit_sheet(self):
        return self.audit


class TestInMemoryTransactionStore:
    """Tests for the in-memory transaction log."""

    def test_append_assigns_identity(self):
        """Test the store stamps id and created_at."""
        store = InMemoryTransactionStore()
        transaction = asyncio.run(store.append_transaction(make_draft()))
        assert transaction.id is not None
        assert transaction.created_at.tzinfo is not None
        assert transaction.amount == Decimal("12.40")

    def test_list_filters_household(self):
        """Test listing is scoped to a household, in append order."""
        store = InMemoryTransactionStore()
        first = asyncio.run(store.append_transaction(make_draft(amount="1.00")))
        asyncio.run(store.append_transaction(make_draft(household_id="other")))
        second = asyncio.run(store.append_transaction(make_draft(amount="2.00")))

        assert asyncio.run(store.list_transactions("flat-1")) == [first, second]

    def test_simulated_failure(self):
        """Test fail_next_appends raises StoreError once."""
        store = InMemoryTransactionStore()
        store.fail_next_appends = 1
        with pytest.raises(StoreError):
            asyncio.run(store.append_transaction(make_draft()))
        asyncio.run(store.append_transaction(make_draft()))
        assert len(store.transactions) == 1


class TestGoogleSheetsTransactionStore:
    """Tests for the Sheets-backed transaction log."""

    def test_append_writes_string_amounts(self):
        """Test rows store amounts as exact decimal strings."""
        client = FakeSheetsClient()
        store = GoogleSheetsTransactionStore(client, attempts=1)

        transaction = asyncio.run(store.append_transaction(make_draft()))

        row = client.transactions.rows[1]
        assert row[0] == str(transaction.id)
        assert row[TRANSACTION_COLUMNS.index("amount")] == "12.40"
        assert row[TRANSACTION_COLUMNS.index("split_with")] == "both"
        assert row[TRANSACTION_COLUMNS.index("date")] == "2024-03-15"

    def test_round_trip_through_sheet(self):
        """Test what is appended is listed back unchanged."""
        client = FakeSheetsClient()
        store = GoogleSheetsTransactionStore(client, attempts=1)

        stored = asyncio.run(store.append_transaction(make_draft(split_with=None)))
        asyncio.run(store.append_transaction(make_draft(household_id="other")))

        listed = asyncio.run(store.list_transactions("flat-1"))
        assert listed == [stored]
        assert listed[0].split_with is None

    def test_malformed_row_is_an_error(self):
        """Test unreadable rows are reported, not skipped."""
        client = FakeSheetsClient()
        client.transactions.rows.append(
            [str(uuid4()), "flat-1", "not a date", "2024-03-15", "expense",
             "1.00", "x", "alice", ""]
        )
        store = GoogleSheetsTransactionStore(client, attempts=1)

        with pytest.raises(StoreValidationError, match="row 2"):
            asyncio.run(store.list_transactions("flat-1"))

    def test_backend_failure(self):
        """Test sheet errors surface as StoreError."""
        client = FakeSheetsClient()
        client.transactions.fail = True
        store = GoogleSheetsTransactionStore(client, attempts=1)

        with pytest.raises(StoreError):
            asyncio.run(store.append_transaction(make_draft()))
        with pytest.raises(StoreError):
            asyncio.run(store.list_transactions("flat-1"))


class TestAuditStorage:
    """Tests for audit storage backends."""

    def test_in_memory_by_correlation(self):
        """Test events are grouped by correlation id."""
        storage = InMemoryAuditStorage()
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.OCR_STARTED,
            description="started",
            correlation_id=correlation_id,
        )
        asyncio.run(storage.append_event(event))
        asyncio.run(storage.append_event(AuditEvent(
            event_type=AuditEventType.OCR_STARTED,
            description="other workflow",
            correlation_id=uuid4(),
        )))

        assert asyncio.run(storage.get_events_by_correlation_id(correlation_id)) == [event]

    def test_sheets_round_trip(self):
        """Test audit rows are read back by correlation id."""
        client = FakeSheetsClient()
        storage = GoogleSheetsAuditStorage(client)
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.ALLOCATION_COMPLETED,
            description="done",
            correlation_id=correlation_id,
            details={"total": "3.93"},
        )

        assert asyncio.run(storage.append_event(event)) is True
        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        assert len(events) == 1
        assert events[0].event_id == event.event_id
        assert events[0].details == {"total": "3.93"}

    def test_sheets_append_failure_is_not_raised(self):
        """Test a failing audit write returns False."""
        client = FakeSheetsClient()
        client.audit.fail = True
        storage = GoogleSheetsAuditStorage(client)
        event = AuditEvent(event_type=AuditEventType.SYSTEM_ERROR, description="x")

        assert asyncio.run(storage.append_event(event)) is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
