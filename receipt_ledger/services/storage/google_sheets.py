"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. Both housemates can open the ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (fine for a household)
- No transactions, but the ledger is append-only so there is nothing to
  roll back
- Limited query capabilities (we filter in Python)

gspread is blocking, so every sheet call runs in a worker thread via
asyncio.to_thread.
"""

import asyncio
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    AsyncRetrying,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from receipt_ledger.config import GoogleSheetsSettings, get_settings
from receipt_ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from receipt_ledger.models.ledger import Transaction, TransactionDraft, TransactionKind
from receipt_ledger.services.storage.interface import (
    AuditStorageInterface,
    StoreConnectionError,
    StoreError,
    StoreValidationError,
    TransactionStoreInterface,
)

logger = structlog.get_logger(__name__)


# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "household_id",
    "created_at",
    "date",
    "kind",
    "amount",
    "description",
    "paid_by",
    "split_with",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(StoreConnectionError),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise StoreError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise StoreConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise StoreError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            rows=1000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsTransactionStore(TransactionStoreInterface):
    """
    Google Sheets implementation of the transaction log.

    One transaction per row. Amounts are written as plain decimal strings
    ("12.40") with RAW input so Sheets never reinterprets them as floats
    or as localized numbers.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        attempts: int = 3,
    ):
        self._client = client or GoogleSheetsClient()
        self._attempts = attempts

    def _transaction_to_row(self, transaction: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            str(transaction.id),
            transaction.household_id,
            transaction.created_at.isoformat(),
            transaction.date.isoformat(),
            transaction.kind.value,
            str(transaction.amount),
            transaction.description,
            transaction.paid_by,
            transaction.split_with or "",
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        """Convert a spreadsheet row to a Transaction."""
        return Transaction(
            id=UUID(_safe_get(row, 0)),
            household_id=_safe_get(row, 1),
            created_at=datetime.fromisoformat(_safe_get(row, 2)),
            date=date.fromisoformat(_safe_get(row, 3)),
            kind=TransactionKind(_safe_get(row, 4)),
            amount=Decimal(_safe_get(row, 5)),
            description=_safe_get(row, 6),
            paid_by=_safe_get(row, 7),
            split_with=_safe_get(row, 8) or None,
        )

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(StoreConnectionError),
            reraise=True,
        )

    def _read_rows(self) -> list[list]:
        try:
            sheet = self._client.get_transactions_sheet()
            return sheet.get_all_values()[1:]  # Skip header
        except StoreError:
            raise
        except gspread.exceptions.APIError as e:
            raise StoreConnectionError(f"Failed to read transactions: {e}") from e
        except Exception as e:
            raise StoreError(f"Failed to read transactions: {e}") from e

    def _write_row(self, row: list) -> None:
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(row, value_input_option="RAW")
        except StoreError:
            raise
        except gspread.exceptions.APIError as e:
            raise StoreConnectionError(f"Failed to append transaction: {e}") from e
        except Exception as e:
            raise StoreError(f"Failed to append transaction: {e}") from e

    async def list_transactions(self, household_id: str) -> list[Transaction]:
        """
        All transactions of a household in sheet order.

        A row that cannot be read is an error, not skipped: dropping a row
        would silently change every balance.
        """
        async for attempt in self._retrying():
            with attempt:
                rows = await asyncio.to_thread(self._read_rows)

        transactions = []
        for index, row in enumerate(rows, start=2):  # row 1 is the header
            if not row or not row[0]:
                continue
            if _safe_get(row, 1) != household_id:
                continue
            try:
                transactions.append(self._row_to_transaction(row))
            except ValueError as e:
                raise StoreValidationError(
                    f"Malformed transaction in sheet row {index}: {e}"
                ) from e
        return transactions

    async def append_transaction(self, draft: TransactionDraft) -> Transaction:
        """Append a transaction; the id is assigned here, before the first attempt."""
        transaction = Transaction.from_draft(draft, id=uuid4())
        row = self._transaction_to_row(transaction)

        async for attempt in self._retrying():
            with attempt:
                await asyncio.to_thread(self._write_row, row)

        logger.info(
            "transaction_stored",
            transaction_id=str(transaction.id),
            household_id=transaction.household_id,
        )
        return transaction


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            entity_type=_safe_get(row, 4) or None,
            entity_id=UUID(_safe_get(row, 5)) if _safe_get(row, 5) else None,
            correlation_id=UUID(_safe_get(row, 6)) if _safe_get(row, 6) else None,
            description=_safe_get(row, 7),
            details=json.loads(_safe_get(row, 8)) if _safe_get(row, 8) else {},
            error_message=_safe_get(row, 9) or None,
            is_user_action=_safe_get(row, 10).lower() == "true",
        )

    def _append_row(self, row: list) -> None:
        sheet = self._client.get_audit_sheet()
        sheet.append_row(row, value_input_option="RAW")

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            await asyncio.to_thread(self._append_row, event.to_sheets_row())
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning(
                "audit_event_write_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            sheet = await asyncio.to_thread(self._client.get_audit_sheet)
            all_rows = (await asyncio.to_thread(sheet.get_all_values))[1:]
        except Exception as e:
            raise StoreError(f"Failed to get audit events: {e}") from e

        events = []
        for row in all_rows:
            if row and len(row) > 6 and row[6] == str(correlation_id):
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    logger.warning("audit_row_unreadable", event_id=_safe_get(row, 0))

        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events
