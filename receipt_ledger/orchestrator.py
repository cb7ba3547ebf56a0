"""
Main Orchestrator for Receipt Ledger

This module ties together all the components and defines the end-to-end
receipt flow:

    photo -> image check -> OCR -> parse -> review -> categorize
          -> summary -> confirm -> ledger entries

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the ledger without human review and confirmation
- A failed submission never loses the user's categorization
- Every step is audited

The state itself lives in AllocationWorkflow; the flow only wires the
workflow to the image loader, the OCR backend and the ledger.
"""

import datetime as dt
from typing import Optional

import structlog

from receipt_ledger.allocation import AllocationWorkflow
from receipt_ledger.audit import AuditLogger
from receipt_ledger.config import HouseholdSettings, get_settings
from receipt_ledger.ledger import LedgerService
from receipt_ledger.models.ledger import Transaction
from receipt_ledger.models.receipt import ReceiptLineItem
from receipt_ledger.services.image import ImageRejectedError, LoadedImage, ReceiptImageLoader
from receipt_ledger.services.ocr import MindeeTextExtractor, TextExtractorInterface
from receipt_ledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
    InMemoryTransactionStore,
    TransactionStoreInterface,
)

logger = structlog.get_logger(__name__)


class ReceiptAllocationFlow:
    """
    Orchestrates the receipt allocation flow for one household.

    Flow:
    1. Upload  -> Pillow check, image held by the workflow
    2. Scan    -> OCR + parse into the review list
    3. Review  -> user fixes items (workflow methods)
    4. Categorize -> self / other / shared per item (workflow methods)
    5. Submit  -> user confirms, ledger entries appended

    The session user is the receipt payer: their "other" items are billed
    to the housemate and shared items are split.
    """

    def __init__(
        self,
        ledger: LedgerService,
        household: HouseholdSettings,
        extractor: Optional[TextExtractorInterface] = None,
        image_loader: Optional[ReceiptImageLoader] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._household = household
        self._extractor = extractor or MindeeTextExtractor()
        self._image_loader = image_loader or ReceiptImageLoader()
        self._audit_logger = audit_logger

    def start(self) -> AllocationWorkflow:
        """New workflow for one receipt."""
        return AllocationWorkflow(audit_logger=self._audit_logger)

    async def upload(
        self,
        workflow: AllocationWorkflow,
        content: bytes,
        filename: str,
    ) -> LoadedImage:
        """
        Check the photo and hand it to the workflow.

        Returns the loaded image with quality warnings to show the user.

        Raises:
            ImageRejectedError: the file cannot be used; the workflow is
                unchanged and the user can pick another file
        """
        try:
            loaded = self._image_loader.load(content, filename)
        except ImageRejectedError as e:
            workflow.last_error = str(e)
            if self._audit_logger:
                await self._audit_logger.log_image_rejected(
                    filename=filename,
                    reason=e.reason,
                    correlation_id=workflow.correlation_id,
                )
            raise

        workflow.load_image(loaded.image)
        await workflow.flush_audit()
        return loaded

    async def scan(self, workflow: AllocationWorkflow) -> tuple[ReceiptLineItem, ...]:
        """
        Run OCR on the held image.

        Raises:
            ExtractionError: the workflow is back in upload, see last_error
        """
        return await workflow.scan(self._extractor)

    async def submit(
        self,
        workflow: AllocationWorkflow,
        label: Optional[str] = None,
        on: Optional[dt.date] = None,
    ) -> list[Transaction]:
        """
        Confirm the allocation and book it.

        CRITICAL: This is called ONLY after explicit user confirmation.

        Raises:
            StoreError: nothing is lost; the workflow is back in summary and
                submit can be called again
        """
        household = self._household

        async def book(result):
            return await self._ledger.submit_allocation(
                result,
                household_id=household.id,
                payer=household.self_party,
                counterparty=household.other_party,
                label=label,
                on=on,
                correlation_id=workflow.correlation_id,
            )

        return await workflow.confirm(book)

    async def cancel(self, workflow: AllocationWorkflow) -> None:
        """Abandon the receipt; nothing is booked."""
        workflow.cancel()
        await workflow.flush_audit()


def create_app_components(
    use_storage: bool = True,
    household: Optional[HouseholdSettings] = None,
) -> tuple[ReceiptAllocationFlow, LedgerService, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run on an in-memory ledger.
        household: Household to book into; read from settings if omitted.

    Returns:
        (receipt_flow, ledger_service, sheets_client)
    """
    household = household or get_settings().household
    sheets_client = None
    store: TransactionStoreInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            store = GoogleSheetsTransactionStore(
                sheets_client,
                attempts=get_settings().app.external_call_attempts,
            )
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            store = InMemoryTransactionStore()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        store = InMemoryTransactionStore()
        audit_logger = AuditLogger()  # Local-only logging

    ledger = LedgerService(store, audit_logger=audit_logger, household=household)
    receipt_flow = ReceiptAllocationFlow(
        ledger=ledger,
        household=household,
        audit_logger=audit_logger,
    )

    return receipt_flow, ledger, sheets_client
