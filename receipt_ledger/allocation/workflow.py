"""
Allocation Workflow

Drives one receipt from photo to ledger entries:

    upload -> processing -> review -> categorizing -> summary
           -> submitting -> completed

with cancel possible from every non-terminal state except submitting.

DESIGN DECISION: The workflow is an explicit state machine with a fixed
transition table. Every state change goes through _transition, so:
1. An operation in the wrong state fails loudly and changes nothing
2. Every transition is logged in one place
3. Nothing reaches the ledger without passing review and categorization

CRITICAL: The workflow never writes to the ledger itself. confirm() hands
the finished AllocationResult to a submit callable and only moves to
completed if that succeeds. On a storage error the result is kept and the
workflow returns to summary, so the user can retry without categorizing
again.

OCR and submission are the only async steps. Audit events of the
synchronous steps are queued and written on the next async step or an
explicit flush_audit().
"""

from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar
from uuid import UUID

import structlog

from receipt_ledger.allocation.aggregator import aggregate
from receipt_ledger.audit import AuditLogger, create_correlation_id
from receipt_ledger.models.audit import AuditEvent, AuditEventBuilder
from receipt_ledger.models.receipt import (
    AllocationCategory,
    AllocationResult,
    ReceiptImage,
    ReceiptLineItem,
)
from receipt_ledger.parsing import parse_receipt, split_lines
from receipt_ledger.services.ocr import ExtractionError, TextExtractorInterface
from receipt_ledger.validation import ReviewInputValidator

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class WorkflowState(str, Enum):
    """Steps of a receipt allocation."""
    UPLOAD = "upload"
    PROCESSING = "processing"
    REVIEW = "review"
    CATEGORIZING = "categorizing"
    SUMMARY = "summary"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TRANSITIONS: dict[WorkflowState, frozenset[WorkflowState]] = {
    WorkflowState.UPLOAD: frozenset({WorkflowState.PROCESSING, WorkflowState.CANCELLED}),
    WorkflowState.PROCESSING: frozenset({
        WorkflowState.REVIEW,
        WorkflowState.UPLOAD,
        WorkflowState.CANCELLED,
    }),
    WorkflowState.REVIEW: frozenset({WorkflowState.CATEGORIZING, WorkflowState.CANCELLED}),
    WorkflowState.CATEGORIZING: frozenset({WorkflowState.SUMMARY, WorkflowState.CANCELLED}),
    WorkflowState.SUMMARY: frozenset({WorkflowState.SUBMITTING, WorkflowState.CANCELLED}),
    WorkflowState.SUBMITTING: frozenset({WorkflowState.COMPLETED, WorkflowState.SUMMARY}),
    WorkflowState.COMPLETED: frozenset(),
    WorkflowState.CANCELLED: frozenset(),
}


class WorkflowError(Exception):
    """Base exception for allocation workflow errors."""
    pass


class IllegalTransitionError(WorkflowError):
    """An operation is not allowed in the current state."""

    def __init__(self, state: WorkflowState, action: str):
        self.state = state
        self.action = action
        super().__init__(f"Cannot {action} while the workflow is in {state.value}")


class EmptyItemListError(WorkflowError):
    """Categorization needs at least one item."""
    pass


class NothingToUndoError(WorkflowError):
    """back() at the first item."""
    pass


class UnknownItemError(WorkflowError):
    """No item with the given id in the review list."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"No item with id {item_id}")


class AllocationWorkflow:
    """
    State machine for allocating one receipt between two housemates.

    One instance per receipt. Not safe for concurrent use by several
    sessions; the only overlap allowed is cancel() while a scan is
    awaiting OCR.
    """

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[ReviewInputValidator] = None,
        correlation_id: Optional[UUID] = None,
    ):
        self._audit = audit_logger
        self._validator = validator or ReviewInputValidator()
        self.correlation_id = correlation_id or create_correlation_id()

        self._state = WorkflowState.UPLOAD
        self._image: Optional[ReceiptImage] = None
        self._items: list[ReceiptLineItem] = []
        self._assigned: list[ReceiptLineItem] = []
        self._result: Optional[AllocationResult] = None
        self._manual_count = 0
        self._pending_events: list[AuditEvent] = []
        self.last_error: Optional[str] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS[self._state]

    @property
    def image(self) -> Optional[ReceiptImage]:
        return self._image

    @property
    def items(self) -> tuple[ReceiptLineItem, ...]:
        """Current review list, in receipt order."""
        return tuple(self._items)

    @property
    def result(self) -> Optional[AllocationResult]:
        return self._result

    @property
    def cursor(self) -> int:
        """Index of the item being categorized."""
        return len(self._assigned)

    @property
    def current_item(self) -> Optional[ReceiptLineItem]:
        if self._state is not WorkflowState.CATEGORIZING:
            return None
        return self._items[self.cursor]

    @property
    def progress(self) -> tuple[int, int]:
        """(assigned, total) during categorization."""
        return len(self._assigned), len(self._items)

    def can_transition(self, target: WorkflowState) -> bool:
        return target in TRANSITIONS[self._state]

    def _transition(self, target: WorkflowState) -> None:
        if not self.can_transition(target):
            raise IllegalTransitionError(self._state, f"move to {target.value}")
        logger.info(
            "workflow_transition",
            from_state=self._state.value,
            to_state=target.value,
            correlation_id=str(self.correlation_id),
        )
        self._state = target

    def _require(self, state: WorkflowState, action: str) -> None:
        if self._state is not state:
            raise IllegalTransitionError(self._state, action)

    # -------------------------------------------------------------------------
    # Audit
    # -------------------------------------------------------------------------

    def _record(self, event: AuditEvent) -> None:
        if self._audit is not None:
            self._pending_events.append(event)

    async def flush_audit(self) -> None:
        """Write queued audit events."""
        events, self._pending_events = self._pending_events, []
        for event in events:
            await self._audit.log(event)

    # -------------------------------------------------------------------------
    # Upload and OCR
    # -------------------------------------------------------------------------

    def load_image(self, image: ReceiptImage) -> None:
        """Hold the photo to scan. Loading again replaces it."""
        self._require(WorkflowState.UPLOAD, "load an image")
        self._image = image
        self.last_error = None
        self._record(AuditEventBuilder.image_loaded(
            upload_id=image.upload_id,
            filename=image.filename,
            file_size=image.size_bytes,
            correlation_id=self.correlation_id,
        ))

    async def scan(self, extractor: TextExtractorInterface) -> tuple[ReceiptLineItem, ...]:
        """
        Read the loaded image and parse it into the review list.

        An empty list is a valid outcome: the user can add items by hand.

        Raises:
            ExtractionError: OCR failed; the workflow is back in upload with
                last_error set. Not retried here.
        """
        self._require(WorkflowState.UPLOAD, "scan")
        if self._image is None:
            raise WorkflowError("Load a receipt image before scanning")

        image = self._image
        self._transition(WorkflowState.PROCESSING)
        self.last_error = None
        self._record(AuditEventBuilder.ocr_started(image.upload_id, self.correlation_id))

        try:
            text = await extractor.extract_text(image)
        except ExtractionError as e:
            if self._state is WorkflowState.CANCELLED:
                self._record(AuditEventBuilder.ocr_result_discarded(
                    image.upload_id, self.correlation_id
                ))
                await self.flush_audit()
                return ()
            self.last_error = str(e)
            self._record(AuditEventBuilder.ocr_failed(
                image.upload_id, str(e), self.correlation_id
            ))
            self._transition(WorkflowState.UPLOAD)
            await self.flush_audit()
            raise

        if self._state is WorkflowState.CANCELLED:
            self._record(AuditEventBuilder.ocr_result_discarded(
                image.upload_id, self.correlation_id
            ))
            await self.flush_audit()
            return ()

        items = parse_receipt(text)
        self._items = list(items)
        self._record(AuditEventBuilder.ocr_completed(
            upload_id=image.upload_id,
            line_count=len(split_lines(text)),
            item_count=len(items),
            correlation_id=self.correlation_id,
        ))
        self._transition(WorkflowState.REVIEW)
        await self.flush_audit()
        return self.items

    # -------------------------------------------------------------------------
    # Review
    # -------------------------------------------------------------------------

    def _index_of(self, item_id: str) -> int:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        raise UnknownItemError(item_id)

    def add_item(self, description: str, price) -> ReceiptLineItem:
        """
        Add an item OCR missed. Ids are manual-1, manual-2, ...

        Raises:
            InvalidItemInputError: if the input is rejected
        """
        self._require(WorkflowState.REVIEW, "add an item")
        clean_description, clean_price = self._validator.validate_item(description, price)

        self._manual_count += 1
        item = ReceiptLineItem(
            id=f"manual-{self._manual_count}",
            description=clean_description,
            price=clean_price,
        )
        self._items.append(item)
        self._record(AuditEventBuilder.review_item_changed(
            "added", item.id, self.correlation_id
        ))
        return item

    def edit_item(
        self,
        item_id: str,
        description: Optional[str] = None,
        price=None,
    ) -> ReceiptLineItem:
        """
        Correct an item's description and/or price.

        Raises:
            UnknownItemError: no such item
            InvalidItemInputError: if the input is rejected
        """
        self._require(WorkflowState.REVIEW, "edit an item")
        index = self._index_of(item_id)
        changes = self._validator.validate_changes(description=description, price=price)
        if not changes:
            return self._items[index]

        item = self._items[index].model_copy(update=changes)
        self._items[index] = item
        self._record(AuditEventBuilder.review_item_changed(
            "edited", item.id, self.correlation_id
        ))
        return item

    def delete_item(self, item_id: str) -> None:
        self._require(WorkflowState.REVIEW, "delete an item")
        index = self._index_of(item_id)
        del self._items[index]
        self._record(AuditEventBuilder.review_item_changed(
            "deleted", item_id, self.correlation_id
        ))

    # -------------------------------------------------------------------------
    # Categorization
    # -------------------------------------------------------------------------

    def begin_categorizing(self) -> ReceiptLineItem:
        """Start assigning items, returns the first one."""
        self._require(WorkflowState.REVIEW, "start categorizing")
        if not self._items:
            raise EmptyItemListError("Add at least one item before categorizing")

        self._assigned = []
        self._transition(WorkflowState.CATEGORIZING)
        self._record(AuditEventBuilder.categorization_started(
            len(self._items), self.correlation_id
        ))
        return self._items[0]

    def assign(self, category: AllocationCategory) -> Optional[ReceiptLineItem]:
        """
        Assign the current item and move on.

        Returns the next item, or None once every item is assigned and the
        workflow has moved to summary.
        """
        self._require(WorkflowState.CATEGORIZING, "assign a category")
        category = AllocationCategory(category)

        self._assigned.append(self._items[self.cursor].with_category(category))
        if self.cursor < len(self._items):
            return self._items[self.cursor]

        self._result = aggregate(self._assigned)
        self._transition(WorkflowState.SUMMARY)
        totals = self._result.totals
        self._record(AuditEventBuilder.allocation_completed(
            self_share=str(totals.self_share),
            other_share=str(totals.other_share),
            total=str(totals.grand_total),
            correlation_id=self.correlation_id,
        ))
        return None

    def back(self) -> ReceiptLineItem:
        """
        Undo the most recent assignment; returns the item to assign again.

        Raises:
            NothingToUndoError: at the first item
        """
        self._require(WorkflowState.CATEGORIZING, "go back")
        if not self._assigned:
            raise NothingToUndoError("Already at the first item")
        self._assigned.pop()
        return self._items[self.cursor]

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    async def confirm(self, submit: Callable[[AllocationResult], Awaitable[T]]) -> T:
        """
        Hand the allocation to submit and complete the workflow.

        Returns whatever submit returns.

        Raises:
            Whatever submit raises (typically StoreError). The workflow is
            back in summary with the result kept and last_error set.
        """
        self._require(WorkflowState.SUMMARY, "confirm")
        result = self._result

        self._transition(WorkflowState.SUBMITTING)
        self.last_error = None
        self._record(AuditEventBuilder.user_confirmed(
            str(result.totals.grand_total), self.correlation_id
        ))

        try:
            value = await submit(result)
        except Exception as e:
            self.last_error = str(e)
            self._record(AuditEventBuilder.submission_failed(str(e), self.correlation_id))
            self._transition(WorkflowState.SUMMARY)
            await self.flush_audit()
            raise

        self._transition(WorkflowState.COMPLETED)
        await self.flush_audit()
        return value

    def cancel(self) -> None:
        """
        Abandon the receipt. Nothing is written to the ledger.

        Not allowed while submitting or after the workflow has ended.
        """
        from_state = self._state
        self._transition(WorkflowState.CANCELLED)
        self._image = None
        self._items = []
        self._assigned = []
        self._result = None
        self._record(AuditEventBuilder.user_cancelled(
            from_state.value, self.correlation_id
        ))
