"""
Tests for Receipt Ledger

Test strategy:
1. Unit tests for individual components (models, parser, engine)
2. Integration tests for flows (with fake OCR and in-memory stores)
3. No real API calls in tests
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from receipt_ledger.models import (
    AllocationCategory,
    AllocationResult,
    AllocationTotals,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Balance,
    BalanceStatus,
    ReceiptImage,
    ReceiptLineItem,
    Transaction,
    TransactionDraft,
    TransactionKind,
    ValidationIssue,
)


def make_item(item_id, price, category=None, description="MILK"):
    return ReceiptLineItem(
        id=item_id,
        description=description,
        price=Decimal(price),
        category=category,
    )


class TestReceiptModels:
    """Tests for receipt-related Pydantic models."""

    def test_line_item_creation(self):
        """Test ReceiptLineItem model creation."""
        item = make_item("item-1", "2.49", description="KOERNER BALANCE")
        assert item.description == "KOERNER BALANCE"
        assert item.price == Decimal("2.49")
        assert item.category is None

    def test_line_item_strips_whitespace(self):
        """Test that whitespace is stripped from descriptions."""
        item = make_item("item-1", "1.00", description="  BREAD  ")
        assert item.description == "BREAD"

    def test_line_item_rejects_zero_price(self):
        """Test that zero and negative prices are rejected."""
        with pytest.raises(ValueError):
            make_item("item-1", "0.00")
        with pytest.raises(ValueError):
            make_item("item-1", "-1.00")

    def test_line_item_rejects_sub_cent_price(self):
        """Test that more than two decimal places are rejected."""
        with pytest.raises(ValueError):
            make_item("item-1", "1.005")

    def test_line_item_is_frozen(self):
        """Test that items cannot be changed in place."""
        item = make_item("item-1", "1.00")
        with pytest.raises(ValueError):
            item.price = Decimal("2.00")

    def test_with_category_returns_copy(self):
        """Test category assignment leaves the original untouched."""
        item = make_item("item-1", "1.00")
        shared = item.with_category(AllocationCategory.SHARED)
        assert shared.category == AllocationCategory.SHARED
        assert item.category is None
        assert shared.without_category().category is None

    def test_receipt_image_hides_content(self):
        """Test raw bytes stay out of repr and dumps."""
        image = ReceiptImage(
            filename="receipt.png",
            mime_type="IMAGE/PNG",
            size_bytes=4,
            width=400,
            height=900,
            content=b"\x89PNG",
        )
        assert image.mime_type == "image/png"
        assert "content" not in repr(image)
        assert "content" not in image.model_dump()

    def test_receipt_image_rejects_non_image(self):
        """Test only image mime types are accepted."""
        with pytest.raises(ValueError):
            ReceiptImage(
                filename="receipt.pdf",
                mime_type="application/pdf",
                size_bytes=4,
                width=1,
                height=1,
                content=b"%PDF",
            )


class TestAllocationResult:
    """Tests for allocation result invariants."""

    def test_valid_result(self):
        """Test a consistent result is accepted."""
        result = AllocationResult(
            self_items=(make_item("item-1", "10.00", AllocationCategory.SELF),),
            shared_items=(make_item("item-2", "20.00", AllocationCategory.SHARED),),
            totals=AllocationTotals(
                self_total=Decimal("10.00"),
                other_total=Decimal("0.00"),
                shared_total=Decimal("20.00"),
                self_share=Decimal("20.00"),
                other_share=Decimal("10.00"),
            ),
        )
        assert result.totals.grand_total == Decimal("30.00")
        assert result.item_count == 2

    def test_rejects_wrong_shares(self):
        """Test shares must add up to the item total."""
        with pytest.raises(ValueError, match="Shares do not add up"):
            AllocationResult(
                shared_items=(make_item("item-1", "20.00", AllocationCategory.SHARED),),
                totals=AllocationTotals(
                    self_total=Decimal("0.00"),
                    other_total=Decimal("0.00"),
                    shared_total=Decimal("20.00"),
                    self_share=Decimal("10.00"),
                    other_share=Decimal("9.00"),
                ),
            )

    def test_rejects_item_in_wrong_partition(self):
        """Test an item's category must match its partition."""
        with pytest.raises(ValueError, match="partition"):
            AllocationResult(
                self_items=(make_item("item-1", "5.00", AllocationCategory.OTHER),),
                totals=AllocationTotals(
                    self_total=Decimal("5.00"),
                    other_total=Decimal("0.00"),
                    shared_total=Decimal("0.00"),
                    self_share=Decimal("5.00"),
                    other_share=Decimal("0.00"),
                ),
            )

    def test_rejects_duplicate_items(self):
        """Test the same item cannot be allocated twice."""
        item = make_item("item-1", "5.00", AllocationCategory.SELF)
        with pytest.raises(ValueError, match="more than once"):
            AllocationResult(
                self_items=(item, item),
                totals=AllocationTotals(
                    self_total=Decimal("10.00"),
                    other_total=Decimal("0.00"),
                    shared_total=Decimal("0.00"),
                    self_share=Decimal("10.00"),
                    other_share=Decimal("0.00"),
                ),
            )


class TestLedgerModels:
    """Tests for ledger models."""

    def test_draft_blank_split_is_personal(self):
        """Test an empty split_with means a personal entry."""
        draft = TransactionDraft(
            kind=TransactionKind.EXPENSE,
            amount=Decimal("12.00"),
            description="Lunch",
            paid_by="alice",
            split_with="  ",
            household_id="flat-1",
        )
        assert draft.split_with is None
        assert draft.is_personal is True

    def test_draft_rejects_both_as_payer(self):
        """Test paid_by must be a single party."""
        with pytest.raises(ValueError, match="single party"):
            TransactionDraft(
                kind=TransactionKind.EXPENSE,
                amount=Decimal("12.00"),
                description="Lunch",
                paid_by="both",
                household_id="flat-1",
            )

    def test_draft_rejects_non_positive_amount(self):
        """Test amounts must be greater than zero."""
        with pytest.raises(ValueError):
            TransactionDraft(
                kind=TransactionKind.SETTLEMENT,
                amount=Decimal("0"),
                description="Nothing",
                paid_by="alice",
                household_id="flat-1",
            )

    def test_transaction_from_draft(self):
        """Test stamping a draft keeps its fields."""
        draft = TransactionDraft(
            kind=TransactionKind.EXPENSE,
            amount=Decimal("30.00"),
            description="Groceries",
            date=date(2024, 3, 2),
            paid_by="alice",
            split_with="both",
            household_id="flat-1",
        )
        transaction_id = uuid4()
        created_at = datetime(2024, 3, 2, 18, 0, tzinfo=timezone.utc)
        transaction = Transaction.from_draft(draft, id=transaction_id, created_at=created_at)
        assert transaction.id == transaction_id
        assert transaction.created_at == created_at
        assert transaction.amount == Decimal("30.00")
        assert transaction.split_with == "both"

    def test_balance_zero_sum(self):
        """Test balances are validated to sum to zero."""
        with pytest.raises(ValueError, match="sum to zero"):
            Balance(
                viewer="alice",
                viewer_balance=Decimal("5.00"),
                counterparty_balance=Decimal("4.00"),
            )

    def test_balance_status(self):
        """Test status and outstanding amount."""
        balance = Balance.from_viewer_delta("alice", Decimal("-7.50"), counterparty="bob")
        assert balance.status == BalanceStatus.OWES
        assert balance.outstanding == Decimal("7.50")
        assert balance.for_party("bob") == Decimal("7.50")
        with pytest.raises(KeyError):
            balance.for_party("carol")

    def test_settled_balance(self):
        """Test a zero delta is settled."""
        balance = Balance.from_viewer_delta("alice", Decimal("0.00"))
        assert balance.status == BalanceStatus.SETTLED
        assert balance.outstanding == Decimal("0.00")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.IMAGE_LOADED,
            description="Test image loaded",
        )
        assert event.event_type == AuditEventType.IMAGE_LOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_APPENDED,
            description="Transaction appended",
            details={"paid_by": "alice", "amount": "10.00"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_appended"
        assert log_dict["details"]["paid_by"] == "alice"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.USER_CONFIRMED,
            description="User confirmed allocation",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "user_confirmed"  # event_type
        assert row[10] == "True"  # is_user_action

    def test_audit_event_builder_image_loaded(self):
        """Test AuditEventBuilder.image_loaded."""
        correlation_id = uuid4()
        upload_id = uuid4()

        event = AuditEventBuilder.image_loaded(
            upload_id=upload_id,
            filename="test.jpg",
            file_size=1024,
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.IMAGE_LOADED
        assert event.entity_id == upload_id
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_user_confirmed(self):
        """Test the confirmation event carries the total and the workflow id."""
        correlation_id = uuid4()
        event = AuditEventBuilder.user_confirmed("3.93", correlation_id)

        assert event.event_type == AuditEventType.USER_CONFIRMED
        assert event.correlation_id == correlation_id
        assert event.entity_id == correlation_id
        assert event.details == {"total": "3.93"}
        assert event.is_user_action is True

    def test_audit_event_builder_review_item_changed(self):
        """Test review actions map to their event types."""
        correlation_id = uuid4()
        event = AuditEventBuilder.review_item_changed("deleted", "item-3", correlation_id)
        assert event.event_type == AuditEventType.ITEM_DELETED
        assert event.details["item_id"] == "item-3"

    def test_audit_event_builder_submission_failed(self):
        """Test failures are recorded as errors."""
        event = AuditEventBuilder.submission_failed("sheet unavailable", uuid4())
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "sheet unavailable"


class TestValidationIssue:
    """Tests for ValidationIssue model."""

    def test_severity_pattern(self):
        """Test only known severities are accepted."""
        with pytest.raises(ValueError):
            ValidationIssue(
                field="price",
                issue_type="missing",
                message="Price required",
                severity="fatal",
            )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
