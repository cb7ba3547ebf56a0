"""
Tests for allocation: aggregation of categorized items and conversion
into ledger drafts.
"""

import pytest
from datetime import date
from decimal import Decimal

from receipt_ledger.allocation import aggregate, allocation_to_drafts
from receipt_ledger.ledger import compute_balances
from receipt_ledger.models import (
    AllocationCategory,
    ReceiptLineItem,
    Transaction,
    TransactionKind,
)

SELF = AllocationCategory.SELF
OTHER = AllocationCategory.OTHER
SHARED = AllocationCategory.SHARED


def item(item_id, price, category):
    return ReceiptLineItem(
        id=item_id,
        description=f"ITEM {item_id}",
        price=Decimal(price),
        category=category,
    )


class TestAggregate:
    """Tests for the allocation aggregator."""

    def test_self_and_shared(self):
        """Test 10 self + 20 shared gives shares 20 / 10."""
        result = aggregate([item("1", "10.00", SELF), item("2", "20.00", SHARED)])
        totals = result.totals
        assert totals.self_total == Decimal("10.00")
        assert totals.other_total == Decimal("0.00")
        assert totals.shared_total == Decimal("20.00")
        assert totals.self_share == Decimal("20.00")
        assert totals.other_share == Decimal("10.00")

    def test_partitions_keep_order(self):
        """Test items land in their partition in receipt order."""
        items = [
            item("1", "1.00", OTHER),
            item("2", "2.00", SELF),
            item("3", "3.00", OTHER),
        ]
        result = aggregate(items)
        assert [i.id for i in result.other_items] == ["1", "3"]
        assert [i.id for i in result.self_items] == ["2"]
        assert result.shared_items == ()

    def test_odd_cent_shared(self):
        """Test an odd shared cent is not lost."""
        result = aggregate([item("1", "0.05", SHARED)])
        assert result.totals.self_share == Decimal("0.03")
        assert result.totals.other_share == Decimal("0.02")

    @pytest.mark.parametrize("prices", [
        ["0.01"],
        ["1.99", "2.01", "0.33"],
        ["10.00", "0.07", "3.33", "12.49"],
    ])
    def test_sum_and_share_invariants(self, prices):
        """Test totals and shares always add up to the item sum."""
        categories = [SELF, OTHER, SHARED]
        items = [
            item(str(n), price, categories[n % 3])
            for n, price in enumerate(prices)
        ]
        result = aggregate(items)
        expected = sum(Decimal(p) for p in prices)
        totals = result.totals
        assert totals.self_total + totals.other_total + totals.shared_total == expected
        assert totals.self_share + totals.other_share == expected
        assert result.item_count == len(prices)

    def test_uncategorized_item_rejected(self):
        """Test every item must be categorized."""
        with pytest.raises(ValueError, match="not been categorized"):
            aggregate([item("1", "1.00", SELF), item("2", "1.00", None)])

    def test_empty(self):
        """Test no items gives all-zero totals."""
        result = aggregate([])
        assert result.totals.grand_total == Decimal("0.00")


class TestAllocationToDrafts:
    """Tests for turning an allocation into ledger drafts."""

    def test_one_draft_per_partition(self):
        """Test shared, billed and personal drafts."""
        result = aggregate([
            item("1", "4.00", SELF),
            item("2", "6.00", OTHER),
            item("3", "10.00", SHARED),
        ])
        drafts = allocation_to_drafts(
            result,
            household_id="flat-1",
            payer="alice",
            counterparty="bob",
            on=date(2024, 3, 15),
            label="REWE",
        )

        assert [(d.amount, d.split_with, d.description) for d in drafts] == [
            (Decimal("10.00"), "both", "REWE (shared)"),
            (Decimal("6.00"), "bob", "REWE (bob)"),
            (Decimal("4.00"), "alice", "REWE (personal)"),
        ]
        assert all(d.paid_by == "alice" for d in drafts)
        assert all(d.kind == TransactionKind.EXPENSE for d in drafts)
        assert all(d.date == date(2024, 3, 15) for d in drafts)

    def test_empty_partitions_skipped(self):
        """Test no zero-amount drafts are produced."""
        result = aggregate([item("1", "3.00", SHARED)])
        drafts = allocation_to_drafts(result, "flat-1", "alice", "bob")
        assert len(drafts) == 1
        assert drafts[0].description == "Receipt (shared)"

    def test_balance_matches_other_share(self):
        """Test booking the drafts leaves the payer owed the other share."""
        result = aggregate([
            item("1", "4.00", SELF),
            item("2", "6.00", OTHER),
            item("3", "10.00", SHARED),
        ])
        drafts = allocation_to_drafts(result, "flat-1", "alice", "bob")
        transactions = [Transaction.from_draft(d) for d in drafts]

        balance = compute_balances(transactions, "alice", "bob")
        assert balance.viewer_balance == result.totals.other_share
        assert balance.for_party("bob") == -result.totals.other_share

    def test_payer_must_differ(self):
        """Test the counterparty cannot be the payer."""
        result = aggregate([item("1", "3.00", SHARED)])
        with pytest.raises(ValueError):
            allocation_to_drafts(result, "flat-1", "alice", "alice")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
