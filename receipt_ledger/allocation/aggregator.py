"""
Allocation Aggregator

Partitions categorized items and works out what each party owes for the
receipt. Pure and deterministic: same items in, same result out.
"""

from typing import Iterable

from receipt_ledger.models.receipt import (
    AllocationCategory,
    AllocationResult,
    AllocationTotals,
    ReceiptLineItem,
)
from receipt_ledger.money import split_evenly, sum_money


def aggregate(items: Iterable[ReceiptLineItem]) -> AllocationResult:
    """
    Build the allocation result for fully categorized items.

    The shared total is split with split_evenly: self gets the rounded
    half, other gets the remainder, so no cent is lost or invented.

    Raises:
        ValueError: if an item has no category
    """
    partitions: dict[AllocationCategory, list[ReceiptLineItem]] = {
        AllocationCategory.SELF: [],
        AllocationCategory.OTHER: [],
        AllocationCategory.SHARED: [],
    }

    for item in items:
        if item.category is None:
            raise ValueError(f"Item {item.id} has not been categorized")
        partitions[item.category].append(item)

    self_total = sum_money(i.price for i in partitions[AllocationCategory.SELF])
    other_total = sum_money(i.price for i in partitions[AllocationCategory.OTHER])
    shared_total = sum_money(i.price for i in partitions[AllocationCategory.SHARED])
    self_half, other_half = split_evenly(shared_total)

    return AllocationResult(
        self_items=tuple(partitions[AllocationCategory.SELF]),
        other_items=tuple(partitions[AllocationCategory.OTHER]),
        shared_items=tuple(partitions[AllocationCategory.SHARED]),
        totals=AllocationTotals(
            self_total=self_total,
            other_total=other_total,
            shared_total=shared_total,
            self_share=self_total + self_half,
            other_share=other_total + other_half,
        ),
    )
