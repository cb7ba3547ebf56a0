"""
Ledger reporting helpers.

Read-only views over the transaction log, used for the history list and
the monthly overview.
"""

from decimal import Decimal
from typing import Iterable

from receipt_ledger.models.ledger import (
    SPLIT_BOTH,
    MonthlySummary,
    Transaction,
    TransactionKind,
)
from receipt_ledger.money import ZERO, half_of


def order_for_display(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Newest first: by booking date, then by when the entry was stored."""
    return sorted(
        transactions,
        key=lambda t: (t.date, t.created_at),
        reverse=True,
    )


def viewer_share_of(transaction: Transaction, viewer: str) -> Decimal:
    """
    Part of an expense that is the viewer's own cost.

    Matches the ledger engine: for a split expense the non-payer carries
    the rounded half and the payer the rest.
    """
    amount = transaction.amount
    viewer_paid = transaction.paid_by == viewer

    if transaction.is_personal:
        return amount if viewer_paid else ZERO
    if transaction.split_with == SPLIT_BOTH:
        half = half_of(amount)
        return amount - half if viewer_paid else half
    return amount if transaction.split_with == viewer else ZERO


def monthly_summary(
    transactions: Iterable[Transaction],
    viewer: str,
    year: int,
    month: int,
) -> MonthlySummary:
    """Household expense total for a month and the viewer's share of it."""
    total = ZERO
    share = ZERO
    count = 0

    for transaction in transactions:
        if transaction.kind is not TransactionKind.EXPENSE:
            continue
        if (transaction.date.year, transaction.date.month) != (year, month):
            continue
        total += transaction.amount
        share += viewer_share_of(transaction, viewer)
        count += 1

    return MonthlySummary(
        year=year,
        month=month,
        viewer=viewer,
        total_expenses=total,
        viewer_share=share,
        transaction_count=count,
    )
