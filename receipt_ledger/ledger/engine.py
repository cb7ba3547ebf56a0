"""
Ledger Engine

Computes where two housemates stand from the full transaction log.

DESIGN DECISION: Balances are never stored or updated incrementally.
Each transaction contributes a signed amount to the viewer and the
counterparty gets exactly the negation, so:
1. The two balances always sum to zero
2. The result does not depend on the order of the log
3. Recomputing from the same log always gives the same answer

Contribution of one transaction to the viewer (positive = viewer is owed):

    expense, split "both"          payer +half, other party -half
    expense, billed to a party     payer +amount, that party -amount
    expense, personal              nothing
    settlement                     payer +amount, other party -amount
    income                         nothing

half is the amount halved and rounded half-up to the cent.
"""

from decimal import Decimal
from typing import Iterable, Optional

from receipt_ledger.models.ledger import (
    SPLIT_BOTH,
    Balance,
    Transaction,
    TransactionKind,
)
from receipt_ledger.money import ZERO, half_of


def viewer_delta(transaction: Transaction, viewer: str) -> Decimal:
    """Signed effect of one transaction on the viewer's balance."""
    amount = transaction.amount
    viewer_paid = transaction.paid_by == viewer

    if transaction.kind is TransactionKind.SETTLEMENT:
        return amount if viewer_paid else -amount

    if transaction.kind is not TransactionKind.EXPENSE:
        return ZERO

    if transaction.is_personal:
        return ZERO

    if transaction.split_with == SPLIT_BOTH:
        half = half_of(amount)
        return half if viewer_paid else -half

    if viewer_paid:
        return amount
    if transaction.split_with == viewer:
        return -amount
    return ZERO


def compute_balances(
    transactions: Iterable[Transaction],
    viewer: str,
    counterparty: Optional[str] = None,
) -> Balance:
    """
    Balance of viewer against the other party of the household.

    Pure: depends only on the transactions passed in.
    """
    delta = ZERO
    for transaction in transactions:
        delta += viewer_delta(transaction, viewer)
    return Balance.from_viewer_delta(viewer, delta, counterparty=counterparty)
