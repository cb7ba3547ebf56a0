"""
Allocation to ledger bridge.

A finished allocation becomes one expense per non-empty partition, all
paid by whoever paid the receipt:

- shared items   -> split "both"
- the other party's items -> billed to that party in full
- the payer's own items   -> personal record, no effect on balances
"""

import datetime as dt
from typing import Optional

from receipt_ledger.models.ledger import SPLIT_BOTH, TransactionDraft, TransactionKind
from receipt_ledger.models.receipt import AllocationResult

DEFAULT_LABEL = "Receipt"


def allocation_to_drafts(
    result: AllocationResult,
    household_id: str,
    payer: str,
    counterparty: str,
    on: Optional[dt.date] = None,
    label: Optional[str] = None,
) -> list[TransactionDraft]:
    """Expense drafts for an allocation, shared first, then other, then personal."""
    if payer == counterparty:
        raise ValueError("Payer and counterparty must be different parties")

    on = on or dt.date.today()
    label = (label or DEFAULT_LABEL).strip() or DEFAULT_LABEL
    totals = result.totals

    parts = (
        (totals.shared_total, SPLIT_BOTH, f"{label} (shared)"),
        (totals.other_total, counterparty, f"{label} ({counterparty})"),
        (totals.self_total, payer, f"{label} (personal)"),
    )

    return [
        TransactionDraft(
            kind=TransactionKind.EXPENSE,
            amount=amount,
            description=description[:200],
            date=on,
            paid_by=payer,
            split_with=split_with,
            household_id=household_id,
        )
        for amount, split_with, description in parts
        if amount > 0
    ]
