"""Household ledger package."""

from receipt_ledger.ledger.engine import compute_balances, viewer_delta
from receipt_ledger.ledger.service import (
    InvalidSettlementError,
    LedgerError,
    LedgerService,
    NothingToSettleError,
    UnknownPartyError,
)
from receipt_ledger.ledger.summary import monthly_summary, order_for_display, viewer_share_of

__all__ = [
    "compute_balances",
    "viewer_delta",
    "InvalidSettlementError",
    "LedgerError",
    "LedgerService",
    "NothingToSettleError",
    "UnknownPartyError",
    "monthly_summary",
    "order_for_display",
    "viewer_share_of",
]
