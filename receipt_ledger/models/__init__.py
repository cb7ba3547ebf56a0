"""
Data Models Package

This package contains all Pydantic models used in the Receipt Ledger system.
All data flowing through the system must conform to these schemas.
"""

from receipt_ledger.models.receipt import (
    AllocationCategory,
    AllocationResult,
    AllocationTotals,
    ReceiptImage,
    ReceiptLineItem,
    ValidationIssue,
)
from receipt_ledger.models.ledger import (
    SPLIT_BOTH,
    Balance,
    BalanceStatus,
    MonthlySummary,
    Transaction,
    TransactionDraft,
    TransactionKind,
)
from receipt_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Receipt models
    "AllocationCategory",
    "AllocationResult",
    "AllocationTotals",
    "ReceiptImage",
    "ReceiptLineItem",
    "ValidationIssue",
    # Ledger models
    "SPLIT_BOTH",
    "Balance",
    "BalanceStatus",
    "MonthlySummary",
    "Transaction",
    "TransactionDraft",
    "TransactionKind",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
