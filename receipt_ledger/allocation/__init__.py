"""Receipt allocation package."""

from receipt_ledger.allocation.aggregator import aggregate
from receipt_ledger.allocation.bridge import allocation_to_drafts
from receipt_ledger.allocation.workflow import (
    TRANSITIONS,
    AllocationWorkflow,
    EmptyItemListError,
    IllegalTransitionError,
    NothingToUndoError,
    UnknownItemError,
    WorkflowError,
    WorkflowState,
)

__all__ = [
    "aggregate",
    "allocation_to_drafts",
    "TRANSITIONS",
    "AllocationWorkflow",
    "EmptyItemListError",
    "IllegalTransitionError",
    "NothingToUndoError",
    "UnknownItemError",
    "WorkflowError",
    "WorkflowState",
]
