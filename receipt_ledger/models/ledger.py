"""
Ledger Models

The ledger is an append-only log of transactions between the two parties
of a household. Balances are never stored: they are derived from the log
every time they are needed.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

# split_with value for an expense shared evenly between both parties
SPLIT_BOTH = "both"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class TransactionKind(str, Enum):
    """Kinds of ledger entries."""
    EXPENSE = "expense"
    INCOME = "income"
    SETTLEMENT = "settlement"  # direct transfer paying down a debt


class BalanceStatus(str, Enum):
    """Where a party stands, seen from that party."""
    OWED = "owed"        # the other party owes this one
    OWES = "owes"        # this party owes the other one
    SETTLED = "settled"


class TransactionDraft(BaseModel):
    """
    A transaction as submitted, before the store assigns identity.

    split_with is one of:
    - "both": the expense is shared evenly
    - a party id: that party owes the whole amount
    - None: a personal entry with no effect between the parties
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    kind: TransactionKind
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Transaction amount"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200
    )
    date: dt.date = Field(
        default_factory=dt.date.today,
        description="Booking date"
    )
    paid_by: str = Field(
        ...,
        min_length=1,
        description="Party who paid"
    )
    split_with: Optional[str] = Field(
        default=None,
        description="'both', a party id, or None"
    )
    household_id: str = Field(
        ...,
        min_length=1
    )

    @field_validator('split_with', mode='before')
    @classmethod
    def blank_split_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode='after')
    def validate_payer(self) -> 'TransactionDraft':
        if self.paid_by == SPLIT_BOTH:
            raise ValueError("paid_by must name a single party")
        return self

    @property
    def is_personal(self) -> bool:
        """An expense nobody else owes anything for."""
        return self.split_with is None or self.split_with == self.paid_by


class Transaction(TransactionDraft):
    """A stored ledger entry. Never mutated once appended."""

    id: UUID = Field(
        default_factory=uuid4,
        description="Store-assigned identifier"
    )
    created_at: dt.datetime = Field(
        default_factory=_utcnow,
        description="When the store accepted the entry"
    )

    @classmethod
    def from_draft(
        cls,
        draft: TransactionDraft,
        id: Optional[UUID] = None,
        created_at: Optional[dt.datetime] = None,
    ) -> 'Transaction':
        """Stamp a draft with identity and creation time."""
        data = draft.model_dump()
        if id is not None:
            data["id"] = id
        if created_at is not None:
            data["created_at"] = created_at
        return cls(**data)


class Balance(BaseModel):
    """
    Net position between the two parties.

    Positive means the party is owed money. The two balances always sum
    to zero.
    """
    model_config = ConfigDict(frozen=True)

    viewer: str
    counterparty: Optional[str] = None
    viewer_balance: Decimal
    counterparty_balance: Decimal

    @model_validator(mode='after')
    def validate_zero_sum(self) -> 'Balance':
        if self.viewer_balance + self.counterparty_balance != 0:
            raise ValueError("Balances of the two parties must sum to zero")
        return self

    @classmethod
    def from_viewer_delta(
        cls,
        viewer: str,
        delta: Decimal,
        counterparty: Optional[str] = None,
    ) -> 'Balance':
        return cls(
            viewer=viewer,
            counterparty=counterparty,
            viewer_balance=delta,
            counterparty_balance=0 - delta,
        )

    @property
    def status(self) -> BalanceStatus:
        """Viewer's standing."""
        if self.viewer_balance > 0:
            return BalanceStatus.OWED
        if self.viewer_balance < 0:
            return BalanceStatus.OWES
        return BalanceStatus.SETTLED

    @property
    def outstanding(self) -> Decimal:
        """Amount that would settle the balance."""
        return abs(self.viewer_balance)

    def for_party(self, party: str) -> Decimal:
        """Balance of either party by id."""
        if party == self.viewer:
            return self.viewer_balance
        if self.counterparty is not None and party == self.counterparty:
            return self.counterparty_balance
        raise KeyError(f"Unknown party: {party}")


class MonthlySummary(BaseModel):
    """Expense totals for one calendar month, seen from one party."""

    year: int = Field(..., ge=1)
    month: int = Field(..., ge=1, le=12)
    viewer: str
    total_expenses: Decimal
    viewer_share: Decimal
    transaction_count: int = Field(..., ge=0)
