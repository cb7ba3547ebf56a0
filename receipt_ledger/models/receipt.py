"""
Receipt and Allocation Models

These models describe what flows from a scanned receipt to a finished
allocation:
1. ReceiptImage - the uploaded photo, checked but not yet read
2. ReceiptLineItem - one priced line read off the receipt
3. AllocationResult - every item assigned to self, other or shared,
   with the derived totals

Items are frozen. Review edits and category assignment replace an item
with a modified copy, so an item held by an AllocationResult can never
change underneath it.
"""

from datetime import datetime, timezone
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

from receipt_ledger.money import sum_money


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class AllocationCategory(str, Enum):
    """
    Who pays for a receipt item.

    SELF is the person scanning the receipt, OTHER the housemate.
    """
    SELF = "self"
    OTHER = "other"
    SHARED = "shared"


# =============================================================================
# RECEIPT ITEMS
# =============================================================================

class ReceiptLineItem(BaseModel):
    """
    A single priced line from a receipt.

    Created by the receipt parser (ids item-1, item-2, ...) or added
    manually during review (ids manual-1, manual-2, ...).
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Identifier, unique within one parse/review session"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Item description as printed (normalized) or typed"
    )
    price: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Line total"
    )
    category: Optional[AllocationCategory] = Field(
        default=None,
        description="Assigned during categorization"
    )

    def with_category(self, category: AllocationCategory) -> "ReceiptLineItem":
        """Copy of this item assigned to a category."""
        return self.model_copy(update={"category": AllocationCategory(category)})

    def without_category(self) -> "ReceiptLineItem":
        return self.model_copy(update={"category": None})


# =============================================================================
# ALLOCATION
# =============================================================================

class AllocationTotals(BaseModel):
    """
    Money totals of an allocation.

    self_share = self_total + half of shared_total
    other_share = other_total + the rest of shared_total
    """
    model_config = ConfigDict(frozen=True)

    self_total: Decimal = Field(..., ge=0)
    other_total: Decimal = Field(..., ge=0)
    shared_total: Decimal = Field(..., ge=0)
    self_share: Decimal = Field(..., ge=0)
    other_share: Decimal = Field(..., ge=0)

    @property
    def grand_total(self) -> Decimal:
        """Sum of all allocated items."""
        return self.self_total + self.other_total + self.shared_total


class AllocationResult(BaseModel):
    """
    Outcome of categorizing every item of a receipt.

    No item is lost or duplicated: the three partitions together hold
    exactly the categorized items, and both the category totals and the
    two shares add up to the sum of their prices. This is checked on
    construction.
    """
    model_config = ConfigDict(frozen=True)

    self_items: tuple[ReceiptLineItem, ...] = ()
    other_items: tuple[ReceiptLineItem, ...] = ()
    shared_items: tuple[ReceiptLineItem, ...] = ()
    totals: AllocationTotals

    @property
    def all_items(self) -> tuple[ReceiptLineItem, ...]:
        return self.self_items + self.other_items + self.shared_items

    @property
    def item_count(self) -> int:
        return len(self.all_items)

    @model_validator(mode='after')
    def validate_invariants(self) -> 'AllocationResult':
        """Check partitions and totals agree with each other."""
        partitions = (
            (AllocationCategory.SELF, self.self_items),
            (AllocationCategory.OTHER, self.other_items),
            (AllocationCategory.SHARED, self.shared_items),
        )
        for category, items in partitions:
            for item in items:
                if item.category != category:
                    raise ValueError(
                        f"Item {item.id} is in the {category.value} partition "
                        f"but categorized as {item.category}"
                    )

        ids = [item.id for item in self.all_items]
        if len(ids) != len(set(ids)):
            raise ValueError("An item appears more than once in the allocation")

        items_total = sum_money(item.price for item in self.all_items)
        if self.totals.grand_total != items_total:
            raise ValueError("Category totals do not add up to the item total")
        if self.totals.self_share + self.totals.other_share != items_total:
            raise ValueError("Shares do not add up to the item total")

        return self


# =============================================================================
# IMAGE INTAKE
# =============================================================================

class ReceiptImage(BaseModel):
    """
    An uploaded receipt photo that decoded successfully.

    The raw bytes travel with the model but are kept out of repr and dumps
    so they never end up in a log line.
    """
    model_config = ConfigDict(frozen=True)

    upload_id: UUID = Field(
        default_factory=uuid4,
        description="Unique upload identifier"
    )
    uploaded_at: datetime = Field(
        default_factory=_utcnow
    )
    filename: str
    mime_type: str
    size_bytes: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    content: bytes = Field(repr=False, exclude=True)

    @field_validator('mime_type')
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only allow image types."""
        allowed = {'image/jpeg', 'image/png', 'image/webp'}
        if v.lower() not in allowed:
            raise ValueError(f"Unsupported image type: {v}. Allowed: {allowed}")
        return v.lower()


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'not_positive')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )
