"""
Review Input Validation

During review the user may add items or correct what OCR read. Their
input is checked here before it is accepted into the editable item list:

- the description must not be empty
- the price must be a number, greater than zero, with at most two
  decimal places (comma or dot as separator)

Invalid input is REJECTED, never silently corrected. The caller gets the
list of issues so it can show them next to the form.
"""

from decimal import Decimal
from typing import Optional, Union

from receipt_ledger.models.receipt import ValidationIssue
from receipt_ledger.money import (
    InvalidAmountError,
    has_cent_precision,
    read_decimal,
    to_money,
)

MAX_DESCRIPTION_LENGTH = 200


class InvalidItemInputError(ValueError):
    """User input for a review item was rejected."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))


class ReviewInputValidator:
    """
    Validates manual item input during receipt review.

    Checks the description and price independently so the user sees every
    problem at once.
    """

    def _check_description(
        self,
        description: Optional[str],
    ) -> tuple[Optional[str], list[ValidationIssue]]:
        issues = []
        text = " ".join((description or "").split())

        if not text:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Item description is required",
                severity="error",
                suggested_fix="Type what the item is, e.g. 'MILK'",
            ))
            return None, issues

        if len(text) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Item description is longer than {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
                suggested_fix="Shorten the description",
            ))
            return None, issues

        return text, issues

    def _check_price(
        self,
        price: Union[str, Decimal, int, None],
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        issues = []

        if price is None or (isinstance(price, str) and not price.strip()):
            issues.append(ValidationIssue(
                field="price",
                issue_type="missing",
                message="Item price is required",
                severity="error",
                suggested_fix="Enter the price printed on the receipt",
            ))
            return None, issues

        try:
            amount = read_decimal(price)
        except InvalidAmountError:
            issues.append(ValidationIssue(
                field="price",
                issue_type="invalid_format",
                message=f"Price '{price}' is not a number",
                severity="error",
                suggested_fix="Use digits with a comma or dot, e.g. 2,49",
            ))
            return None, issues

        if amount <= 0:
            issues.append(ValidationIssue(
                field="price",
                issue_type="not_positive",
                message="Price must be greater than zero",
                severity="error",
                suggested_fix="Delete the item instead of setting its price to zero",
            ))
            return None, issues

        if not has_cent_precision(amount):
            issues.append(ValidationIssue(
                field="price",
                issue_type="too_precise",
                message=f"Price '{price}' has more than two decimal places",
                severity="error",
                suggested_fix="Round to whole cents",
            ))
            return None, issues

        return to_money(amount), issues

    def validate_item(
        self,
        description: Optional[str],
        price: Union[str, Decimal, int, None],
    ) -> tuple[str, Decimal]:
        """
        Validate a complete item (add).

        Returns the cleaned (description, price).

        Raises:
            InvalidItemInputError: listing every problem found
        """
        clean_description, issues = self._check_description(description)
        clean_price, price_issues = self._check_price(price)
        issues.extend(price_issues)

        if issues:
            raise InvalidItemInputError(issues)
        return clean_description, clean_price

    def validate_changes(
        self,
        description: Optional[str] = None,
        price: Union[str, Decimal, int, None] = None,
    ) -> dict:
        """
        Validate a partial edit. Fields left as None are not changed.

        Returns the cleaned changes as a dict suitable for updating an item.

        Raises:
            InvalidItemInputError: listing every problem found
        """
        changes = {}
        issues = []

        if description is not None:
            clean_description, description_issues = self._check_description(description)
            issues.extend(description_issues)
            changes["description"] = clean_description

        if price is not None:
            clean_price, price_issues = self._check_price(price)
            issues.extend(price_issues)
            changes["price"] = clean_price

        if issues:
            raise InvalidItemInputError(issues)
        return changes

    def get_user_friendly_summary(self, issues: list[ValidationIssue]) -> str:
        """Message to show next to the item form."""
        if not issues:
            return "✅ Item looks good."

        lines = ["❌ This item can't be saved yet:"]
        for issue in issues:
            lines.append(f"   • {issue.message}")
            if issue.suggested_fix:
                lines.append(f"     💡 {issue.suggested_fix}")
        return "\n".join(lines)
