"""Input validation package."""

from receipt_ledger.validation.review import InvalidItemInputError, ReviewInputValidator

__all__ = ["InvalidItemInputError", "ReviewInputValidator"]
