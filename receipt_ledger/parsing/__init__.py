"""Receipt text parsing package."""

from receipt_ledger.parsing.classifier import (
    DEFAULT_RULES,
    NoiseClassifier,
    NoiseRule,
    contains_rule,
    is_noise,
    pattern_rule,
    prefix_rule,
)
from receipt_ledger.parsing.items import (
    ParsedItemLine,
    normalize_description,
    parse_item_line,
)
from receipt_ledger.parsing.receipt import parse_receipt, split_lines

__all__ = [
    "DEFAULT_RULES",
    "NoiseClassifier",
    "NoiseRule",
    "contains_rule",
    "is_noise",
    "pattern_rule",
    "prefix_rule",
    "ParsedItemLine",
    "normalize_description",
    "parse_item_line",
    "parse_receipt",
    "split_lines",
]
