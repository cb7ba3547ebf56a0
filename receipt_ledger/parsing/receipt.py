"""
Receipt Parser

Turns raw OCR text into the ordered list of priced items on the receipt.
"""

from typing import Optional

import structlog

from receipt_ledger.models.receipt import ReceiptLineItem
from receipt_ledger.parsing.classifier import NoiseClassifier, default_classifier
from receipt_ledger.parsing.items import parse_item_line

logger = structlog.get_logger(__name__)


def split_lines(raw_text: str) -> list[str]:
    """Trimmed, non-empty lines of the text."""
    return [line.strip() for line in raw_text.splitlines() if line.strip()]


def parse_receipt(
    raw_text: str,
    classifier: Optional[NoiseClassifier] = None,
) -> list[ReceiptLineItem]:
    """
    Parse OCR text into receipt line items.

    Noise lines are skipped, every other line is tried as an item line.
    Items get ids item-1, item-2, ... in the order they appear. Empty or
    all-noise text gives an empty list.
    """
    classifier = classifier or default_classifier
    items: list[ReceiptLineItem] = []
    noise_count = 0

    for line in split_lines(raw_text or ""):
        if classifier.is_noise(line):
            noise_count += 1
            continue

        parsed = parse_item_line(line)
        if parsed is None:
            continue

        items.append(ReceiptLineItem(
            id=f"item-{len(items) + 1}",
            description=parsed.description[:200],
            price=parsed.price,
        ))

    logger.debug(
        "receipt_parsed",
        item_count=len(items),
        noise_line_count=noise_count,
    )
    return items
