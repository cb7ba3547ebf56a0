"""
Receipt Item Line Parser

Extracts a description and a price from a candidate item line. Extractors
are tried in order; the first that produces a result wins:

1. primary:    "KOERNER BALANCE EUR 2,49 B"
               <description> [EUR|€] <amount> [A|B] [*]
2. two_amount: "PFAND 0,25 EURO 0,25 A *"
               <description> <unit price> EUR|EURO <line total> [A|B] [*]
               The line total (second amount) is the price.

A trailing A/B is the VAT class printed by German tills, "*" marks
deposit or discounted lines. Lines nothing matches are dropped; that is
normal for OCR output and not an error.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, NamedTuple, Optional

from receipt_ledger.money import InvalidAmountError, to_money

AMOUNT = r"\d+[,.]\d{2}"

_PRIMARY = re.compile(
    rf"^(?P<description>.+?)\s+(?:EUR|€)?\s*(?P<amount>{AMOUNT})\s*[AB]?\s*\*?$",
    re.IGNORECASE,
)

_TWO_AMOUNT = re.compile(
    rf"^(?P<description>.+?)\s+(?P<unit_amount>{AMOUNT})\s+(?:EUR|EURO)\s+"
    rf"(?P<amount>{AMOUNT})\s*[AB]?\s*\*?$",
    re.IGNORECASE,
)

# a description ending in "<amount>" or "<amount> EUR|EURO" may be the unit
# price of a two-amount line
_TRAILING_UNIT_PRICE = re.compile(rf"\s{AMOUNT}(?:\s+(?:EUR|EURO))?$", re.IGNORECASE)

_LEADING_CURRENCY = re.compile(r"^(?:EURO|EUR|€)\s*", re.IGNORECASE)
_TRAILING_CURRENCY = re.compile(r"\s*(?:EURO|EUR|€)$", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

MIN_DESCRIPTION_LENGTH = 3


class ParsedItemLine(NamedTuple):
    """Description and price read from one receipt line."""
    description: str
    price: Decimal

    @property
    def minor_units(self) -> int:
        """Price in cents."""
        return int(self.price * 100)


@dataclass(frozen=True)
class ItemExtractor:
    """A named pattern that pulls a raw (description, amount) pair from a line."""
    name: str
    extract: Callable[[str], Optional[tuple[str, str]]]


def _extract_primary(line: str) -> Optional[tuple[str, str]]:
    match = _PRIMARY.match(line)
    if not match:
        return None
    description = match.group("description")
    # leave deposit lines to two_amount; other lines keep the number in the
    # description ("WEIN 0,75 2,99 A")
    if _TRAILING_UNIT_PRICE.search(description) and _TWO_AMOUNT.match(line):
        return None
    return description, match.group("amount")


def _extract_two_amount(line: str) -> Optional[tuple[str, str]]:
    match = _TWO_AMOUNT.match(line)
    if not match:
        return None
    return match.group("description"), match.group("amount")


PRIMARY = ItemExtractor("primary", _extract_primary)
TWO_AMOUNT = ItemExtractor("two_amount", _extract_two_amount)

DEFAULT_EXTRACTORS: tuple[ItemExtractor, ...] = (PRIMARY, TWO_AMOUNT)


def normalize_description(description: str) -> str:
    """
    Normalize an item description.

    Strips a leading/trailing currency token, collapses whitespace and
    upper-cases (receipts and OCR are inconsistent about case).
    """
    text = description.strip()
    text = _LEADING_CURRENCY.sub("", text)
    text = _TRAILING_CURRENCY.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip().upper()


def parse_item_line(
    line: str,
    extractors: tuple[ItemExtractor, ...] = DEFAULT_EXTRACTORS,
) -> Optional[ParsedItemLine]:
    """
    Parse one candidate line into (description, price).

    Returns None when no extractor matches, when the price is not
    positive, or when the normalized description is too short to be a
    real item (OCR fragments like "A" or "%1").
    """
    for extractor in extractors:
        raw = extractor.extract(line)
        if raw is None:
            continue

        raw_description, raw_amount = raw
        try:
            price = to_money(raw_amount)
        except InvalidAmountError:
            return None

        description = normalize_description(raw_description)
        if price <= 0 or len(description) < MIN_DESCRIPTION_LENGTH:
            return None

        return ParsedItemLine(description, price)

    return None
