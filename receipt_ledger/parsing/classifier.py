"""
Receipt Line Classifier

Decides whether a line of OCR text is noise (store header, totals, payment
terminal output, loyalty advertising, separators) or a candidate item line.

The ruleset is an ordered list of small, named predicates rather than one
large regular expression. Receipt layouts differ per merchant; a new
format is supported by appending rules, never by editing existing ones.
The default rules cover German supermarket receipts (REWE layout).
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional


@dataclass(frozen=True)
class NoiseRule:
    """A named predicate that recognizes one kind of noise line."""
    name: str
    matches: Callable[[str], bool]

    def __call__(self, line: str) -> bool:
        return self.matches(line)


def prefix_rule(name: str, *prefixes: str) -> NoiseRule:
    """Rule matching lines that start with any prefix (case-insensitive)."""
    pattern = re.compile(
        "^(?:" + "|".join(re.escape(p) for p in prefixes) + ")",
        re.IGNORECASE,
    )
    return NoiseRule(name, lambda line: pattern.search(line) is not None)


def contains_rule(name: str, *fragments: str) -> NoiseRule:
    """Rule matching lines that contain any fragment (case-insensitive)."""
    pattern = re.compile(
        "|".join(re.escape(f) for f in fragments),
        re.IGNORECASE,
    )
    return NoiseRule(name, lambda line: pattern.search(line) is not None)


def pattern_rule(name: str, regex: str) -> NoiseRule:
    """Rule matching a regular expression anywhere in the line."""
    pattern = re.compile(regex, re.IGNORECASE)
    return NoiseRule(name, lambda line: pattern.search(line) is not None)


MERCHANT_HEADER = prefix_rule(
    "merchant_header",
    "REWE", "Markt", "Kurfürstendamm", "Berlin", "UID",
)

TOTALS = prefix_rule(
    "totals",
    "SUMME", "Zwischensumme", "Geg.", "Betrag EUR", "Steuer",
)

# "TOTAL 12,50" / "SUBTOTAL 12,50" but not "TOTALREINIGER 2,99"
ENGLISH_TOTALS = pattern_rule("english_totals", r"^(?:sub\s*)?total\b")

DATE_LINE = pattern_rule("date_line", r"^\d{2}\.\d{2}\.\d{4}$")

TIME_LINE = pattern_rule("time_line", r"^\d{2}:\d{2}$")

DATE_TIME_LABELS = prefix_rule("date_time_labels", "Datum:", "Uhrzeit:")

PAYMENT_TERMINAL = prefix_rule(
    "payment_terminal",
    "EC-Cash",
    "Beleg-Nr",
    "Trace-Nr",
    "Kartenzahlung",
    "Contactless",
    "girocard",
    "Nr.",
    "Terminal-ID",
    "Pos-Info",
    "AS-Zeit",
    "Zahlung erfolgt",
    "TSE-",
    "Seriennummer",
    "Markt:",
    "Kasse:",
    "Bed.:",
)

LOYALTY_MARKETING = contains_rule(
    "loyalty_marketing",
    "Entdecke und aktiviere",
    "Bonus-Vorteile",
    "Einfach beim",
    "Sammle noch mehr",
    "Coupons",
    "Keine Rabatte",
    "gekennzeichnete Produkte",
    "Vielen Dank",
)

SEPARATOR = pattern_rule("separator", r"^(?:\*+|=+|-+)$")


DEFAULT_RULES: tuple[NoiseRule, ...] = (
    MERCHANT_HEADER,
    TOTALS,
    ENGLISH_TOTALS,
    DATE_LINE,
    TIME_LINE,
    DATE_TIME_LABELS,
    PAYMENT_TERMINAL,
    LOYALTY_MARKETING,
    SEPARATOR,
)


class NoiseClassifier:
    """
    Applies an ordered set of noise rules to receipt lines.

    A line is noise if any rule matches. Rules are checked in order and
    the first match wins for reporting purposes.
    """

    def __init__(self, rules: Iterable[NoiseRule] = DEFAULT_RULES):
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[NoiseRule, ...]:
        return self._rules

    def matching_rule(self, line: str) -> Optional[NoiseRule]:
        """The first rule that recognizes the line as noise, if any."""
        for rule in self._rules:
            if rule(line):
                return rule
        return None

    def is_noise(self, line: str) -> bool:
        return self.matching_rule(line) is not None

    def with_rules(self, *extra: NoiseRule) -> "NoiseClassifier":
        """A classifier with extra rules appended after the existing ones."""
        return NoiseClassifier(self._rules + extra)


default_classifier = NoiseClassifier()


def is_noise(line: str) -> bool:
    """True if the line is receipt noise under the default rules."""
    return default_classifier.is_noise(line)
