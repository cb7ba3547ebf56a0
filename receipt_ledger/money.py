"""
Money helpers.

All amounts are decimal.Decimal quantized to the cent. Receipts print
amounts with either a comma or a dot as decimal separator ("2,49", "2.49"),
so parsing accepts both.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyInput = Union[Decimal, int, str]


class InvalidAmountError(ValueError):
    """A value could not be read as a money amount."""
    pass


def read_decimal(value: MoneyInput) -> Decimal:
    """
    Read a value as an exact, unrounded Decimal.

    Strings may use a comma or dot as decimal separator. Floats are refused:
    they cannot represent most cent values exactly.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(f"Refusing to read money from {type(value).__name__}: {value!r}")
    if isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            raise InvalidAmountError("Amount is empty")
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise InvalidAmountError(f"Not a number: {value!r}")
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError):
        raise InvalidAmountError(f"Not a number: {value!r}")
    if not amount.is_finite():
        raise InvalidAmountError(f"Not a finite amount: {value!r}")
    return amount


def to_money(value: MoneyInput) -> Decimal:
    """Convert a value to a cent-quantized Decimal."""
    amount = read_decimal(value)
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmountError(f"Amount out of range: {value!r}")


def has_cent_precision(amount: Decimal) -> bool:
    """True if the amount has no digits beyond the cent."""
    try:
        return amount == amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return False


def half_of(amount: Decimal) -> Decimal:
    """Half of an amount, rounded half-up to the cent."""
    return (amount / 2).quantize(CENT, rounding=ROUND_HALF_UP)


def split_evenly(amount: Decimal) -> tuple[Decimal, Decimal]:
    """
    Split an amount into two cent-precise parts that add up to it exactly.

    The first part is the rounded half; the second takes the remainder, so
    an odd cent goes to the first part.
    """
    first = half_of(amount)
    return first, amount - first


def sum_money(amounts: Iterable[Decimal]) -> Decimal:
    """Exact sum of amounts, ZERO for an empty iterable."""
    return sum(amounts, ZERO)
