"""
Money helpers

Receipt amounts are Decimals rounded half-up to cents.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from recex.models.invoice import CENTS
from recex.processors.receipt.patterns import (
    LEADING_AMOUNT_RE,
    PURE_AMOUNT_RE,
    TRAILING_AMOUNT_RE,
)

ZERO = Decimal('0.00')


def to_cents(value: Decimal) -> Decimal:
    """Round to two decimal places, half-up"""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(text: str) -> Decimal:
    """Convert '12,34' or '12.34' to Decimal('12.34')"""
    return to_cents(Decimal(text.replace(',', '.')))


def trailing_amount(line: str) -> Optional[Decimal]:
    """Amount printed at the end of a line, e.g. 'TOTAL 31.85$'"""
    match = TRAILING_AMOUNT_RE.search(line.strip())
    return parse_amount(match.group(1)) if match else None


def pure_amount(line: str) -> Optional[Decimal]:
    """Amount when the line holds nothing else, e.g. '7.99$'"""
    match = PURE_AMOUNT_RE.match(line.strip())
    return parse_amount(match.group(1)) if match else None


def leading_amount(line: str) -> Optional[Decimal]:
    """Amount printed before its label, e.g. '31.85$ TOTAL'"""
    match = LEADING_AMOUNT_RE.match(line.strip())
    return parse_amount(match.group(1)) if match else None


def money_sum(values: Iterable[Decimal]) -> Decimal:
    return to_cents(sum(values, ZERO))


def within_tolerance(a: Decimal, b: Decimal, tolerance: Decimal) -> bool:
    return abs(a - b) <= tolerance
