"""
Receipt Normalizer

Normalizes raw OCR text and the values read from it:
- Line splitting on any line-break convention
- Whitespace cleanup
- Date standardization (ISO 8601) for French and numeric receipt dates
"""

import logging
import re
from datetime import date
from typing import List, Optional

from recex.processors.receipt.patterns import (
    DAY_FIRST_DATE_RE,
    FRENCH_DATE_RE,
    FRENCH_MONTHS,
    YEAR_FIRST_DATE_RE,
)

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r'\s+')


def normalize_lines(text: str) -> List[str]:
    """
    Split raw text into trimmed, non-empty lines, preserving order.

    Runs of inner whitespace collapse to a single space so that OCR spacing
    noise does not split otherwise identical item descriptions.
    """
    if not text:
        return []
    lines = (_WHITESPACE_RE.sub(' ', line).strip() for line in text.splitlines())
    return [line for line in lines if line]


def normalize_date(value: Optional[str]) -> Optional[str]:
    """Normalize a receipt date to ISO format (YYYY-MM-DD)

    Returns None when no supported date can be read from the value.
    """
    parsed = parse_receipt_date(value)
    return parsed.isoformat() if parsed else None


def parse_receipt_date(value: Optional[str]) -> Optional[date]:
    """Read a date written as '20 janvier 2025', '20/01/2025' or '2025-01-20'"""
    if not value:
        return None
    value = value.strip()

    match = FRENCH_DATE_RE.search(value)
    if match:
        day, month_name, year = match.groups()
        month = FRENCH_MONTHS.get(month_name.lower())
        return _safe_date(int(year), month, int(day))

    match = YEAR_FIRST_DATE_RE.search(value)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = DAY_FIRST_DATE_RE.search(value)
    if match:
        first, second, year = (int(part) for part in match.groups())
        # Day first is the Québec convention; month first only when that is the sole valid reading
        return _safe_date(year, second, first) or _safe_date(year, first, second)

    return None


def _safe_date(year: int, month: Optional[int], day: int) -> Optional[date]:
    if month is None:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        logger.debug(f"Ignoring impossible date {year}-{month}-{day}")
        return None
