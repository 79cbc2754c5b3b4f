"""
Line Item Extractor and Aggregator

Finds purchased items in normalized receipt lines. An item is a description
line followed by a line holding only its price:

    2 x DISNEY LORCANA - BOOSTER PACK
    15.98$
    4050368983466        <- optional barcode, attached to the item

Lines naming totals, taxes or payment modes, barcode lines and the printed
"N Article(s)" count are never items. Repeated items are merged afterwards
on (description, unit price).
"""

import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from recex.config.receipt_config import ReceiptConfig
from recex.models.invoice import LineItem
from recex.processors.receipt.amounts import pure_amount, to_cents, trailing_amount
from recex.processors.receipt.normalizer import normalize_lines
from recex.processors.receipt.patterns import (
    BARCODE_RE,
    ITEM_COUNT_RE,
    LETTER_RE,
    QUANTITY_PATTERNS,
    keyword_pattern,
)

logger = logging.getLogger(__name__)


class LineItemExtractor:
    """
    Extracts line items from normalized receipt lines.

    Usage:
        extractor = LineItemExtractor(config)
        items = extractor.extract_line_items(lines)
    """

    def __init__(self, config: Optional[ReceiptConfig] = None):
        self.config = config or ReceiptConfig.load_default()
        self._exclusion_re = keyword_pattern(self.config.item_exclusions)

    def extract_line_items(self, lines: Sequence[str]) -> List[LineItem]:
        """
        Extract line items in document order, without merging duplicates.

        Args:
            lines: Normalized receipt lines

        Returns:
            List of line items
        """
        items = []
        index = 0
        while index < len(lines):
            next_line = lines[index + 1] if index + 1 < len(lines) else ''
            item = self.read_item(lines[index], next_line)
            if item is None:
                index += 1
                continue

            # Skip the price line, and the barcode printed under it if any
            index += 2
            if index < len(lines) and BARCODE_RE.match(lines[index]):
                item = item.model_copy(update={'barcode': lines[index]})
                index += 1

            logger.debug(f"Item detected: {item.quantity} x {item.description} @ {item.unit_price}")
            items.append(item)
        return items

    def read_item(self, line: str, next_line: str) -> Optional[LineItem]:
        """Read one item from a description line and its price line"""
        if not self.is_candidate(line):
            return None

        line_total = pure_amount(next_line)
        if line_total is None:
            return None

        quantity, description = parse_quantity(line)
        if not description or not LETTER_RE.search(description):
            return None

        unit_price = to_cents(line_total / quantity)
        return LineItem.create(description, unit_price, quantity)

    def is_candidate(self, line: str) -> bool:
        """Check whether a line may describe an item"""
        if self._exclusion_re.search(line):
            return False
        if BARCODE_RE.match(line):
            return False
        if ITEM_COUNT_RE.search(line):
            return False
        # A line that ends in its own amount is a price or summary line
        if trailing_amount(line) is not None:
            return False
        return bool(LETTER_RE.search(line))


def parse_quantity(line: str) -> Tuple[int, str]:
    """
    Split a quantity marker from an item line.

    Returns:
        (quantity, description); quantity is 1 when no marker is present
    """
    for pattern in QUANTITY_PATTERNS:
        match = pattern.search(line)
        if match:
            quantity = int(match.group(1))
            if quantity < 1:
                continue
            description = pattern.sub(' ', line, count=1)
            return quantity, ' '.join(description.split())
    return 1, line.strip()


def aggregate_items(items: Sequence[LineItem]) -> List[LineItem]:
    """
    Merge items sharing a description and unit price.

    Quantities are summed and the line total recomputed; first-seen order and
    the first known barcode are kept.
    """
    groups: Dict[Tuple[str, Decimal], LineItem] = OrderedDict()
    for item in items:
        key = (item.description, item.unit_price)
        existing = groups.get(key)
        if existing is None:
            groups[key] = item
            continue
        groups[key] = LineItem.create(
            existing.description,
            existing.unit_price,
            existing.quantity + item.quantity,
            barcode=existing.barcode or item.barcode
        )
    return list(groups.values())


def check_item_count(items: Sequence[LineItem], expected: Optional[int]) -> Optional[str]:
    """Warning text when the printed item count disagrees with the items found"""
    if not expected:
        return None
    found = sum(item.quantity for item in items)
    if found != expected:
        return f"Detected item count ({found}) differs from the printed count ({expected})"
    return None


def extract_line_items(text: str, config: Optional[ReceiptConfig] = None) -> List[LineItem]:
    """
    Standalone function to extract and merge line items from receipt text.

    Args:
        text: Raw receipt text
        config: Optional receipt configuration

    Returns:
        Aggregated list of line items
    """
    extractor = LineItemExtractor(config)
    return aggregate_items(extractor.extract_line_items(normalize_lines(text)))
