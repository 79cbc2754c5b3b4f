"""
Receipt Parser

Reconstructs a draft Invoice from raw OCR text:
normalize -> vendor -> document fields + line items -> backfill -> Invoice

The vendor, document and item passes read the same normalized lines
independently. Parsing never fails on text input: anything it cannot read
is left at its default and reported in metadata.warnings.
"""

import logging
from typing import Optional

from recex.config.receipt_config import ReceiptConfig
from recex.models.invoice import Invoice, InvoiceMetadata
from recex.processors.receipt.backfill import backfill_totals
from recex.processors.receipt.extractor import DocumentFieldExtractor
from recex.processors.receipt.items import LineItemExtractor, aggregate_items, check_item_count
from recex.processors.receipt.normalizer import normalize_lines
from recex.processors.receipt.vendor import identify_vendor

logger = logging.getLogger(__name__)


class ReceiptParser:
    """
    Parses receipt text into draft invoices.

    Usage:
        parser = ReceiptParser()
        invoice = parser.parse(text)
    """

    def __init__(self, config: Optional[ReceiptConfig] = None):
        self.config = config or ReceiptConfig.load_default()
        self.document_extractor = DocumentFieldExtractor(self.config)
        self.item_extractor = LineItemExtractor(self.config)

    def parse(self, text: str) -> Invoice:
        """
        Parse raw receipt text.

        Args:
            text: Raw receipt text, one receipt line per text line

        Returns:
            Draft Invoice

        Raises:
            TypeError: If text is not a string
        """
        if not isinstance(text, str):
            raise TypeError(f"Receipt text must be a string, got {type(text).__name__}")

        try:
            return self._parse(text)
        except Exception as e:
            logger.exception(f"Receipt parsing failed: {e}")
            return Invoice(
                metadata=InvoiceMetadata(raw_text=text, warnings=[f"Receipt could not be fully parsed: {e}"])
            )

    def _parse(self, text: str) -> Invoice:
        lines = normalize_lines(text)

        vendor = identify_vendor(lines, self.config)
        fields = self.document_extractor.extract(lines)
        items = aggregate_items(self.item_extractor.extract_line_items(lines))

        totals = backfill_totals(fields, items, vendor, self.config)
        warnings = list(totals.warnings)

        count_warning = check_item_count(items, fields.item_count)
        if count_warning:
            warnings.append(count_warning)

        invoice = Invoice(
            vendor=vendor,
            items=items,
            subtotal=totals.subtotal,
            taxes=totals.taxes,
            grand_total=totals.grand_total,
            payment=fields.payment,
            invoice_number=fields.invoice_number,
            issue_date=fields.issue_date,
            metadata=InvoiceMetadata(
                raw_text=text,
                warnings=warnings,
                item_count=fields.item_count
            )
        )

        logger.debug(
            f"Parsed receipt: vendor={vendor.name}, items={len(items)}, "
            f"total={invoice.grand_total}, warnings={len(warnings)}"
        )
        return invoice


def parse(text: str, config: Optional[ReceiptConfig] = None) -> Invoice:
    """
    Standalone function to parse receipt text.

    Args:
        text: Raw receipt text
        config: Optional receipt configuration

    Returns:
        Draft Invoice
    """
    return ReceiptParser(config).parse(text)
