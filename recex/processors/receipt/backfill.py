"""
Tax Inference and Backfill

Fills the document figures a receipt did not print, from the figures it did:
- subtotal from the line items
- missing TPS/TVQ from the known merchant's tax profile
- grand total from subtotal and taxes

Every computed value is reported as a warning in the draft invoice metadata.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from recex.config.receipt_config import ReceiptConfig
from recex.models.invoice import LineItem, Vendor
from recex.processors.receipt.amounts import ZERO, money_sum, to_cents
from recex.processors.receipt.extractor import DocumentFields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Totals:
    """Document totals after backfill"""
    subtotal: Optional[Decimal] = None
    taxes: Dict[str, Decimal] = field(default_factory=dict)
    grand_total: Optional[Decimal] = None
    warnings: List[str] = field(default_factory=list)


def format_rate(rate: Decimal) -> str:
    """Render a tax rate as a percentage: 0.09975 -> '9.975'"""
    return format((rate * 100).normalize(), 'f')


def backfill_totals(
    fields: DocumentFields,
    items: Sequence[LineItem],
    vendor: Vendor,
    config: Optional[ReceiptConfig] = None
) -> Totals:
    """
    Complete subtotal, taxes and grand total.

    Args:
        fields: Document-level values read from the receipt
        items: Aggregated line items
        vendor: Identified vendor
        config: Receipt configuration

    Returns:
        Totals with every configured tax present (0.00 when unknown)
    """
    config = config or ReceiptConfig.load_default()
    warnings = []

    subtotal = fields.subtotal
    if subtotal is None and items:
        subtotal = money_sum(item.line_total for item in items)
        warnings.append("Subtotal computed from items")
        logger.debug(f"Subtotal backfilled from items: {subtotal}")

    taxes = {name: ZERO for name in config.tax_names}
    taxes.update(fields.taxes)

    merchant = config.find_merchant(vendor.name)
    if merchant and merchant.tax_rates and subtotal is not None:
        for name, rate in merchant.tax_rates.items():
            if fields.detected(name):
                continue
            taxes[name] = to_cents(subtotal * rate)
            warnings.append(f"{name} computed at the standard rate ({format_rate(rate)}%)")
            logger.debug(f"{name} inferred for {merchant.name}: {taxes[name]}")

    grand_total = fields.grand_total
    if grand_total is None and subtotal is not None:
        grand_total = money_sum([subtotal] + list(taxes.values()))
        warnings.append("Grand total computed from subtotal and taxes")
        logger.debug(f"Grand total backfilled: {grand_total}")

    return Totals(subtotal=subtotal, taxes=taxes, grand_total=grand_total, warnings=warnings)
