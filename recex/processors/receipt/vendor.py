"""
Vendor Identifier

Identifies the merchant from the header of a receipt. The known-merchant
table is authoritative and first-match: once a merchant is recognised, later
header lines cannot rename it. Phone, website and address fragments are then
read from the same header lines for whatever the table did not provide.
"""

import logging
from typing import List, Optional, Sequence

from recex.config.receipt_config import KnownMerchant, ReceiptConfig
from recex.models.invoice import UNKNOWN_VENDOR, Vendor
from recex.processors.receipt.patterns import (
    PHONE_RE,
    POSTAL_CODE_RE,
    POSTAL_ONLY_RE,
    STREET_RE,
    WEBSITE_RE,
    contains_any,
)

logger = logging.getLogger(__name__)


def match_known_merchant(lines: Sequence[str], config: ReceiptConfig) -> Optional[KnownMerchant]:
    """Return the first table entry named in any of the lines"""
    for merchant in config.known_merchants:
        for line in lines:
            if merchant.matches(line):
                logger.debug(f"Known merchant '{merchant.name}' matched line '{line}'")
                return merchant
    return None


def identify_vendor(lines: Sequence[str], config: Optional[ReceiptConfig] = None) -> Vendor:
    """
    Identify the vendor from the first lines of a normalized receipt.

    Args:
        lines: Normalized receipt lines
        config: Receipt configuration

    Returns:
        Vendor, named "Unknown" when no known merchant matches
    """
    config = config or ReceiptConfig.load_default()
    header = list(lines[:config.vendor_scan_lines])

    merchant = match_known_merchant(header, config)
    name = merchant.name if merchant else UNKNOWN_VENDOR
    website = merchant.website if merchant else None
    phone = None
    address_parts: List[str] = []

    for index, line in enumerate(header):
        if phone is None:
            match = PHONE_RE.search(line)
            if match:
                phone = match.group(0).strip()
                continue

        if website is None and '@' not in line:
            match = WEBSITE_RE.search(line)
            if match:
                website = match.group(0)
                continue

        if address_parts and POSTAL_CODE_RE.search(address_parts[-1]):
            # Address already ends with its postal code
            continue
        if contains_any(line, config.vendor_exclusion_keywords):
            continue
        if merchant and merchant.matches(line):
            continue

        if STREET_RE.search(line):
            address_parts.append(line)
        elif POSTAL_CODE_RE.search(line):
            previous = header[index - 1] if index > 0 else None
            if (
                POSTAL_ONLY_RE.match(line)
                and previous
                and previous not in address_parts
                and address_parts
                and _is_city_line(previous, config)
            ):
                address_parts.append(previous)
            address_parts.append(line)

    vendor = Vendor(
        name=name,
        address=', '.join(address_parts) if address_parts else None,
        phone=phone,
        website=website
    )
    logger.debug(f"Vendor identified: {vendor.name}")
    return vendor


def _is_city_line(line: str, config: ReceiptConfig) -> bool:
    """A bare city line between the street and a postal-code-only line"""
    return (
        not PHONE_RE.search(line)
        and not WEBSITE_RE.search(line)
        and not any(ch.isdigit() for ch in line)
        and not contains_any(line, config.vendor_exclusion_keywords)
    )
