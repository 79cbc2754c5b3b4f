"""
Receipt Validator

Checks a draft invoice for completeness and internal arithmetic consistency.
Flags issues for human review rather than silently failing:
- Structural problems (missing vendor, date or items, bad items) are errors
  and make the invoice invalid.
- Arithmetic mismatches beyond tolerance are warnings, each paired with a
  suggested correction.
- Unknown payment methods are warnings.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from recex.config.receipt_config import ReceiptConfig
from recex.models.invoice import (
    Correction,
    CorrectionTarget,
    Invoice,
    IssueCode,
    Severity,
    ValidationIssue,
    ValidationResult,
)
from recex.processors.receipt.amounts import ZERO, money_sum, to_cents, within_tolerance
from recex.processors.receipt.backfill import format_rate
from recex.processors.receipt.extractor import normalize_payment_mode
from recex.processors.receipt.normalizer import parse_receipt_date

logger = logging.getLogger(__name__)


def _error(field: str, message: str, code: IssueCode) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity=Severity.ERROR, code=code)


def _warning(field: str, message: str, code: IssueCode) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity=Severity.WARNING, code=code)


def _show(amount: Optional[Decimal]) -> str:
    return 'missing' if amount is None else str(amount)


class ReceiptValidator:
    """
    Validates invoices against structural and arithmetic rules.

    Usage:
        validator = ReceiptValidator(config)
        result = validator.validate(invoice)
        if not result.is_valid:
            print(format_validation_messages(result))
    """

    def __init__(self, config: Optional[ReceiptConfig] = None):
        self.config = config or ReceiptConfig.load_default()

    def validate(self, invoice: Invoice, today: Optional[date] = None) -> ValidationResult:
        """
        Validate an invoice. The invoice is not modified.

        Args:
            invoice: Invoice to check
            today: Reference date for the future-date rule, defaults to today

        Returns:
            ValidationResult
        """
        today = today or date.today()

        issues = self._validate_structure(invoice, today)
        arithmetic_issues, corrections = self._reconcile(invoice)
        issues.extend(arithmetic_issues)
        issues.extend(self._validate_payment(invoice))

        result = ValidationResult.from_findings(issues, corrections)
        logger.debug(
            f"Validated receipt from {invoice.vendor.name}: {len(result.errors)} errors, "
            f"{len(result.warnings)} warnings, {len(result.corrections)} corrections"
        )
        return result

    def _validate_structure(self, invoice: Invoice, today: date) -> List[ValidationIssue]:
        """Blocking checks on vendor, date and items"""
        issues = []

        if not invoice.vendor.is_identified:
            issues.append(_error('vendor.name', "Vendor name is missing", IssueCode.MISSING_VENDOR))

        if not invoice.issue_date:
            issues.append(_error('issue_date', "Issue date is missing", IssueCode.MISSING_DATE))
        else:
            issued = parse_receipt_date(invoice.issue_date)
            if issued is None:
                issues.append(_error(
                    'issue_date',
                    f"Issue date is invalid: {invoice.issue_date}",
                    IssueCode.INVALID_DATE
                ))
            elif issued > today:
                issues.append(_error(
                    'issue_date',
                    f"Issue date ({issued.isoformat()}) is in the future",
                    IssueCode.FUTURE_DATE
                ))

        if not invoice.items:
            issues.append(_error('items', "No items found", IssueCode.NO_ITEMS))

        for i, item in enumerate(invoice.items):
            if not item.description.strip():
                issues.append(_error(
                    f'items[{i}].description',
                    f"Item {i + 1}: invalid description",
                    IssueCode.INVALID_ITEM_DESCRIPTION
                ))
            if item.unit_price <= 0:
                issues.append(_error(
                    f'items[{i}].unit_price',
                    f"Item {i + 1}: invalid price ({item.unit_price})",
                    IssueCode.INVALID_ITEM_PRICE
                ))
            if item.quantity <= 0:
                issues.append(_error(
                    f'items[{i}].quantity',
                    f"Item {i + 1}: invalid quantity ({item.quantity})",
                    IssueCode.INVALID_ITEM_QUANTITY
                ))

        return issues

    def _reconcile(self, invoice: Invoice) -> Tuple[List[ValidationIssue], List[Correction]]:
        """
        Recompute subtotal, taxes and grand total and compare within tolerance.

        The subtotal is recomputed from the items when there are any. Taxes are
        recomputed from that subtotal, and the grand total from the subtotal
        plus the taxes as they stand after correction, so that applying every
        suggested correction yields a consistent invoice.
        """
        issues: List[ValidationIssue] = []
        corrections: List[Correction] = []
        tolerance = self.config.tolerance

        subtotal = invoice.subtotal
        if invoice.items:
            computed = to_cents(invoice.items_total)
            if subtotal is None or not within_tolerance(computed, subtotal, tolerance):
                issues.append(_warning(
                    'subtotal',
                    f"Subtotal mismatch: computed={computed}, found={_show(subtotal)}",
                    IssueCode.SUBTOTAL_MISMATCH
                ))
                corrections.append(Correction(
                    target=CorrectionTarget.subtotal(),
                    original=subtotal,
                    corrected=computed,
                    reason="Subtotal does not match the sum of the items"
                ))
            subtotal = computed

        if subtotal is None:
            return issues, corrections

        taxes: Dict[str, Decimal] = {}
        for name, rate in self.config.default_tax_rates.items():
            expected = to_cents(subtotal * rate)
            found = invoice.taxes.get(name, ZERO)
            if within_tolerance(expected, found, tolerance):
                taxes[name] = found
                continue
            issues.append(_warning(
                f'taxes.{name}',
                f"{name} mismatch: computed={expected}, found={found}",
                IssueCode.TAX_MISMATCH
            ))
            corrections.append(Correction(
                target=CorrectionTarget.tax(name),
                original=found,
                corrected=expected,
                reason=f"{name} does not match the expected rate ({format_rate(rate)}%)"
            ))
            taxes[name] = expected

        # Other regional taxes are taken as printed
        for name, amount in invoice.taxes.items():
            taxes.setdefault(name, amount)

        expected_total = money_sum([subtotal] + list(taxes.values()))
        grand_total = invoice.grand_total
        if grand_total is None or not within_tolerance(expected_total, grand_total, tolerance):
            issues.append(_warning(
                'grand_total',
                f"Grand total mismatch: computed={expected_total}, found={_show(grand_total)}",
                IssueCode.TOTAL_MISMATCH
            ))
            corrections.append(Correction(
                target=CorrectionTarget.grand_total(),
                original=grand_total,
                corrected=expected_total,
                reason="Grand total does not equal subtotal plus taxes"
            ))

        return issues, corrections

    def _validate_payment(self, invoice: Invoice) -> List[ValidationIssue]:
        if invoice.payment is None:
            return []
        mode = normalize_payment_mode(invoice.payment.mode)
        if mode in self.config.accepted_payment_methods:
            return []
        return [_warning(
            'payment.mode',
            f"Unknown payment method: {invoice.payment.mode}",
            IssueCode.UNKNOWN_PAYMENT_METHOD
        )]


def validate(
    invoice: Invoice,
    config: Optional[ReceiptConfig] = None,
    today: Optional[date] = None
) -> ValidationResult:
    """
    Standalone function to validate an invoice.

    Args:
        invoice: Invoice to check
        config: Optional receipt configuration
        today: Reference date for the future-date rule

    Returns:
        ValidationResult
    """
    return ReceiptValidator(config).validate(invoice, today=today)


def validate_invoice_json(
    data: Dict[str, Any],
    config: Optional[ReceiptConfig] = None,
    today: Optional[date] = None
) -> Tuple[Optional[Invoice], ValidationResult]:
    """
    Validate an invoice given as a plain dictionary, e.g. loaded from JSON.

    Schema problems are reported as INVALID_FIELD errors; a dictionary that
    forms a valid Invoice is then validated like any other invoice.

    Returns:
        Tuple of (Invoice or None, ValidationResult)
    """
    try:
        invoice = Invoice(**data)
    except PydanticValidationError as e:
        issues = [
            _error('.'.join(str(loc) for loc in error['loc']), error['msg'], IssueCode.INVALID_FIELD)
            for error in e.errors()
        ]
        return None, ValidationResult.from_findings(issues, [])

    return invoice, validate(invoice, config=config, today=today)


def format_validation_messages(result: ValidationResult) -> str:
    """Render errors, warnings and suggested corrections as a text block"""
    sections = []

    if result.errors:
        sections.append('\n'.join(['Errors:'] + [f"  - {error}" for error in result.errors]))

    if result.warnings:
        sections.append('\n'.join(['Warnings:'] + [f"  - {warning}" for warning in result.warnings]))

    if result.corrections:
        lines = ['Suggested corrections:']
        for correction in result.corrections:
            lines.append(
                f"  - {correction.field}: {_show(correction.original)} -> {correction.corrected} "
                f"({correction.reason})"
            )
        sections.append('\n'.join(lines))

    return '\n\n'.join(sections)
