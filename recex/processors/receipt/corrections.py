"""
Correction Applier

Applies the corrections suggested by the validator to a copy of an invoice.
The input invoice is never modified and validation is not re-run.
"""

import logging

from recex.models.invoice import CorrectionField, Invoice, ValidationResult

logger = logging.getLogger(__name__)


def apply_corrections(invoice: Invoice, result: ValidationResult) -> Invoice:
    """
    Return a new invoice with every suggested correction applied.

    Args:
        invoice: Invoice the result was computed for
        result: Validation result carrying corrections

    Returns:
        Corrected copy of the invoice (the invoice itself when there is nothing to apply)

    Raises:
        ValueError: If a correction targets an unsupported field
    """
    if not result.corrections:
        return invoice

    subtotal = invoice.subtotal
    taxes = dict(invoice.taxes)
    grand_total = invoice.grand_total

    for correction in result.corrections:
        target = correction.target
        if target.kind == CorrectionField.SUBTOTAL:
            subtotal = correction.corrected
        elif target.kind == CorrectionField.TAX:
            taxes[target.tax_name.upper()] = correction.corrected
        elif target.kind == CorrectionField.GRAND_TOTAL:
            grand_total = correction.corrected
        else:
            raise ValueError(f"Unsupported correction target: {target.kind}")
        logger.debug(f"Corrected {correction.field}: {correction.original} -> {correction.corrected}")

    return invoice.model_copy(
        update={'subtotal': subtotal, 'taxes': taxes, 'grand_total': grand_total},
        deep=True
    )
