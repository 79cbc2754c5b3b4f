"""
recex - Receipt Extraction Library

Reconstructs structured invoices from the OCR text of Québec receipts
(TPS/TVQ) and checks them for internal arithmetic consistency.

Basic usage:
    from recex import parse, validate, apply_corrections

    invoice = parse(text)
    print(invoice.vendor.name, invoice.grand_total)

    result = validate(invoice)
    if result.corrections:
        invoice = apply_corrections(invoice, result)

    # Known merchants, tax rates and keywords come from a YAML configuration
    config = ReceiptConfig.from_file('merchants.yaml')
    invoice = parse(text, config=config)
"""

from recex.config.receipt_config import ReceiptConfig, KnownMerchant
from recex.exceptions import RecexError, ConfigurationError
from recex.models.invoice import (
    Invoice,
    Vendor,
    LineItem,
    Payment,
    InvoiceMetadata,
    Correction,
    CorrectionTarget,
    CorrectionField,
    ValidationIssue,
    ValidationResult,
    IssueCode,
    Severity,
    ReceiptStatus
)
from recex.processors.receipt import (
    ReceiptParser,
    ReceiptValidator,
    ReceiptPipeline,
    parse,
    validate,
    apply_corrections,
    format_validation_messages,
    process_receipt,
    process_batch
)

__version__ = '0.3.0'

__all__ = [
    'parse',
    'validate',
    'apply_corrections',
    'format_validation_messages',
    'process_receipt',
    'process_batch',
    'ReceiptParser',
    'ReceiptValidator',
    'ReceiptPipeline',
    'ReceiptConfig',
    'KnownMerchant',
    'Invoice',
    'Vendor',
    'LineItem',
    'Payment',
    'InvoiceMetadata',
    'Correction',
    'CorrectionTarget',
    'CorrectionField',
    'ValidationIssue',
    'ValidationResult',
    'IssueCode',
    'Severity',
    'ReceiptStatus',
    'RecexError',
    'ConfigurationError'
]
