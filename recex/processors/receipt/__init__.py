"""
Receipt Processing Module

Turns raw OCR text of a Québec receipt into a structured invoice and checks
it for arithmetic consistency.

Components:
- ReceiptParser: text -> draft Invoice (vendor, items, taxes, totals, payment)
- ReceiptValidator: structural and arithmetic checks, suggested corrections
- apply_corrections: applies suggested corrections to a new invoice
- ReceiptPipeline: parse -> validate -> correct -> route, single and batch
"""

from .parser import ReceiptParser, parse
from .validator import (
    ReceiptValidator,
    validate,
    validate_invoice_json,
    format_validation_messages
)
from .corrections import apply_corrections
from .items import LineItemExtractor, aggregate_items
from .extractor import DocumentFieldExtractor, DocumentFields
from .pipeline import (
    ReceiptPipeline,
    ReceiptProcessingResult,
    PipelineStage,
    PipelineContext,
    process_receipt,
    process_batch
)

__all__ = [
    # Processors
    'ReceiptParser',
    'ReceiptValidator',
    'ReceiptPipeline',
    'DocumentFieldExtractor',
    'LineItemExtractor',

    # Functions
    'parse',
    'validate',
    'apply_corrections',
    'validate_invoice_json',
    'format_validation_messages',
    'aggregate_items',
    'process_receipt',
    'process_batch',

    # Types
    'DocumentFields',
    'ReceiptProcessingResult',
    'PipelineStage',
    'PipelineContext'
]
