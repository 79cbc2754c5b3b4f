"""
recex Processors Module

Contains the receipt processors:
- Receipt parsing (vendor, document fields, line items, backfill)
- Validation and reconciliation
- Correction application and the processing pipeline
"""

from . import receipt

__all__ = ['receipt']
