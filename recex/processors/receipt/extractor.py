"""
Receipt Document-Level Extractor

Reads the document-wide figures of a receipt: subtotal, tax lines, grand
total, payment, invoice number, issue date and the printed item count.

Extraction is a fold over (line, next line) windows producing a new
immutable DocumentFields state per line. Policies:
- Monetary markers (tax lines, grand total, payment) are last-match-wins:
  each matching line overwrites the previous value of its category, so a
  total reprinted near the payment block is the one kept.
- Lines naming a subtotal never feed the grand total.
- A grand total needs its amount right beside the label, so change and
  savings lines ("MONTANT REMIS", "TOTAL DES ECONOMIES") do not replace it.
- A payment without its own amount takes the most recently observed amount.

Each category accepts three layouts to tolerate OCR word order:
    TPS 1.45$          label then inline amount
    1.45$ TPS          amount first
    TPS                label alone, amount alone on the next line
    1.45$
"""

import logging
import unicodedata
from dataclasses import dataclass, field, replace
from decimal import Decimal
from functools import reduce
from typing import Dict, Optional, Sequence, Tuple

from recex.config.receipt_config import ReceiptConfig
from recex.models.invoice import Payment
from recex.processors.receipt.amounts import (
    ZERO,
    leading_amount,
    parse_amount,
    pure_amount,
    trailing_amount,
)
from recex.processors.receipt.normalizer import normalize_date
from recex.processors.receipt.patterns import (
    DATE_PATTERNS,
    HEAD_AMOUNT_RE,
    INVOICE_NUMBER_RE,
    ITEM_COUNT_RE,
    LABEL_TAIL_AMOUNT_RE,
    PERCENT_RE,
    keyword_pattern,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentFields:
    """Document-level values read so far"""
    subtotal: Optional[Decimal] = None
    # Taxes seen on the receipt; names absent here were not printed
    taxes: Dict[str, Decimal] = field(default_factory=dict)
    grand_total: Optional[Decimal] = None
    payment: Optional[Payment] = None
    last_amount: Optional[Decimal] = None
    invoice_number: Optional[str] = None
    issue_date: Optional[str] = None
    item_count: Optional[int] = None

    def detected(self, tax_name: str) -> bool:
        return tax_name in self.taxes


Window = Tuple[str, str]


class DocumentFieldExtractor:
    """
    Extracts document-level fields from normalized receipt lines.

    Usage:
        extractor = DocumentFieldExtractor(config)
        fields = extractor.extract(lines)
    """

    def __init__(self, config: Optional[ReceiptConfig] = None):
        self.config = config or ReceiptConfig.load_default()

        self._subtotal_re = keyword_pattern(tuple(self.config.subtotal_keywords))
        self._total_re = keyword_pattern(tuple(self.config.total_keywords))
        self._tax_res = [
            (name, keyword_pattern(tuple(aliases)))
            for name, aliases in self.config.tax_aliases.items()
            if aliases
        ]
        self._payment_re = (
            keyword_pattern(tuple(self.config.payment_keywords))
            if self.config.payment_keywords else None
        )
        self._label_res = [self._subtotal_re, self._total_re] + [r for _, r in self._tax_res]
        if self._payment_re:
            self._label_res.append(self._payment_re)

    def extract(self, lines: Sequence[str]) -> DocumentFields:
        """Fold every line of the receipt into a DocumentFields value"""
        windows = zip(lines, list(lines[1:]) + [''])
        return reduce(self.step, windows, DocumentFields())

    def step(self, state: DocumentFields, window: Window) -> DocumentFields:
        """Apply one line (with its successor for lookahead) to the state"""
        line, next_line = window
        state = self._read_identifiers(state, line)

        if self._subtotal_re.search(line):
            amount = self._label_amount(line, next_line)
            if amount is not None:
                logger.debug(f"Subtotal detected: {amount}")
                state = replace(state, subtotal=amount)
            return self._observe(state, line)

        tax_name = self._tax_name(line)
        if tax_name:
            amount = self._label_amount(line, next_line)
            if amount is not None:
                logger.debug(f"{tax_name} detected: {amount}")
                state = replace(state, taxes={**state.taxes, tax_name: amount})
            return self._observe(state, line)

        if self._total_re.search(line):
            amount = self._total_amount(line, next_line)
            if amount is not None and amount > ZERO:
                logger.debug(f"Grand total detected: {amount}")
                state = replace(state, grand_total=amount)
            return self._observe(state, line)

        payment = self._read_payment(state, line, next_line)
        if payment:
            logger.debug(f"Payment detected: {payment.mode} {payment.amount}")
            state = replace(state, payment=payment)

        return self._observe(state, line)

    def _read_identifiers(self, state: DocumentFields, line: str) -> DocumentFields:
        """Invoice number, issue date and item count; last match wins"""
        updates = {}

        match = INVOICE_NUMBER_RE.search(line)
        if match:
            updates['invoice_number'] = match.group(1)

        for pattern in DATE_PATTERNS:
            match = pattern.search(line)
            if match:
                raw = match.group(0)
                updates['issue_date'] = normalize_date(raw) or raw
                break

        match = ITEM_COUNT_RE.search(line)
        if match:
            updates['item_count'] = int(match.group(1))

        return replace(state, **updates) if updates else state

    def _observe(self, state: DocumentFields, line: str) -> DocumentFields:
        """Remember the last monetary value seen, for payment carry-forward"""
        amount = trailing_amount(line)
        if amount is None:
            return state
        return replace(state, last_amount=amount)

    def _tax_name(self, line: str) -> Optional[str]:
        for name, pattern in self._tax_res:
            if pattern.search(line):
                return name
        return None

    def _label_amount(self, line: str, next_line: str) -> Optional[Decimal]:
        """Amount belonging to a labelled line, in any supported layout"""
        amount = trailing_amount(line)
        if amount is not None:
            return amount
        amount = leading_amount(line)
        if amount is not None:
            return amount
        if self._is_bare_label(line):
            return pure_amount(next_line)
        return None

    def _total_amount(self, line: str, next_line: str) -> Optional[Decimal]:
        """
        Grand total only when the amount sits directly beside its label.

        "MONTANT REMIS 8.50$" or "TOTAL DES ECONOMIES 4.00$" name other
        figures and are not totals.
        """
        text = line.strip()
        for match in self._total_re.finditer(text):
            tail = LABEL_TAIL_AMOUNT_RE.match(text[match.end():])
            if tail:
                return parse_amount(tail.group(1))

        head = HEAD_AMOUNT_RE.match(text)
        if head and self._total_re.fullmatch(text[head.end():].strip(' :')):
            return parse_amount(head.group(1))

        if self._total_re.fullmatch(text.strip(' :')):
            return pure_amount(next_line)
        return None

    def _is_bare_label(self, line: str) -> bool:
        """A label line without figures of its own (percent rates allowed)"""
        remainder = PERCENT_RE.sub(' ', line)
        for pattern in self._label_res:
            remainder = pattern.sub(' ', remainder)
        return not any(ch.isdigit() for ch in remainder)

    def _read_payment(self, state: DocumentFields, line: str, next_line: str) -> Optional[Payment]:
        if not self._payment_re:
            return None
        match = self._payment_re.search(line)
        if not match:
            return None

        mode = normalize_payment_mode(match.group(0))
        amount = trailing_amount(line)
        if amount is not None:
            return Payment(mode=mode, amount=amount)

        amount = leading_amount(line)
        if amount is not None:
            return Payment(mode=mode, amount=amount)

        # Mode printed alone: amount on the next line or carried forward
        remainder = self._payment_re.sub(' ', line).strip(' :-')
        if remainder:
            return None
        amount = pure_amount(next_line)
        if amount is None:
            amount = state.last_amount if state.last_amount is not None else ZERO
        return Payment(mode=mode, amount=amount)


def normalize_payment_mode(mode: str) -> str:
    """Upper-case a payment keyword and drop accents (DÉBIT -> DEBIT)"""
    decomposed = unicodedata.normalize('NFKD', mode.strip().upper())
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def extract_document_fields(lines: Sequence[str], config: Optional[ReceiptConfig] = None) -> DocumentFields:
    """Standalone function to extract document-level fields"""
    return DocumentFieldExtractor(config).extract(lines)