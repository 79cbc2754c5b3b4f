"""
Receipt Invoice Data Models with Pydantic Validation

Value types produced by the receipt parser and consumed by the validator.
All models are frozen: an Invoice is created fresh per parse call and new
invoices are derived with model_copy() rather than mutated in place.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional
import re

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict


UNKNOWN_VENDOR = "Unknown"
UNKNOWN_PAYMENT_MODE = "Unknown"
DEFAULT_TAX_NAMES = ('TPS', 'TVQ')

CENTS = Decimal('0.01')


def parse_money(v: Any) -> Optional[Decimal]:
    """Parse monetary amounts from various formats, rounded to cents"""
    if v is None:
        return None
    if isinstance(v, Decimal):
        return v.quantize(CENTS, rounding=ROUND_HALF_UP)
    if isinstance(v, (int, float)):
        return Decimal(str(v)).quantize(CENTS, rounding=ROUND_HALF_UP)
    if isinstance(v, str):
        # Remove currency symbols and spaces, accept a decimal comma
        cleaned = re.sub(r'[^\d.,\-]', '', v.strip()).replace(',', '.')
        if cleaned:
            try:
                return Decimal(cleaned).quantize(CENTS, rounding=ROUND_HALF_UP)
            except InvalidOperation:
                return Decimal('0.00')
        return Decimal('0.00')
    return Decimal('0.00')


class Severity(str, Enum):
    """Validation finding severity"""
    ERROR = "error"
    WARNING = "warning"


class IssueCode(str, Enum):
    """Machine-readable validation finding codes"""
    # Structural, blocking
    MISSING_VENDOR = "MISSING_VENDOR"
    MISSING_DATE = "MISSING_DATE"
    INVALID_DATE = "INVALID_DATE"
    FUTURE_DATE = "FUTURE_DATE"
    NO_ITEMS = "NO_ITEMS"
    INVALID_ITEM_DESCRIPTION = "INVALID_ITEM_DESCRIPTION"
    INVALID_ITEM_PRICE = "INVALID_ITEM_PRICE"
    INVALID_ITEM_QUANTITY = "INVALID_ITEM_QUANTITY"
    INVALID_FIELD = "INVALID_FIELD"
    # Arithmetic, advisory
    SUBTOTAL_MISMATCH = "SUBTOTAL_MISMATCH"
    TAX_MISMATCH = "TAX_MISMATCH"
    TOTAL_MISMATCH = "TOTAL_MISMATCH"
    # Payment, advisory
    UNKNOWN_PAYMENT_METHOD = "UNKNOWN_PAYMENT_METHOD"


class ReceiptStatus(str, Enum):
    """Receipt processing status"""
    PARSED = "PARSED"
    VALIDATED = "VALIDATED"
    NEEDS_REVIEW = "NEEDS_REVIEW"
    CORRECTED = "CORRECTED"
    ERROR = "ERROR"


class Vendor(BaseModel):
    """Merchant that issued the receipt"""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = UNKNOWN_VENDOR
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None

    @property
    def is_identified(self) -> bool:
        return bool(self.name) and self.name != UNKNOWN_VENDOR


class LineItem(BaseModel):
    """
    One purchased product entry.

    Invariants (description non-empty, unit price above zero, quantity of at
    least one) are reported by the validator rather than enforced here, so a
    hand-built invoice with bad items can still be validated.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    description: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    barcode: Optional[str] = None

    @field_validator('unit_price', 'line_total', mode='before')
    @classmethod
    def parse_amount(cls, v: Any) -> Optional[Decimal]:
        return parse_money(v)

    @classmethod
    def create(
        cls,
        description: str,
        unit_price: Decimal,
        quantity: int = 1,
        barcode: Optional[str] = None
    ) -> 'LineItem':
        """Build an item whose line total is unit price times quantity"""
        unit_price = parse_money(unit_price)
        return cls(
            description=description,
            unit_price=unit_price,
            quantity=quantity,
            line_total=(unit_price * quantity).quantize(CENTS, rounding=ROUND_HALF_UP),
            barcode=barcode
        )


class Payment(BaseModel):
    """How the receipt was paid"""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    mode: str = UNKNOWN_PAYMENT_MODE
    amount: Decimal = Decimal('0.00')

    @field_validator('amount', mode='before')
    @classmethod
    def parse_amount(cls, v: Any) -> Optional[Decimal]:
        return parse_money(v)


class InvoiceMetadata(BaseModel):
    """Parsing context kept alongside the structured invoice"""
    model_config = ConfigDict(frozen=True)

    raw_text: str = ""
    warnings: List[str] = Field(default_factory=list)
    # Explicit "N Article(s)" count printed on the receipt
    item_count: Optional[int] = None


class Invoice(BaseModel):
    """
    Structured receipt reconstructed from OCR text.

    This is the output of parse() (a draft invoice) and the input of
    validate() and apply_corrections().
    """
    model_config = ConfigDict(frozen=True)

    vendor: Vendor = Field(default_factory=Vendor)
    items: List[LineItem] = Field(default_factory=list)

    # Amounts
    subtotal: Optional[Decimal] = None
    taxes: Dict[str, Decimal] = Field(
        default_factory=lambda: {name: Decimal('0.00') for name in DEFAULT_TAX_NAMES}
    )
    grand_total: Optional[Decimal] = None
    payment: Optional[Payment] = None

    # Identifiers
    invoice_number: Optional[str] = None
    issue_date: Optional[str] = None

    metadata: InvoiceMetadata = Field(default_factory=InvoiceMetadata)

    @field_validator('subtotal', 'grand_total', mode='before')
    @classmethod
    def parse_amount(cls, v: Any) -> Optional[Decimal]:
        return parse_money(v)

    @field_validator('taxes', mode='before')
    @classmethod
    def parse_taxes(cls, v: Any) -> Dict[str, Decimal]:
        """Normalize tax amounts and make sure TPS and TVQ are always present"""
        taxes = {name: Decimal('0.00') for name in DEFAULT_TAX_NAMES}
        if isinstance(v, dict):
            for name, amount in v.items():
                taxes[str(name).upper()] = parse_money(amount) or Decimal('0.00')
        return taxes

    @property
    def items_total(self) -> Decimal:
        """Sum of line totals"""
        return sum((item.line_total for item in self.items), Decimal('0.00'))

    def to_dict(self) -> Dict[str, Any]:
        """Convert invoice to a JSON-ready dictionary"""
        return self.model_dump(mode='json')


class CorrectionField(str, Enum):
    """Invoice fields a correction can target"""
    SUBTOTAL = "subtotal"
    TAX = "tax"
    GRAND_TOTAL = "grand_total"


class CorrectionTarget(BaseModel):
    """Tagged reference to the invoice field a correction overwrites"""
    model_config = ConfigDict(frozen=True)

    kind: CorrectionField
    tax_name: Optional[str] = None

    @model_validator(mode='after')
    def check_tax_name(self) -> 'CorrectionTarget':
        if self.kind == CorrectionField.TAX and not self.tax_name:
            raise ValueError("tax corrections need a tax_name")
        if self.kind != CorrectionField.TAX and self.tax_name:
            raise ValueError(f"{self.kind.value} corrections take no tax_name")
        return self

    @classmethod
    def subtotal(cls) -> 'CorrectionTarget':
        return cls(kind=CorrectionField.SUBTOTAL)

    @classmethod
    def tax(cls, name: str) -> 'CorrectionTarget':
        return cls(kind=CorrectionField.TAX, tax_name=name)

    @classmethod
    def grand_total(cls) -> 'CorrectionTarget':
        return cls(kind=CorrectionField.GRAND_TOTAL)

    @property
    def path(self) -> str:
        """Dotted field path, e.g. 'taxes.TPS'"""
        if self.kind == CorrectionField.TAX:
            return f"taxes.{self.tax_name}"
        return self.kind.value


class Correction(BaseModel):
    """Suggested replacement for an extracted value"""
    model_config = ConfigDict(frozen=True)

    target: CorrectionTarget
    original: Optional[Decimal] = None
    corrected: Decimal
    reason: str

    @property
    def field(self) -> str:
        return self.target.path


class ValidationIssue(BaseModel):
    """Represents a single validation finding"""
    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    severity: Severity
    code: IssueCode


class ValidationResult(BaseModel):
    """Outcome of validating an invoice"""
    model_config = ConfigDict(frozen=True)

    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    corrections: List[Correction] = Field(default_factory=list)
    issues: List[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def from_findings(
        cls,
        issues: List[ValidationIssue],
        corrections: List[Correction]
    ) -> 'ValidationResult':
        """Build a result; any error-severity issue makes the invoice invalid"""
        errors = [i.message for i in issues if i.severity == Severity.ERROR]
        warnings = [i.message for i in issues if i.severity == Severity.WARNING]
        return cls(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            corrections=list(corrections),
            issues=list(issues)
        )

    def codes(self) -> List[IssueCode]:
        return [issue.code for issue in self.issues]

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode='json')
        for correction in data['corrections']:
            correction['field'] = CorrectionTarget(**correction['target']).path
        return data
