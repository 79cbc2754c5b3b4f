"""
Tests for receipt validation and reconciliation.
"""

from datetime import date
from decimal import Decimal

import pytest

from recex.config.receipt_config import ReceiptConfig
from recex.models.invoice import (
    CorrectionField,
    Invoice,
    IssueCode,
    LineItem,
    Payment,
    Vendor,
)
from recex.processors.receipt.parser import parse
from recex.processors.receipt.validator import (
    ReceiptValidator,
    format_validation_messages,
    validate,
    validate_invoice_json,
)


def make_invoice(**overrides):
    """Consistent invoice that individual tests break on purpose"""
    data = dict(
        vendor=Vendor(name="L'Imaginaire"),
        items=[LineItem.create('CARTES POKEMON', Decimal('10.00'), 1)],
        subtotal=Decimal('10.00'),
        taxes={'TPS': Decimal('0.50'), 'TVQ': Decimal('1.00')},
        grand_total=Decimal('11.50'),
        payment=Payment(mode='VISA', amount=Decimal('11.50')),
        issue_date='2025-01-20',
    )
    data.update(overrides)
    return Invoice(**data)


class TestFixtureReceipt:
    """Test validation of the parsed store receipt"""

    def test_valid_with_tax_warnings(self, imaginaire_receipt, today):
        result = validate(parse(imaginaire_receipt), today=today)

        assert result.is_valid
        assert result.errors == []
        assert result.codes() == [IssueCode.TAX_MISMATCH, IssueCode.TOTAL_MISMATCH]

    def test_corrections(self, imaginaire_receipt, today):
        result = validate(parse(imaginaire_receipt), today=today)

        assert [(c.field, c.original, c.corrected) for c in result.corrections] == [
            ('taxes.TPS', Decimal('0.00'), Decimal('1.45')),
            ('grand_total', Decimal('31.85'), Decimal('33.30')),
        ]

    def test_round_trip_consistency(self, consistent_receipt, today):
        result = validate(parse(consistent_receipt), today=today)

        assert result.is_valid
        assert result.warnings == []
        assert result.corrections == []

    def test_cash_change_keeps_receipt_consistent(self, consistent_receipt, today):
        text = consistent_receipt.replace('VISA 11.50$', 'COMPTANT 20.00$\nMONTANT REMIS 8.50$')
        invoice = parse(text)
        result = validate(invoice, today=today)

        assert invoice.grand_total == Decimal('11.50')
        assert invoice.payment.amount == Decimal('20.00')
        assert result.warnings == []


class TestStructuralChecks:
    """Blocking checks make the invoice invalid"""

    def test_empty_receipt(self, today):
        result = validate(parse(''), today=today)

        assert not result.is_valid
        assert result.errors == ["Vendor name is missing", "Issue date is missing", "No items found"]
        assert result.warnings == []

    def test_future_date(self):
        result = validate(make_invoice(issue_date='2025-03-01'), today=date(2025, 2, 1))

        assert not result.is_valid
        assert result.codes() == [IssueCode.FUTURE_DATE]

    def test_today_is_not_future(self):
        assert validate(make_invoice(), today=date(2025, 1, 20)).is_valid

    def test_unparseable_date(self, today):
        result = validate(make_invoice(issue_date='hier'), today=today)
        assert IssueCode.INVALID_DATE in result.codes()

    def test_invalid_items(self, today):
        bad = LineItem(description=' ', unit_price=Decimal('0.00'), quantity=0, line_total=Decimal('0.00'))
        result = validate(make_invoice(items=[bad], subtotal=Decimal('0.00')), today=today)

        assert not result.is_valid
        assert [i.field for i in result.issues if i.code in (
            IssueCode.INVALID_ITEM_DESCRIPTION,
            IssueCode.INVALID_ITEM_PRICE,
            IssueCode.INVALID_ITEM_QUANTITY,
        )] == ['items[0].description', 'items[0].unit_price', 'items[0].quantity']

    def test_input_not_modified(self, imaginaire_receipt, today):
        invoice = parse(imaginaire_receipt)
        before = invoice.model_dump()

        validate(invoice, today=today)

        assert invoice.model_dump() == before


class TestArithmeticChecks:
    """Mismatches are warnings paired with corrections"""

    def test_consistent_invoice(self, today):
        result = validate(make_invoice(), today=today)

        assert result.is_valid
        assert result.issues == []

    def test_subtotal_mismatch(self, today):
        result = validate(make_invoice(subtotal=Decimal('12.00'), grand_total=Decimal('13.50')), today=today)

        assert result.is_valid
        assert result.warnings[0] == "Subtotal mismatch: computed=10.00, found=12.00"
        correction = result.corrections[0]
        assert correction.target.kind == CorrectionField.SUBTOTAL
        assert (correction.original, correction.corrected) == (Decimal('12.00'), Decimal('10.00'))

    def test_missing_values_have_no_original(self, today):
        result = validate(make_invoice(subtotal=None, grand_total=None), today=today)

        assert [(c.field, c.original) for c in result.corrections] == [
            ('subtotal', None),
            ('grand_total', None),
        ]
        assert "Grand total mismatch: computed=11.50, found=missing" in result.warnings

    def test_tax_within_tolerance(self, today):
        invoice = make_invoice(taxes={'TPS': Decimal('0.52'), 'TVQ': Decimal('1.00')}, grand_total=Decimal('11.52'))
        assert validate(invoice, today=today).warnings == []

    def test_tax_beyond_tolerance(self, today):
        invoice = make_invoice(taxes={'TPS': Decimal('0.53'), 'TVQ': Decimal('1.00')}, grand_total=Decimal('11.53'))
        result = validate(invoice, today=today)

        assert result.codes() == [IssueCode.TAX_MISMATCH, IssueCode.TOTAL_MISMATCH]
        assert result.corrections[0].reason == "TPS does not match the expected rate (5%)"

    def test_other_taxes_count_toward_total(self, today):
        invoice = make_invoice(
            taxes={'TPS': Decimal('0.50'), 'TVQ': Decimal('1.00'), 'ECO': Decimal('0.25')},
            grand_total=Decimal('11.75')
        )
        assert validate(invoice, today=today).warnings == []

    def test_no_items_and_no_subtotal_skips_arithmetic(self, today):
        result = validate(make_invoice(items=[], subtotal=None, grand_total=None), today=today)
        assert result.codes() == [IssueCode.NO_ITEMS]

    def test_custom_tolerance(self, today):
        config = ReceiptConfig.from_dict({'tolerance': '0.05'})
        invoice = make_invoice(taxes={'TPS': Decimal('0.54'), 'TVQ': Decimal('1.00')}, grand_total=Decimal('11.54'))

        assert ReceiptValidator(config).validate(invoice, today=today).warnings == []


class TestPaymentCheck:
    """Unknown payment methods are warnings only"""

    @pytest.mark.parametrize('mode', ['INTERAC', 'visa', 'DÉBIT', 'COMPTANT', 'CASH'])
    def test_accepted_modes(self, mode, today):
        invoice = make_invoice(payment=Payment(mode=mode, amount=Decimal('11.50')))
        assert validate(invoice, today=today).warnings == []

    def test_unknown_mode(self, today):
        invoice = make_invoice(payment=Payment(mode='BITCOIN', amount=Decimal('11.50')))
        result = validate(invoice, today=today)

        assert result.is_valid
        assert result.warnings == ["Unknown payment method: BITCOIN"]
        assert result.codes() == [IssueCode.UNKNOWN_PAYMENT_METHOD]

    def test_missing_payment_is_not_reported(self, today):
        assert validate(make_invoice(payment=None), today=today).issues == []


class TestValidateInvoiceJson:
    """Test validation of invoice dictionaries"""

    def test_round_trip_through_dict(self, imaginaire_receipt, today):
        invoice = parse(imaginaire_receipt)
        loaded, result = validate_invoice_json(invoice.to_dict(), today=today)

        assert loaded == invoice
        assert result.is_valid

    def test_schema_errors(self):
        loaded, result = validate_invoice_json({'items': [{'description': 'CAFE'}]})

        assert loaded is None
        assert not result.is_valid
        assert set(result.codes()) == {IssueCode.INVALID_FIELD}
        assert 'items.0.quantity' in [issue.field for issue in result.issues]


class TestFormatMessages:
    """Test rendering of validation results"""

    def test_sections(self, imaginaire_receipt, today):
        text = format_validation_messages(validate(parse(imaginaire_receipt), today=today))

        assert 'Errors:' not in text
        assert 'Warnings:' in text
        assert 'Suggested corrections:' in text
        assert 'taxes.TPS: 0.00 -> 1.45' in text

    def test_errors_only(self, today):
        text = format_validation_messages(validate(parse(''), today=today))
        assert text.splitlines()[:2] == ['Errors:', '  - Vendor name is missing']

    def test_empty_result(self, today):
        assert format_validation_messages(validate(make_invoice(), today=today)) == ''
