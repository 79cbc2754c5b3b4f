"""
Tests for document-level field extraction (subtotal, taxes, total, payment).
"""

from decimal import Decimal

import pytest

from recex.processors.receipt.extractor import (
    DocumentFieldExtractor,
    DocumentFields,
    extract_document_fields,
    normalize_payment_mode,
)
from recex.processors.receipt.normalizer import normalize_lines


class TestFixtureReceipt:
    """Test the labels-on-their-own-line layout of the store receipt"""

    @pytest.fixture(autouse=True)
    def extract(self, imaginaire_receipt, config):
        self.fields = extract_document_fields(normalize_lines(imaginaire_receipt), config)

    def test_amounts(self):
        assert self.fields.subtotal == Decimal('28.96')
        assert self.fields.taxes == {'TPS': Decimal('0.00'), 'TVQ': Decimal('2.89')}
        assert self.fields.grand_total == Decimal('31.85')

    def test_payment(self):
        assert self.fields.payment.mode == 'INTERAC'
        assert self.fields.payment.amount == Decimal('31.85')

    def test_identifiers(self):
        assert self.fields.invoice_number == '380009488'
        assert self.fields.issue_date == '2025-01-20'
        assert self.fields.item_count == 4

    def test_sale_type_line_is_not_a_payment(self):
        """'Client : VENTE COMPTANT' names the sale type, not the payment"""
        fields = extract_document_fields(['Client : VENTE COMPTANT'])
        assert fields.payment is None


class TestLayouts:
    """Test the label/amount layouts accepted for every category"""

    @pytest.mark.parametrize('lines', [
        ['TPS 1.45$'],
        ['TPS: 1,45 $'],
        ['1.45$ TPS'],
        ['TPS', '1.45$'],
        ['TPS 5% 1.45'],
        ['TPS 5%', '1.45$'],
        ['GST 1.45'],
    ])
    def test_tax_layouts(self, lines, config):
        fields = extract_document_fields(lines, config)
        assert fields.taxes == {'TPS': Decimal('1.45')}

    @pytest.mark.parametrize('lines', [
        ['TOTAL 31.85$'],
        ['31.85$ TOTAL'],
        ['TOTAL', '31.85$'],
        ['MONTANT: 31,85'],
    ])
    def test_total_layouts(self, lines, config):
        assert extract_document_fields(lines, config).grand_total == Decimal('31.85')

    @pytest.mark.parametrize('lines', [
        ['SOUS-TOTAL 28.96$'],
        ['Sous total', '28.96'],
        ['SUBTOTAL: 28.96'],
    ])
    def test_subtotal_layouts(self, lines, config):
        fields = extract_document_fields(lines, config)

        assert fields.subtotal == Decimal('28.96')
        assert fields.grand_total is None

    def test_label_without_amount_leaves_value_unset(self, config):
        fields = extract_document_fields(['TPS', 'MERCI DE VOTRE VISITE'], config)
        assert not fields.detected('TPS')

    def test_tax_registration_number_is_not_an_amount(self, config):
        fields = extract_document_fields(['TPS # 123456789 RT0001', '12.00$'], config)
        assert not fields.detected('TPS')

    def test_zero_total_is_ignored(self, config):
        assert extract_document_fields(['TOTAL 0.00$'], config).grand_total is None


class TestLastMatchWins:
    """Later monetary markers overwrite earlier ones"""

    def test_reprinted_total(self, config):
        fields = extract_document_fields(['TOTAL 10.00$', 'VISA 10.00$', 'TOTAL 12.00$'], config)
        assert fields.grand_total == Decimal('12.00')

    @pytest.mark.parametrize('later_line', [
        'TOTAL DES ECONOMIES 4.00$',
        'MONTANT REMIS 8.50$',
        'MONTANT REMIS',
    ])
    def test_other_figures_do_not_replace_total(self, later_line, config):
        lines = ['TOTAL 11.50$', 'COMPTANT 20.00$', later_line, '8.50$']
        assert extract_document_fields(lines, config).grand_total == Decimal('11.50')

    def test_repeated_tax(self, config):
        fields = extract_document_fields(['TVQ 1.00$', 'TVQ 1.20$'], config)
        assert fields.taxes['TVQ'] == Decimal('1.20')

    def test_identifiers(self, config):
        lines = ['Facture # : 100', '2025-01-20', 'Reçu: 200', '2025-01-21']
        fields = extract_document_fields(lines, config)

        assert fields.invoice_number == '200'
        assert fields.issue_date == '2025-01-21'

    def test_each_step_returns_new_state(self, config):
        extractor = DocumentFieldExtractor(config)
        initial = DocumentFields()

        state = extractor.step(initial, ('TOTAL 10.00$', ''))

        assert initial.grand_total is None
        assert state.grand_total == Decimal('10.00')


class TestPayment:
    """Test payment mode and amount detection"""

    def test_inline_amount(self, config):
        payment = extract_document_fields(['VISA ****1234 11.50$'], config).payment
        assert (payment.mode, payment.amount) == ('VISA', Decimal('11.50'))

    def test_amount_on_next_line(self, config):
        payment = extract_document_fields(['DÉBIT', '20.00$'], config).payment
        assert (payment.mode, payment.amount) == ('DEBIT', Decimal('20.00'))

    def test_carries_forward_last_amount(self, config):
        payment = extract_document_fields(['TOTAL 11.50$', 'VISA'], config).payment
        assert payment.amount == Decimal('11.50')

    def test_defaults_to_zero_without_any_amount(self, config):
        payment = extract_document_fields(['MASTERCARD'], config).payment
        assert payment.amount == Decimal('0.00')

    @pytest.mark.parametrize('raw,expected', [
        ('débit', 'DEBIT'),
        ('Crédit', 'CREDIT'),
        (' interac ', 'INTERAC'),
    ])
    def test_normalize_payment_mode(self, raw, expected):
        assert normalize_payment_mode(raw) == expected
