"""
Tests for vendor identification from the receipt header.
"""

from recex.config.receipt_config import ReceiptConfig
from recex.models.invoice import UNKNOWN_VENDOR
from recex.processors.receipt.normalizer import normalize_lines
from recex.processors.receipt.vendor import identify_vendor, match_known_merchant


class TestKnownMerchant:
    """Test known-merchant table lookups"""

    def test_fixture_receipt_vendor(self, imaginaire_receipt, config):
        vendor = identify_vendor(normalize_lines(imaginaire_receipt), config)

        assert vendor.name == "L'Imaginaire"
        assert vendor.website == 'www.imaginaire.com'
        assert vendor.phone == '450-286-5389'
        assert vendor.address == '1 Boulevard des Promenades, Saint-Bruno-de-Montarville, J3V 5J5'
        assert vendor.is_identified

    def test_first_table_entry_wins(self, config):
        """Table order decides, not the order of lines on the receipt"""
        merchant = match_known_merchant(['WALMART SUPERCENTRE', "L'IMAGINAIRE"], config)
        assert merchant.key == 'imaginaire'

    def test_only_header_lines_are_scanned(self, config):
        lines = ['LIGNE'] * config.vendor_scan_lines + ['WALMART']
        assert identify_vendor(lines, config).name == UNKNOWN_VENDOR

    def test_injected_merchant_table(self):
        config = ReceiptConfig.from_dict({
            'known_merchants': [{
                'key': 'renaud',
                'name': 'Renaud-Bray',
                'variations': ['RENAUD-BRAY'],
                'website': 'www.renaud-bray.com'
            }]
        })
        vendor = identify_vendor(['RENAUD-BRAY', 'MERCI'], config)

        assert vendor.name == 'Renaud-Bray'
        assert vendor.website == 'www.renaud-bray.com'


class TestHeuristics:
    """Test phone, website and address detection for unknown vendors"""

    HEADER = [
        'DEPANNEUR CHEZ MARC',
        '123 rue Principale',
        'Granby',
        'J2G 1A1',
        '(450) 555-1234',
        'info@chezmarc.ca',
        'www.chezmarc.ca',
        'Facture # : 1001',
    ]

    def test_unknown_vendor_keeps_default_name(self, config):
        assert identify_vendor(self.HEADER, config).name == UNKNOWN_VENDOR

    def test_phone_and_website(self, config):
        vendor = identify_vendor(self.HEADER, config)

        assert vendor.phone == '(450) 555-1234'
        assert vendor.website == 'www.chezmarc.ca'

    def test_address_includes_city_line(self, config):
        vendor = identify_vendor(self.HEADER, config)
        assert vendor.address == '123 rue Principale, Granby, J2G 1A1'

    def test_administrative_lines_are_not_addresses(self, config):
        header = ['DEPANNEUR CHEZ MARC', '123 rue Principale caisse 4', '456 avenue du Parc', 'J2G 1A1']
        vendor = identify_vendor(header, config)
        assert vendor.address == '456 avenue du Parc, J2G 1A1'

    def test_barcodes_are_not_phone_numbers(self, config):
        vendor = identify_vendor(['MAGASIN', '4050368983466'], config)
        assert vendor.phone is None

    def test_empty_header(self, config):
        vendor = identify_vendor([], config)

        assert vendor.name == UNKNOWN_VENDOR
        assert vendor.address is None
        assert vendor.phone is None
        assert vendor.website is None
