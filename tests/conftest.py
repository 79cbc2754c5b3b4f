"""
Shared fixtures for the recex test suite.
"""

from datetime import date

import pytest

from recex.config.receipt_config import ReceiptConfig


IMAGINAIRE_RECEIPT = """L'IMAGINAIRE
ST-BRUNO
1 Boulevard des Promenades
Saint-Bruno-de-Montarville, J3V 5J5
450-286-5389
www.imaginaire.com
20 janvier 2025, 14:20:55
Client : VENTE COMPTANT
Facture # : 380009488
Employé/ée: 1733 - Nicholas
Caisse # : 38
DISNEY LORCANA - BOOSTER PACK
7.99$
4050368983466
DISNEY LORCANA - BOOSTER PACK
7.99$
4050368983466
MAGIC THE GATHERING - PAQUET
6.49$
0195166261775
MAGIC THE GATHERING - PAQUET
6.49$
0195166261775
SOUS-TOTAL
28.96$
TPS
0.00$
TVQ
2.89$
4 Article(s)
TOTAL
31.85$
INTERAC
31.85$"""


CONSISTENT_RECEIPT = """L'IMAGINAIRE
1 Boulevard des Promenades
Saint-Bruno-de-Montarville, J3V 5J5
450-286-5389
20 janvier 2025
Facture # : 380009500
CARTES POKEMON
10.00$
SOUS-TOTAL 10.00$
TPS 0.50$
TVQ 1.00$
TOTAL 11.50$
VISA 11.50$"""


@pytest.fixture
def config():
    """Packaged default configuration"""
    return ReceiptConfig.load_default()


@pytest.fixture
def imaginaire_receipt():
    """Store receipt with labels and amounts on separate lines"""
    return IMAGINAIRE_RECEIPT


@pytest.fixture
def consistent_receipt():
    """Receipt whose printed totals agree with its items"""
    return CONSISTENT_RECEIPT


@pytest.fixture
def today():
    """Fixed reference date for date checks"""
    return date(2025, 2, 1)
