"""
Receipt line patterns

Regular expressions shared by the receipt extractors. Keyword patterns are
built from configuration and cached per keyword tuple.
"""

import re
from functools import lru_cache
from typing import Iterable, Pattern, Tuple

# Amounts are written "12.34", "12,34" or "12.34$"
AMOUNT = r'\d+[.,]\d{2}'
TRAILING_AMOUNT_RE = re.compile(r'(' + AMOUNT + r')\s*\$?$')
PURE_AMOUNT_RE = re.compile(r'^\$?\s*(' + AMOUNT + r')\s*\$?$')
LEADING_AMOUNT_RE = re.compile(r'^\$?\s*(' + AMOUNT + r')\s*\$?\s+\S')
# Text right after a label when nothing but the amount follows: ": 31.85$"
LABEL_TAIL_AMOUNT_RE = re.compile(r'^\s*:?\s*\$?\s*(' + AMOUNT + r')\s*\$?$')
HEAD_AMOUNT_RE = re.compile(r'^\$?\s*(' + AMOUNT + r')\s*\$?\s*')

BARCODE_RE = re.compile(r'^[0-9]{8,14}$')
LETTER_RE = re.compile(r'[A-Za-zÀ-ÿ]')
PERCENT_RE = re.compile(r'\d+(?:[.,]\d+)?\s*%')

INVOICE_NUMBER_RE = re.compile(r'(?:facture|re[çc]u|ticket)\s*#?\s*[:.]?\s*(\d+)', re.IGNORECASE)
ITEM_COUNT_RE = re.compile(r'(?<!\d)(\d+)\s*article(?:\(s\)|s)?(?![A-Za-zÀ-ÿ])', re.IGNORECASE)

# Quantity markers, tried in order: "2 x", "2 @", "(2)", "QTE: 2"
QUANTITY_PATTERNS = (
    re.compile(r'^(\d+)\s*[xX](?:\s+|$)'),
    re.compile(r'^(\d+)\s*@\s*'),
    re.compile(r'\s*\((\d+)\)\s*'),
    re.compile(r'\s*QT[EÉ]\s*:\s*(\d+)\s*', re.IGNORECASE),
)

# French month names, with and without accents, plus common abbreviations
FRENCH_MONTHS = {
    'janvier': 1, 'janv': 1,
    'février': 2, 'fevrier': 2, 'févr': 2, 'fevr': 2,
    'mars': 3,
    'avril': 4, 'avr': 4,
    'mai': 5,
    'juin': 6,
    'juillet': 7, 'juil': 7,
    'août': 8, 'aout': 8,
    'septembre': 9, 'sept': 9,
    'octobre': 10, 'oct': 10,
    'novembre': 11, 'nov': 11,
    'décembre': 12, 'decembre': 12, 'déc': 12, 'dec': 12,
}
_MONTH_ALTERNATION = '|'.join(sorted(FRENCH_MONTHS, key=len, reverse=True))

FRENCH_DATE_RE = re.compile(
    r'(?<!\d)(\d{1,2})\s*(?:er\s+)?(' + _MONTH_ALTERNATION + r')\.?\s*(\d{4})(?!\d)',
    re.IGNORECASE
)
DAY_FIRST_DATE_RE = re.compile(r'(?<!\d)(\d{1,2})[-/.]\s*(\d{1,2})[-/.]\s*(\d{4})(?!\d)')
YEAR_FIRST_DATE_RE = re.compile(r'(?<!\d)(\d{4})[-/.]\s*(\d{1,2})[-/.]\s*(\d{1,2})(?!\d)')
DATE_PATTERNS = (FRENCH_DATE_RE, DAY_FIRST_DATE_RE, YEAR_FIRST_DATE_RE)

# Vendor header fragments
PHONE_RE = re.compile(r'(?<!\d)(?:\+?\d{1,2}\s*)?(?:\(\d{3}\)\s*|\d{3}[-.]?\s*)\d{3}[-.]?\s*\d{4}(?!\d)')
POSTAL_CODE_RE = re.compile(r'(?<![A-Za-z0-9])[A-Z]\d[A-Z]\s*\d[A-Z]\d(?![A-Za-z0-9])', re.IGNORECASE)
POSTAL_ONLY_RE = re.compile(
    r'^(?:[A-Z]{2}\s*,?\s*)?[A-Z]\d[A-Z]\s*\d[A-Z]\d(?:\s*,?\s*[A-Z]{2})?$',
    re.IGNORECASE
)
WEBSITE_RE = re.compile(
    r'(?<![\w.@-])(?:www\.[a-z0-9-]+(?:\.[a-z0-9-]+)+'
    r'|[a-z0-9-]+(?:\.[a-z0-9-]+)*\.(?:com|ca|net|org|info|biz|quebec))(?![\w-])',
    re.IGNORECASE
)
STREET_RE = re.compile(
    r'^\d{1,5}[\s,]+.*?(?<![A-Za-zÀ-ÿ])'
    r'(?:rue|avenue|boulevard|blvd|chemin|route|rang|place|mont[ée]e|c[ôo]te|boul\.?|av\.|ch\.)'
    r'(?![A-Za-zÀ-ÿ])',
    re.IGNORECASE
)


@lru_cache(maxsize=64)
def keyword_pattern(words: Tuple[str, ...]) -> Pattern:
    """Compile a case-insensitive pattern matching any of the words as whole words"""
    alternation = '|'.join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(r'(?<![A-Za-zÀ-ÿ])(?:' + alternation + r')(?![A-Za-zÀ-ÿ])', re.IGNORECASE)


def contains_any(line: str, fragments: Iterable[str]) -> bool:
    """Case-insensitive substring check"""
    lowered = line.lower()
    return any(fragment.lower() in lowered for fragment in fragments)
