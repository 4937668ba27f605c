"""Structured token extraction from bank transaction titles.

Payers type invoice numbers and tax IDs into the transfer title in whatever
shape they like. The extractors below pull the recognisable ones out; text
that contains nothing recognisable simply yields no tokens.
"""

import re

from .text import normalize_payment_title

_SEP = r"[/\\_.\-]"
# Sequence (bank spaces allowed), month, year: "6 9/11/2025", "123 / 12 / 2025"
_SEQ_MONTH_YEAR = rf"[\d\s]{{1,6}}\s*{_SEP}\s*\d{{1,2}}\s*{_SEP}\s*\d{{2,4}}\b"

INVOICE_NUMBER_PATTERNS: tuple[re.Pattern[str], ...] = (
    # INV, optionally followed by PS: INV/27/12/2025, INV/PS 6 9/11/2025
    re.compile(rf"\bINV[\s/\\_.\-]*(?:PS\s*)?{_SEQ_MONTH_YEAR}", re.IGNORECASE),
    # Prefix + sequence/month/year: PS 123/12/2025, PS123_12_2025, FV 6 9/11/2025
    re.compile(rf"\b(?:PS|FV|FAK|FA|F|FAKT|FAKTURA)\s*{_SEQ_MONTH_YEAR}", re.IGNORECASE),
    # Prefix + year + sequence: FV/2024/001, FAK-2024-12
    re.compile(rf"\b(?:FV|FAK|FA|F|FAKT|FAKTURA){_SEP}?\d{{2,4}}{_SEP}\d{{1,5}}\b", re.IGNORECASE),
    # Bare sequence/month/year: 27/12/2025, 212 / 12 / 2025
    re.compile(rf"(?<!\d)\d{{1,5}}\s*{_SEP}\s*\d{{1,2}}\s*{_SEP}\s*\d{{2,4}}(?!\d)"),
    # Bare sequence/year, not part of a longer number: 001/2024, 15-24
    re.compile(rf"(?<!\d{_SEP})\b\d{{1,5}}{_SEP}\d{{2,4}}\b(?!{_SEP}\d)"),
    # Prefix glued to digits: FV2024001
    re.compile(r"\b(?:FV|FAK|FA|F)\d{6,10}\b", re.IGNORECASE),
    # Prefix, optional space, digits: FV 1234
    re.compile(r"\b(?:FV|FAK|FA)\s*\d{1,10}\b", re.IGNORECASE),
)

# Tokens with fewer digits are too ambiguous to stand for an invoice
MIN_TOKEN_DIGITS = 3

_WHITESPACE_RE = re.compile(r"\s+")
_NIP_LABEL_RE = re.compile(r"NIP[:\s]*", re.IGNORECASE)
# 123-456-78-90, 123-45-67-890 or ten bare digits
_NIP_RE = re.compile(
    r"\b(\d{3}[\s-]?\d{3}[\s-]?\d{2}[\s-]?\d{2}|\d{3}[\s-]?\d{2}[\s-]?\d{2}[\s-]?\d{3}|\d{10})\b"
)
_NIP_SEPARATORS_RE = re.compile(r"[\s-]")
# Split-payment identifier: "ID IPH: XX005832141328"
_ID_IPH_RE = re.compile(r"ID\s*IPH:\s*([A-Z0-9]+)", re.IGNORECASE)
_NON_DIGIT_RE = re.compile(r"\D")

NIP_LENGTH = 10


def extract_invoice_numbers(text: str | None) -> list[str]:
    """Find invoice-number-like tokens in free text.

    Patterns are applied in order to the raw text and then to the text with
    bank-inserted spaces removed (see ``normalize_payment_title``). Matches
    are upper-cased and stripped of whitespace. Tokens with fewer than three
    digits are dropped, and tokens sharing their digits with an earlier one
    ("PS 6 9/11/2025" and "69/11/2025") are kept only once.

    >>> extract_invoice_numbers("Zaplata za fv/2024/001 oraz FV 170")
    ['FV/2024/001', 'FV170']
    """
    if not text:
        return []

    variants = [text]
    repaired = normalize_payment_title(text)
    if repaired != text:
        variants.append(repaired)

    seen: set[str] = set()
    tokens: list[str] = []
    for variant in variants:
        for pattern in INVOICE_NUMBER_PATTERNS:
            for match in pattern.finditer(variant):
                token = _WHITESPACE_RE.sub("", match.group(0)).upper()
                digits = digits_only(token)
                if len(digits) >= MIN_TOKEN_DIGITS and digits not in seen:
                    seen.add(digits)
                    tokens.append(token)
    return tokens


def normalize_nip(value: str | None) -> str | None:
    """Return the ten NIP digits, or None if the value is not a NIP."""
    if not value:
        return None
    digits = _NIP_SEPARATORS_RE.sub("", value)
    if len(digits) == NIP_LENGTH and digits.isdigit():
        return digits
    return None


def extract_nip(text: str | None) -> str | None:
    """Extract the first Polish tax ID (NIP) from free text.

    Accepts an optional "NIP" label and the common 3-3-2-2 / 3-2-2-3
    groupings with spaces or dashes.

    >>> extract_nip("Faktura 12/2024 NIP: 123-456-78-90")
    '1234567890'
    """
    if not text:
        return None

    cleaned = _NIP_LABEL_RE.sub("", text)
    for candidate in _NIP_RE.findall(cleaned):
        digits = _NIP_SEPARATORS_RE.sub("", candidate)
        if len(digits) == NIP_LENGTH:
            return digits
    return None


def extract_nip_from_id_iph(text: str | None) -> str | None:
    """Extract the NIP embedded in a split-payment "ID IPH" identifier.

    The identifier is a two-letter country code, two zeros and the ten NIP
    digits.

    >>> extract_nip_from_id_iph("/VAT/23,00/IDC/ID IPH: XX005832141328")
    '5832141328'
    """
    if not text:
        return None

    match = _ID_IPH_RE.search(text)
    if not match:
        return None

    digits = _NON_DIGIT_RE.sub("", match.group(1))
    if len(digits) >= NIP_LENGTH:
        return digits[-NIP_LENGTH:]
    return None


def digits_only(text: str | None) -> str:
    """Keep only the digits of ``text``."""
    if not text:
        return ""
    return _NON_DIGIT_RE.sub("", text)
