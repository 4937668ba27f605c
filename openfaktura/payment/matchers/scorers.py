"""Per-field similarity scorers.

Each scorer compares one aspect of an invoice with one aspect of a payment
and returns a value in [0, 1]. Scorers never raise: missing optional data
(no tax ID, no sub-account, empty title) scores 0.

Scorers:
- amount_score: payment amount vs. invoice gross amount
- invoice_number_score: invoice number found in the transfer title
- name_score: sender name vs. invoice counterparty
- nip_score: counterparty tax ID found in the title
- date_score: transaction date vs. due date
- subaccount_score: sender virtual sub-account vs. counterparty sub-account
"""

from datetime import date
from decimal import Decimal

from .extractors import (
    digits_only,
    extract_invoice_numbers,
    extract_nip,
    extract_nip_from_id_iph,
    normalize_nip,
)
from .text import compare_company_names, normalize

# (maximum relative difference, score), checked in order
AMOUNT_BANDS: tuple[tuple[Decimal, float], ...] = (
    (Decimal("0.001"), 0.99),  # rounding
    (Decimal("0.01"), 0.9),
    (Decimal("0.05"), 0.7),
    (Decimal("0.10"), 0.5),
)

# (maximum day difference, score), checked in order
DATE_BANDS: tuple[tuple[int, float], ...] = (
    (3, 1.0),
    (7, 0.9),
    (14, 0.8),
    (30, 0.6),
    (60, 0.4),
    (90, 0.2),
)
DISTANT_DATE_SCORE = 0.1

PARTIAL_NUMBER_DIGITS = 4


def amount_score(invoice_amount: Decimal, payment_amount: Decimal) -> float:
    """Score how well a payment amount covers an invoice amount.

    The difference is taken relative to the invoice amount; the sign of the
    payment is ignored.

    Scoring:
    - Exact → 1.0
    - Within 0.1% → 0.99
    - Within 1% → 0.9
    - Within 5% → 0.7
    - Within 10% → 0.5
    - Further apart → 0.0
    """
    if invoice_amount <= 0:
        return 0.0

    payment_amount = abs(payment_amount)
    if payment_amount == invoice_amount:
        return 1.0

    relative_diff = abs(invoice_amount - payment_amount) / invoice_amount
    for max_diff, score in AMOUNT_BANDS:
        if relative_diff <= max_diff:
            return score
    return 0.0


def invoice_number_score(invoice_number: str, title: str | None) -> float:
    """Score the presence of an invoice number in a transfer title.

    Scoring:
    - Normalized number is a substring of the normalized title → 1.0
    - An extracted title token has the same digits → 0.95
    - An extracted title token contains the normalized number → 0.9
    - Last 4 digits of the number appear in the title → 0.6
    - Otherwise → 0.0
    """
    normalized_number = normalize(invoice_number)
    normalized_title = normalize(title)
    if not normalized_number or not normalized_title:
        return 0.0

    if normalized_number in normalized_title:
        return 1.0

    number_digits = digits_only(invoice_number)
    for token in extract_invoice_numbers(title):
        if number_digits and digits_only(token) == number_digits:
            return 0.95
        if normalized_number in normalize(token):
            return 0.9

    if len(number_digits) >= PARTIAL_NUMBER_DIGITS:
        if number_digits[-PARTIAL_NUMBER_DIGITS:] in normalized_title:
            return 0.6

    return 0.0


def name_score(counterparty_name: str | None, sender_name: str | None) -> float:
    """Score sender vs. counterparty name, ignoring legal-form suffixes."""
    return compare_company_names(counterparty_name, sender_name)


def nip_score(counterparty_nip: str | None, title: str | None) -> float:
    """Score the presence of the counterparty tax ID in a transfer title.

    Scoring:
    - Tax ID extracted from the title equals the invoice tax ID → 1.0
    - Tax ID digits appear verbatim in the title → 0.9
    - Otherwise, or no tax ID on the invoice → 0.0
    """
    expected = normalize_nip(counterparty_nip)
    if expected is None or not title:
        return 0.0

    extracted = extract_nip(title) or extract_nip_from_id_iph(title)
    if extracted == expected:
        return 1.0
    if expected in title:
        return 0.9
    return 0.0


def date_score(due_date: date, transaction_date: date) -> float:
    """Score how close a payment landed to the invoice due date.

    Scoring (absolute day difference):
    - ≤3 → 1.0, ≤7 → 0.9, ≤14 → 0.8, ≤30 → 0.6, ≤60 → 0.4, ≤90 → 0.2
    - Further apart → 0.1 (late payments still earn minimal credit)
    """
    days = abs((transaction_date - due_date).days)
    for max_days, score in DATE_BANDS:
        if days <= max_days:
            return score
    return DISTANT_DATE_SCORE


def subaccount_score(counterparty_subaccount: str | None, sender_subaccount: str | None) -> float:
    """1.0 when both sub-accounts are known and identical (case-sensitive)."""
    if counterparty_subaccount and sender_subaccount:
        return 1.0 if counterparty_subaccount == sender_subaccount else 0.0
    return 0.0
