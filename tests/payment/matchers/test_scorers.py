"""Tests for the per-field similarity scorers.

Every scorer maps its inputs to [0, 1] and never raises on missing data.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from openfaktura.payment.matchers.scorers import (
    amount_score,
    date_score,
    invoice_number_score,
    name_score,
    nip_score,
    subaccount_score,
)

pytestmark = pytest.mark.unit


class TestAmountScore:
    """Tests for amount_score()."""

    @pytest.mark.parametrize(
        "payment_amount,expected",
        [
            ("1000.00", 1.0),
            ("999.50", 0.99),  # 0.05%
            ("995.00", 0.9),  # 0.5%
            ("960.00", 0.7),  # 4%
            ("920.00", 0.5),  # 8%
            ("800.00", 0.0),  # 20%
            ("1050.00", 0.7),  # overpayment, 5%
        ],
    )
    def test_bands(self, payment_amount, expected):
        assert amount_score(Decimal("1000.00"), Decimal(payment_amount)) == expected

    def test_sign_of_payment_ignored(self):
        assert amount_score(Decimal("1000.00"), Decimal("-1000.00")) == 1.0

    def test_non_positive_invoice_scores_zero(self):
        assert amount_score(Decimal("0"), Decimal("100.00")) == 0.0

    @given(
        st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000000"), places=2),
        st.decimals(min_value=Decimal("-1000000"), max_value=Decimal("1000000"), places=2),
    )
    def test_always_in_range(self, invoice_amount, payment_amount):
        assert 0.0 <= amount_score(invoice_amount, payment_amount) <= 1.0


class TestInvoiceNumberScore:
    """Tests for invoice_number_score()."""

    def test_literal_substring(self):
        assert invoice_number_score("FV/2024/001", "Zaplata za fv/2024/001") == 1.0

    def test_same_digits_different_separators(self):
        assert invoice_number_score("FV/2024/001", "Zaplata FV-2024-001") == 0.95

    def test_bank_split_number(self):
        assert invoice_number_score("FV/2024/001", "Zaplata FV/2024/ 001") == 0.95

    def test_other_prefix_same_digits(self):
        assert invoice_number_score("PS 27/12/2025", "Zaplata INV/27/12/2025") == 0.95

    def test_last_four_digits(self):
        assert invoice_number_score("FV/2024/12345", "przelew 12345 dzieki") == 0.6

    @pytest.mark.parametrize("title", ["Przelew", "", None])
    def test_no_number(self, title):
        assert invoice_number_score("FV/2024/001", title) == 0.0


class TestNameScore:
    """Tests for name_score()."""

    def test_suffix_variants(self):
        assert name_score("ACME Sp. z o.o.", "ACME SP Z O O") == 1.0

    def test_missing_sender(self):
        assert name_score("ACME Sp. z o.o.", None) == 0.0


class TestNipScore:
    """Tests for nip_score()."""

    def test_extracted_nip(self):
        assert nip_score("123-456-78-90", "Zaplata NIP 1234567890") == 1.0

    def test_split_payment_identifier(self):
        title = "/VAT/23,00/IDC/ID IPH: XX005832141328/INV/FV 12"

        assert nip_score("5832141328", title) == 1.0

    def test_raw_substring(self):
        assert nip_score("1234567890", "ref X1234567890Y") == 0.9

    def test_different_nip(self):
        assert nip_score("1234567890", "NIP 9876543210") == 0.0

    @pytest.mark.parametrize("nip", [None, "", "123"])
    def test_invoice_without_nip(self, nip):
        assert nip_score(nip, "NIP 1234567890") == 0.0


class TestDateScore:
    """Tests for date_score()."""

    @pytest.mark.parametrize(
        "days,expected",
        [
            (0, 1.0),
            (-3, 1.0),
            (5, 0.9),
            (-10, 0.8),
            (20, 0.6),
            (45, 0.4),
            (80, 0.2),
            (120, 0.1),
        ],
    )
    def test_bands(self, days, expected):
        due = date(2024, 3, 15)

        assert date_score(due, due + timedelta(days=days)) == expected


class TestSubaccountScore:
    """Tests for subaccount_score()."""

    def test_equal(self):
        subaccount = "PL61109010140000071219812874"

        assert subaccount_score(subaccount, subaccount) == 1.0

    def test_case_sensitive(self):
        assert subaccount_score("pl6110901014", "PL6110901014") == 0.0

    @pytest.mark.parametrize("first,second", [(None, "PL1"), ("PL1", None), (None, None)])
    def test_missing(self, first, second):
        assert subaccount_score(first, second) == 0.0
