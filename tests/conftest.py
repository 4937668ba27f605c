"""
Pytest configuration and global fixtures.

This module provides shared fixtures used across all tests.
"""

from collections.abc import Callable, Generator
from datetime import date
from decimal import Decimal
from typing import Any

import pytest

import openfaktura.utils.config as config_module
from openfaktura.payment.domain.enums import InvoiceStatus
from openfaktura.payment.domain.models import Invoice, Payment
from openfaktura.utils.config import MatchingSettings
from openfaktura.utils.logging import clear_correlation_id

# Counterparty shared by the default records
ACME_NAME = "ACME Sp. z o.o."
ACME_NIP = "1234567890"


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Drop cached settings and the correlation ID between tests."""
    config_module._settings = None
    clear_correlation_id()
    yield
    config_module._settings = None
    clear_correlation_id()


@pytest.fixture
def matching_settings() -> MatchingSettings:
    """Default engine settings, independent of the environment."""
    return MatchingSettings()


@pytest.fixture
def make_invoice() -> Callable[..., Invoice]:
    """Factory for invoices; defaults describe one unpaid ACME invoice."""

    def _make(**overrides: Any) -> Invoice:
        fields: dict[str, Any] = {
            "id": "inv-1",
            "invoice_number": "FV/2024/001",
            "issue_date": date(2024, 3, 1),
            "due_date": date(2024, 3, 15),
            "gross_amount": Decimal("1230.00"),
            "currency": "PLN",
            "counterparty_name": ACME_NAME,
            "counterparty_nip": ACME_NIP,
            "counterparty_subaccount": None,
            "status": InvoiceStatus.PENDING,
        }
        fields.update(overrides)
        return Invoice(**fields)

    return _make


@pytest.fixture
def make_payment() -> Callable[..., Payment]:
    """Factory for payments; defaults settle the default invoice."""

    def _make(**overrides: Any) -> Payment:
        fields: dict[str, Any] = {
            "id": "pay-1",
            "transaction_date": date(2024, 3, 14),
            "amount": Decimal("1230.00"),
            "currency": "PLN",
            "sender_name": "ACME SP Z O O",
            "title": "Zaplata za FV/2024/001",
            "sender_account": "PL61109010140000071219812874",
            "sender_subaccount": None,
            "extended_title": None,
            "reference": None,
        }
        fields.update(overrides)
        return Payment(**fields)

    return _make


@pytest.fixture
def invoice(make_invoice: Callable[..., Invoice]) -> Invoice:
    return make_invoice()


@pytest.fixture
def payment(make_payment: Callable[..., Payment]) -> Payment:
    return make_payment()


@pytest.fixture
def monthly_invoices(make_invoice: Callable[..., Invoice]) -> list[Invoice]:
    """Two Beta invoices from consecutive months, 1000.00 PLN together."""
    common = {
        "counterparty_name": "Beta Sp. z o.o.",
        "counterparty_nip": "5260250995",
    }
    return [
        make_invoice(
            id="beta-jan",
            invoice_number="FV 101",
            issue_date=date(2024, 1, 10),
            due_date=date(2024, 1, 31),
            gross_amount=Decimal("600.00"),
            **common,
        ),
        make_invoice(
            id="beta-feb",
            invoice_number="FV 102",
            issue_date=date(2024, 2, 10),
            due_date=date(2024, 2, 29),
            gross_amount=Decimal("400.00"),
            **common,
        ),
    ]


@pytest.fixture
def monthly_payment(make_payment: Callable[..., Payment]) -> Payment:
    """One Beta transfer covering both monthly invoices."""
    return make_payment(
        id="beta-pay",
        transaction_date=date(2024, 2, 20),
        amount=Decimal("1000.00"),
        sender_name="BETA SP. Z O.O.",
        title="Zaplata za faktury styczen luty",
    )
