"""Input records of the reconciliation engine.

Invoices and payments are produced by importers (accounting exports, bank
statements) and handed to the engine read-only. Both are frozen dataclasses;
the engine never mutates them. Structural validation that would make a run
meaningless (non-positive amounts, missing identifiers) is reported by
``ReconciliationService`` before any scoring starts, so constructing a record
never raises.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .enums import InvoiceStatus


@dataclass(frozen=True)
class Invoice:
    """Unpaid (or partially paid) sales invoice.

    Attributes:
        id: Stable identifier assigned by the importer
        invoice_number: Number printed on the invoice (e.g. "FV/2024/001")
        issue_date: Date of issue
        due_date: Payment deadline
        gross_amount: Amount due including tax, must be positive
        currency: ISO 4217 code
        counterparty_name: Buyer name as printed on the invoice
        counterparty_nip: Buyer tax ID (NIP), optional
        counterparty_subaccount: Virtual account assigned to the buyer, optional
        status: Lifecycle status; only pending/overdue/partial are matched
    """

    id: str
    invoice_number: str
    issue_date: date
    due_date: date
    gross_amount: Decimal
    currency: str
    counterparty_name: str
    counterparty_nip: str | None = None
    counterparty_subaccount: str | None = None
    status: InvoiceStatus = InvoiceStatus.PENDING

    @property
    def is_matchable(self) -> bool:
        return InvoiceStatus(self.status).is_matchable

    def __repr__(self) -> str:
        status = InvoiceStatus(self.status).value
        return (
            f"<Invoice(id={self.id!r}, number={self.invoice_number!r}, "
            f"amount={self.gross_amount} {self.currency}, status={status})>"
        )


@dataclass(frozen=True)
class Payment:
    """Bank transaction imported from a statement.

    ``amount`` keeps the sign reported by the bank; matching always uses the
    absolute value (see ``incoming_amount``).
    """

    id: str
    transaction_date: date
    amount: Decimal
    currency: str
    sender_name: str
    title: str
    sender_account: str | None = None
    sender_subaccount: str | None = None
    extended_title: str | None = None
    reference: str | None = None

    @property
    def incoming_amount(self) -> Decimal:
        return abs(self.amount)

    @property
    def searchable_text(self) -> str:
        """Title, extended title and reference joined for token search."""
        parts = [self.title, self.extended_title or "", self.reference or ""]
        return " ".join(part for part in parts if part)

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id!r}, date={self.transaction_date.isoformat()}, "
            f"amount={self.amount} {self.currency}, sender={self.sender_name!r})>"
        )
