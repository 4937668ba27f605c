"""Value objects produced by the reconciliation engine.

Value Objects in DDD:
- Immutable (frozen dataclasses)
- No identity (equality based on attributes)
- Built fresh on every run, never persisted by the engine
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .enums import MatchKind, MatchQuality
from .models import Invoice, Payment


@dataclass(frozen=True)
class FieldScores:
    """Per-field similarity breakdown of one invoice/payment pair.

    Every score lies in [0, 1].
    """

    amount: float
    invoice_number: float
    name: float
    nip: float
    date: float
    subaccount: float = 0.0

    def __post_init__(self) -> None:
        for name, value in self.as_dict().items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Score '{name}' must be between 0.0 and 1.0, got {value}")

    def as_dict(self) -> dict[str, float]:
        return {
            "amount": self.amount,
            "invoice_number": self.invoice_number,
            "name": self.name,
            "nip": self.nip,
            "date": self.date,
            "subaccount": self.subaccount,
        }


@dataclass(frozen=True)
class MatchResult:
    """Scored invoice/payment pair."""

    invoice_id: str
    payment_id: str
    confidence: float
    scores: FieldScores
    reasons: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")

    @property
    def key(self) -> tuple[str, str]:
        """Idempotency key a persistence layer upserts on."""
        return (self.invoice_id, self.payment_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "invoice_id": self.invoice_id,
            "payment_id": self.payment_id,
            "confidence": self.confidence,
            "scores": self.scores.as_dict(),
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class GroupPeriod:
    """Calendar months spanned by the due dates of a group (``YYYY-MM``)."""

    start: str
    end: str


@dataclass(frozen=True)
class GroupMatchSuggestion:
    """One payment proposed to settle several invoices of one counterparty.

    Attributes:
        invoices: Members in input order
        payment: The settling payment
        confidence: Gross-amount weighted mean of member confidences
        total_amount: Sum of member gross amounts
        counterparty_name: Name taken from the first member invoice
        counterparty_nip: Tax ID shared by the members, if any
        member_results: Per-invoice scoring, aligned with ``invoices``
        reasons: Human-readable explanation
        period: Months spanned when members fall due in different months
    """

    invoices: tuple[Invoice, ...]
    payment: Payment
    confidence: float
    total_amount: Decimal
    counterparty_name: str
    counterparty_nip: str | None = None
    member_results: tuple[MatchResult, ...] = ()
    reasons: tuple[str, ...] = ()
    period: GroupPeriod | None = None

    @property
    def invoice_ids(self) -> tuple[str, ...]:
        return tuple(invoice.id for invoice in self.invoices)

    def to_dict(self) -> dict[str, Any]:
        return {
            "invoice_ids": list(self.invoice_ids),
            "payment_id": self.payment.id,
            "confidence": self.confidence,
            "total_amount": str(self.total_amount),
            "counterparty_name": self.counterparty_name,
            "counterparty_nip": self.counterparty_nip,
            "reasons": list(self.reasons),
            "period": (
                {"start": self.period.start, "end": self.period.end} if self.period else None
            ),
        }


@dataclass(frozen=True)
class MatchCandidate:
    """Anything surfaced for human confirmation.

    A single tagged type for one-to-one suggestions and group suggestions,
    discriminated by ``kind``. The records travel with the candidate so a
    consumer never has to look invoices or payments up by ID.
    """

    kind: MatchKind
    invoices: tuple[Invoice, ...]
    payment: Payment
    confidence: float
    quality: MatchQuality
    reasons: tuple[str, ...] = ()
    result: MatchResult | None = None
    group: GroupMatchSuggestion | None = None

    def __post_init__(self) -> None:
        if self.kind is MatchKind.SINGLE and (self.result is None or len(self.invoices) != 1):
            raise ValueError("Single candidates need exactly one invoice and a match result")
        if self.kind is MatchKind.GROUP and self.group is None:
            raise ValueError("Group candidates need a group suggestion")

    @property
    def invoice_ids(self) -> tuple[str, ...]:
        return tuple(invoice.id for invoice in self.invoices)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "kind": self.kind.value,
            "invoice_ids": list(self.invoice_ids),
            "payment_id": self.payment.id,
            "confidence": self.confidence,
            "quality": self.quality.value,
            "reasons": list(self.reasons),
        }
        if self.result is not None:
            payload["scores"] = self.result.scores.as_dict()
        return payload


@dataclass(frozen=True)
class MatchOptions:
    """Per-run switches passed by the caller."""

    enable_group_matching: bool = True
    max_months_to_group: int = 2

    def __post_init__(self) -> None:
        if self.max_months_to_group < 0:
            raise ValueError(
                f"max_months_to_group must not be negative, got {self.max_months_to_group}"
            )


@dataclass(frozen=True)
class SinglePairOutcome:
    """Result of the one-to-one assignment pass."""

    auto_matches: tuple[MatchResult, ...]
    suggestions: tuple[MatchResult, ...]
    unmatched_invoice_ids: tuple[str, ...]
    unmatched_payment_ids: tuple[str, ...]


@dataclass(frozen=True)
class ReconciliationResult:
    """Everything one reconciliation run hands back to the caller."""

    auto_matches: tuple[MatchResult, ...] = ()
    suggestions: tuple[MatchCandidate, ...] = ()
    group_suggestions: tuple[GroupMatchSuggestion, ...] = ()
    unmatched_invoice_ids: tuple[str, ...] = ()
    unmatched_payment_ids: tuple[str, ...] = ()
    # Single and group candidates together, highest confidence first
    review_queue: tuple[MatchCandidate, ...] = ()
    stats: dict[str, int] = field(default_factory=dict, compare=False)

    def summary(self) -> str:
        """One-line message for the user."""
        parts = [
            _plural(len(self.auto_matches), "auto-match", "auto-matches"),
            _plural(len(self.suggestions), "suggestion", "suggestions"),
            _plural(len(self.group_suggestions), "group suggestion", "group suggestions"),
        ]
        return (
            f"{', '.join(parts)}; "
            f"{len(self.unmatched_invoice_ids)} invoices and "
            f"{len(self.unmatched_payment_ids)} payments left unmatched"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "auto_matches": [match.to_dict() for match in self.auto_matches],
            "suggestions": [candidate.to_dict() for candidate in self.suggestions],
            "group_suggestions": [group.to_dict() for group in self.group_suggestions],
            "unmatched_invoice_ids": list(self.unmatched_invoice_ids),
            "unmatched_payment_ids": list(self.unmatched_payment_ids),
            "review_queue": [candidate.to_dict() for candidate in self.review_queue],
        }


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"
