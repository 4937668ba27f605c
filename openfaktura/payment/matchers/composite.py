"""Confidence aggregator combining the per-field scorers.

Implements a weighted scoring model:
- Amount similarity (30% weight)
- Invoice number in title (35% weight)
- Counterparty name (15% weight)
- Tax ID in title (10% weight)
- Date proximity (10% weight)

A matching sub-account is proof of association and forces confidence to 1.0.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ...exceptions import ConfigurationError
from ...utils.config import MatchingSettings
from ..domain.enums import MatchQuality
from ..domain.models import Invoice, Payment
from ..domain.value_objects import FieldScores, MatchResult
from .scorers import (
    amount_score,
    date_score,
    invoice_number_score,
    name_score,
    nip_score,
    subaccount_score,
)

HIGH_THRESHOLD = 0.85
MEDIUM_THRESHOLD = 0.35
GOOD_THRESHOLD = 0.75

WEIGHT_SUM_TOLERANCE = 1e-6
CONFIDENCE_QUANTUM = Decimal("0.01")


@dataclass(frozen=True)
class MatchingWeights:
    """Weights of the five heuristic fields; they must sum to 1.0."""

    amount: float = 0.30
    invoice_number: float = 0.35
    name: float = 0.15
    nip: float = 0.10
    date: float = 0.10

    def __post_init__(self) -> None:
        weights = (self.amount, self.invoice_number, self.name, self.nip, self.date)
        if any(weight < 0 for weight in weights):
            raise ConfigurationError(
                "Matching weights must not be negative",
                setting="weights",
                expected=">= 0",
            )
        total = sum(weights)
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ConfigurationError(
                f"Matching weights must sum to 1.0, got {total}",
                setting="weights",
                expected="sum == 1.0",
            )

    @classmethod
    def from_settings(cls, settings: MatchingSettings) -> "MatchingWeights":
        return cls(
            amount=settings.weight_amount,
            invoice_number=settings.weight_invoice_number,
            name=settings.weight_name,
            nip=settings.weight_nip,
            date=settings.weight_date,
        )


class ConfidenceAggregator:
    """Score invoice/payment pairs into a ``MatchResult``.

    Final confidence = (amount * 0.30) + (invoice_number * 0.35)
                       + (name * 0.15) + (nip * 0.10) + (date * 0.10),
    rounded half up to two decimals, or 1.0 when the sub-accounts match.

    Example:
        >>> aggregator = ConfidenceAggregator()
        >>> result = aggregator.score(invoice, payment)
        >>> print(f"{result.confidence:.2f}: {', '.join(result.reasons)}")
    """

    def __init__(
        self,
        weights: MatchingWeights | None = None,
        high_threshold: float = HIGH_THRESHOLD,
        medium_threshold: float = MEDIUM_THRESHOLD,
    ) -> None:
        if not 0.0 <= medium_threshold < high_threshold <= 1.0:
            raise ConfigurationError(
                f"Thresholds must satisfy 0 <= medium < high <= 1, "
                f"got medium={medium_threshold}, high={high_threshold}",
                setting="thresholds",
            )
        self.weights = weights or MatchingWeights()
        self.high_threshold = high_threshold
        self.medium_threshold = medium_threshold

    @classmethod
    def from_settings(cls, settings: MatchingSettings) -> "ConfidenceAggregator":
        return cls(
            weights=MatchingWeights.from_settings(settings),
            high_threshold=settings.high_threshold,
            medium_threshold=settings.medium_threshold,
        )

    def score(
        self,
        invoice: Invoice,
        payment: Payment,
        amount_override: float | None = None,
    ) -> MatchResult:
        """Compute field scores, weighted confidence and reasons for one pair.

        Args:
            invoice: Invoice being settled
            payment: Candidate payment
            amount_override: Amount score to use instead of comparing the two
                amounts (group members are settled by the group total)
        """
        text = payment.searchable_text
        scores = FieldScores(
            amount=(
                amount_override
                if amount_override is not None
                else amount_score(invoice.gross_amount, payment.amount)
            ),
            invoice_number=invoice_number_score(invoice.invoice_number, text),
            name=name_score(invoice.counterparty_name, payment.sender_name),
            nip=nip_score(invoice.counterparty_nip, text),
            date=date_score(invoice.due_date, payment.transaction_date),
            subaccount=subaccount_score(
                invoice.counterparty_subaccount, payment.sender_subaccount
            ),
        )

        return MatchResult(
            invoice_id=invoice.id,
            payment_id=payment.id,
            confidence=self.confidence(scores),
            scores=scores,
            reasons=self._build_reasons(invoice, payment, scores),
        )

    def confidence(self, scores: FieldScores) -> float:
        """Weighted confidence of a score breakdown, rounded half up to 2 decimals."""
        if scores.subaccount == 1.0:
            return 1.0

        weighted = sum(
            (
                Decimal(str(score)) * Decimal(str(weight))
                for score, weight in (
                    (scores.amount, self.weights.amount),
                    (scores.invoice_number, self.weights.invoice_number),
                    (scores.name, self.weights.name),
                    (scores.nip, self.weights.nip),
                    (scores.date, self.weights.date),
                )
            ),
            Decimal("0"),
        )
        return round_confidence(weighted)

    def quality(self, confidence: float) -> MatchQuality:
        """Confidence band for display."""
        if confidence >= self.high_threshold:
            return MatchQuality.HIGH
        if confidence >= GOOD_THRESHOLD:
            return MatchQuality.GOOD
        if confidence >= self.medium_threshold:
            return MatchQuality.MEDIUM
        return MatchQuality.LOW

    def _build_reasons(
        self, invoice: Invoice, payment: Payment, scores: FieldScores
    ) -> tuple[str, ...]:
        """Build human-readable explanation of the scores.

        Purely descriptive; never feeds back into the confidence.
        """
        reasons: list[str] = []

        if scores.subaccount == 1.0:
            reasons.append("Sub-account matches")

        payment_amount = _money(payment.incoming_amount)
        if scores.amount >= 0.9:
            reasons.append(f"Amount matches: {payment_amount} {payment.currency}")
        elif scores.amount >= 0.5:
            reasons.append(
                f"Amount close: {payment_amount} vs "
                f"{_money(invoice.gross_amount)} {invoice.currency}"
            )

        if scores.invoice_number >= 0.9:
            reasons.append("Invoice number found in title")
        elif scores.invoice_number >= 0.6:
            reasons.append("Partial invoice number match")

        if scores.name >= 0.8:
            reasons.append("Sender name matches counterparty")
        elif scores.name >= 0.5:
            reasons.append("Similar sender name")

        if scores.nip >= 0.9:
            reasons.append("Tax ID found in title")

        if scores.date >= 0.8:
            reasons.append("Payment close to due date")

        return tuple(reasons)

    def __repr__(self) -> str:
        return (
            f"<ConfidenceAggregator("
            f"weights=[amt:{self.weights.amount:.0%}, "
            f"num:{self.weights.invoice_number:.0%}, "
            f"name:{self.weights.name:.0%}, "
            f"nip:{self.weights.nip:.0%}, "
            f"date:{self.weights.date:.0%}], "
            f"high={self.high_threshold:.0%}, medium={self.medium_threshold:.0%})>"
        )


def match_quality(confidence: float) -> MatchQuality:
    """Confidence band using the default thresholds."""
    return _DEFAULT_AGGREGATOR.quality(confidence)


def _money(amount: Decimal) -> str:
    return f"{amount.quantize(Decimal('0.01'))}"


_DEFAULT_AGGREGATOR = ConfidenceAggregator()


def round_confidence(value: Decimal) -> float:
    """Round a confidence half up to two decimals, clamped to [0, 1].

    >>> round_confidence(Decimal("0.845"))
    0.85
    """
    rounded = value.quantize(CONFIDENCE_QUANTUM, rounding=ROUND_HALF_UP)
    return float(min(Decimal("1"), max(Decimal("0"), rounded)))
