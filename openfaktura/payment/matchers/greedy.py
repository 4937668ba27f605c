"""Greedy one-to-one assignment of payments to invoices.

Every same-currency (invoice, payment) pair is scored, pairs below the
suggestion threshold are dropped, and the rest are walked from the highest
confidence down. The first pair to claim an invoice or payment with an
auto-match confidence takes both; lower pairs become suggestions for review.

The result is not a global optimum: when two invoices compete for one payment
the earlier high-scoring pair wins even if another assignment would explain
more in total. It is cheap, explainable and deterministic.
"""

from collections.abc import Sequence

from ...utils.logging import get_logger
from ..domain.models import Invoice, Payment
from ..domain.value_objects import MatchResult, SinglePairOutcome
from .base import IAssignmentStrategy, matchable_invoices
from .composite import ConfidenceAggregator

logger = get_logger(__name__)


class SinglePairMatcher(IAssignmentStrategy):
    """Highest-confidence-first assignment.

    Algorithm:
    1. Keep invoices in a matchable status (pending, overdue, partial)
    2. Score every pair sharing a currency; drop pairs below the medium threshold
    3. Stable-sort by confidence descending (ties keep invoice-major,
       payment-minor enumeration order)
    4. Walk the list, skipping pairs whose invoice or payment is already
       taken by an auto-match:
       - confidence >= high threshold → auto-match, both sides consumed
       - otherwise → suggestion, nothing consumed
    5. Report everything not consumed by an auto-match as unmatched

    Example:
        >>> matcher = SinglePairMatcher()
        >>> outcome = matcher.find_matches(invoices, payments)
        >>> for match in outcome.auto_matches:
        ...     print(match.invoice_id, match.payment_id, match.confidence)
    """

    def __init__(self, aggregator: ConfidenceAggregator | None = None) -> None:
        self.aggregator = aggregator or ConfidenceAggregator()

    def find_matches(
        self, invoices: Sequence[Invoice], payments: Sequence[Payment]
    ) -> SinglePairOutcome:
        eligible = matchable_invoices(invoices)
        candidates = self.score_candidates(eligible, payments)

        # list.sort is stable: equal confidences keep enumeration order
        candidates.sort(key=lambda result: result.confidence, reverse=True)

        auto_matches: list[MatchResult] = []
        suggestions: list[MatchResult] = []
        consumed_invoices: set[str] = set()
        consumed_payments: set[str] = set()

        for candidate in candidates:
            if candidate.invoice_id in consumed_invoices:
                continue
            if candidate.payment_id in consumed_payments:
                continue

            confidence = self._validate_confidence(candidate.confidence)
            if confidence >= self.aggregator.high_threshold:
                auto_matches.append(candidate)
                consumed_invoices.add(candidate.invoice_id)
                consumed_payments.add(candidate.payment_id)
                logger.debug(
                    "auto_match_accepted",
                    invoice_id=candidate.invoice_id,
                    payment_id=candidate.payment_id,
                    confidence=confidence,
                )
            else:
                suggestions.append(candidate)

        outcome = SinglePairOutcome(
            auto_matches=tuple(auto_matches),
            suggestions=tuple(suggestions),
            unmatched_invoice_ids=tuple(
                invoice.id for invoice in eligible if invoice.id not in consumed_invoices
            ),
            unmatched_payment_ids=tuple(
                payment.id for payment in payments if payment.id not in consumed_payments
            ),
        )

        logger.info(
            "single_pair_matching_completed",
            invoices=len(eligible),
            payments=len(payments),
            candidates=len(candidates),
            auto_matches=len(outcome.auto_matches),
            suggestions=len(outcome.suggestions),
        )
        return outcome

    def score_candidates(
        self, invoices: Sequence[Invoice], payments: Sequence[Payment]
    ) -> list[MatchResult]:
        """Score same-currency pairs, invoice-major, keeping those worth a look."""
        candidates: list[MatchResult] = []
        for invoice in invoices:
            for payment in payments:
                if not same_currency(invoice, payment):
                    continue

                result = self.aggregator.score(invoice, payment)
                if result.confidence >= self.aggregator.medium_threshold:
                    candidates.append(result)
        return candidates

    def __repr__(self) -> str:
        return (
            f"<SinglePairMatcher("
            f"high={self.aggregator.high_threshold:.0%}, "
            f"medium={self.aggregator.medium_threshold:.0%})>"
        )


def same_currency(invoice: Invoice, payment: Payment) -> bool:
    return invoice.currency.upper() == payment.currency.upper()
