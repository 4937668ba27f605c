"""Group matching: one payment settling several invoices of one counterparty.

Customers often pay a month (or two) of invoices with a single transfer. For
each payment the matcher collects the same-counterparty invoices falling due
close to the payment date and searches for a subset whose gross amounts add
up to the payment amount.

The subset search is exhaustive, so the number of invoices it looks at is
capped (``max_group_candidates``). When a counterparty has more open
invoices than the cap, only those due closest to the payment date are kept.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from itertools import combinations

from ...utils.logging import get_logger
from ..domain.models import Invoice, Payment
from ..domain.value_objects import GroupMatchSuggestion, GroupPeriod, MatchResult
from .base import matchable_invoices
from .composite import ConfidenceAggregator, round_confidence
from .extractors import extract_nip, extract_nip_from_id_iph, normalize_nip
from .greedy import same_currency
from .scorers import amount_score, name_score
from .text import strip_legal_suffixes

logger = get_logger(__name__)

# Amount score at or above which a sum counts as equal (0.1% rounding band)
GROUP_AMOUNT_TOLERANCE_SCORE = 0.99
GROUP_SUM_TOLERANCE = Decimal("0.001")
MIN_GROUP_SIZE = 2


@dataclass(frozen=True)
class _GroupCandidate:
    members: tuple[Invoice, ...]
    results: tuple[MatchResult, ...]
    total: Decimal
    amount_score: float
    confidence: float

    def outranks(self, other: "_GroupCandidate | None") -> bool:
        """More invoices first, then higher confidence; ties keep the incumbent."""
        if other is None:
            return True
        if len(self.members) != len(other.members):
            return len(self.members) > len(other.members)
        return self.confidence > other.confidence


class GroupMatcher:
    """Propose one-to-many settlements.

    Algorithm, for each payment in input order:
    1. Collect matchable, same-currency invoices not yet claimed by a group
       whose counterparty matches the sender (name score or tax ID in title)
       and whose due month lies within ``max_months_to_group`` months of the
       payment month
    2. Bucket them by counterparty (shared tax ID or shared stripped name)
    3. Cap each bucket at ``max_group_candidates`` invoices
    4. Find subsets of at least two invoices whose total matches the payment
       amount within 0.1%; prefer the largest subset, then the highest
       aggregate confidence
    5. Emit at most one suggestion per payment; its invoices are claimed

    Aggregate confidence is the gross-amount weighted mean of the members'
    confidences, each member scored with the group-total amount score.

    Example:
        >>> matcher = GroupMatcher()
        >>> for group in matcher.find_group_matches(invoices, payments):
        ...     print(group.payment.id, group.invoice_ids, group.confidence)
    """

    def __init__(
        self,
        aggregator: ConfidenceAggregator | None = None,
        max_group_candidates: int = 12,
        name_threshold: float = 0.8,
    ) -> None:
        if max_group_candidates < MIN_GROUP_SIZE:
            raise ValueError(
                f"max_group_candidates must be at least {MIN_GROUP_SIZE}, "
                f"got {max_group_candidates}"
            )
        self.aggregator = aggregator or ConfidenceAggregator()
        self.max_group_candidates = max_group_candidates
        self.name_threshold = name_threshold

    def find_group_matches(
        self,
        invoices: Sequence[Invoice],
        payments: Sequence[Payment],
        max_months_to_group: int = 2,
    ) -> list[GroupMatchSuggestion]:
        """Find group suggestions among records not consumed by auto-matches.

        Args:
            invoices: Invoices still open after single-pair matching
            payments: Payments still unassigned after single-pair matching
            max_months_to_group: Maximum distance, in calendar months, between
                an invoice's due month and the payment month

        Returns:
            Group suggestions in payment input order.
        """
        eligible = matchable_invoices(invoices)
        claimed: set[str] = set()
        suggestions: list[GroupMatchSuggestion] = []

        for payment in payments:
            if payment.incoming_amount <= 0:
                continue

            pool = [
                invoice
                for invoice in eligible
                if invoice.id not in claimed
                and same_currency(invoice, payment)
                and _months_apart(invoice.due_date, payment.transaction_date)
                <= max_months_to_group
                and self._same_counterparty(invoice, payment)
            ]
            if len(pool) < MIN_GROUP_SIZE:
                continue

            best: _GroupCandidate | None = None
            for members in _bucket_by_counterparty(pool):
                if len(members) < MIN_GROUP_SIZE:
                    continue
                candidate = self._best_subset(self._cap(members, payment), payment)
                if candidate is not None and candidate.outranks(best):
                    best = candidate

            if best is None:
                continue

            suggestion = self._build_suggestion(best, payment)
            suggestions.append(suggestion)
            claimed.update(suggestion.invoice_ids)
            logger.debug(
                "group_match_found",
                payment_id=payment.id,
                invoice_ids=list(suggestion.invoice_ids),
                confidence=suggestion.confidence,
            )

        logger.info(
            "group_matching_completed",
            invoices=len(eligible),
            payments=len(payments),
            group_suggestions=len(suggestions),
        )
        return suggestions

    def _same_counterparty(self, invoice: Invoice, payment: Payment) -> bool:
        expected_nip = normalize_nip(invoice.counterparty_nip)
        if expected_nip is not None:
            text = payment.searchable_text
            if (extract_nip(text) or extract_nip_from_id_iph(text)) == expected_nip:
                return True
        return name_score(invoice.counterparty_name, payment.sender_name) >= self.name_threshold

    def _cap(self, members: list[Invoice], payment: Payment) -> list[Invoice]:
        """Keep at most ``max_group_candidates`` invoices, nearest due dates first."""
        if len(members) <= self.max_group_candidates:
            return members

        ranked = sorted(
            enumerate(members),
            key=lambda item: (abs((item[1].due_date - payment.transaction_date).days), item[0]),
        )
        kept = sorted(ranked[: self.max_group_candidates], key=lambda item: item[0])
        logger.warning(
            "group_candidates_capped",
            payment_id=payment.id,
            candidates=len(members),
            cap=self.max_group_candidates,
        )
        return [invoice for _, invoice in kept]

    def _best_subset(self, members: list[Invoice], payment: Payment) -> _GroupCandidate | None:
        target = payment.incoming_amount
        available = sum((invoice.gross_amount for invoice in members), Decimal("0"))
        if available < target * (1 - GROUP_SUM_TOLERANCE):
            return None

        member_cache: dict[tuple[str, float], MatchResult] = {}

        def member_result(invoice: Invoice, group_amount_score: float) -> MatchResult:
            key = (invoice.id, group_amount_score)
            if key not in member_cache:
                member_cache[key] = self.aggregator.score(
                    invoice, payment, amount_override=group_amount_score
                )
            return member_cache[key]

        # Largest subsets first: the first size with a hit explains the most debt
        for size in range(len(members), MIN_GROUP_SIZE - 1, -1):
            best: _GroupCandidate | None = None
            for subset in combinations(members, size):
                total = sum((invoice.gross_amount for invoice in subset), Decimal("0"))
                group_amount_score = amount_score(total, target)
                if group_amount_score < GROUP_AMOUNT_TOLERANCE_SCORE:
                    continue

                results = tuple(member_result(invoice, group_amount_score) for invoice in subset)
                candidate = _GroupCandidate(
                    members=subset,
                    results=results,
                    total=total,
                    amount_score=group_amount_score,
                    confidence=_weighted_confidence(subset, results, total),
                )
                if candidate.outranks(best):
                    best = candidate
            if best is not None:
                return best
        return None

    def _build_suggestion(
        self, candidate: _GroupCandidate, payment: Payment
    ) -> GroupMatchSuggestion:
        members = candidate.members
        nips = {normalize_nip(invoice.counterparty_nip) for invoice in members} - {None}
        shared_nip = nips.pop() if len(nips) == 1 else None

        due_months = sorted(_month_label(invoice.due_date) for invoice in members)
        period = None
        if due_months[0] != due_months[-1]:
            period = GroupPeriod(due_months[0], due_months[-1])

        currency = payment.currency
        reasons = [
            f"{len(members)} invoices totalling {candidate.total.quantize(Decimal('0.01'))} "
            f"{currency} settled by one payment",
        ]
        if candidate.amount_score == 1.0:
            reasons.append("Payment amount equals invoice total")
        else:
            reasons.append("Payment amount equals invoice total within rounding")
        reasons.append(f"Same counterparty: {members[0].counterparty_name}")

        numbers_found = sum(
            1 for result in candidate.results if result.scores.invoice_number >= 0.9
        )
        if numbers_found:
            reasons.append(f"{numbers_found} of {len(members)} invoice numbers found in title")
        if any(result.scores.nip >= 0.9 for result in candidate.results):
            reasons.append("Tax ID found in title")
        if period is not None:
            reasons.append(f"Invoices due {period.start} to {period.end}")

        return GroupMatchSuggestion(
            invoices=members,
            payment=payment,
            confidence=candidate.confidence,
            total_amount=candidate.total,
            counterparty_name=members[0].counterparty_name,
            counterparty_nip=shared_nip,
            member_results=candidate.results,
            reasons=tuple(reasons),
            period=period,
        )

    def __repr__(self) -> str:
        return (
            f"<GroupMatcher(max_group_candidates={self.max_group_candidates}, "
            f"name_threshold={self.name_threshold:.0%})>"
        )


def _bucket_by_counterparty(invoices: list[Invoice]) -> list[list[Invoice]]:
    """Split invoices by counterparty, keeping input order within each bucket.

    Two invoices belong to the same counterparty when they share a tax ID or
    a stripped name, so an invoice without a tax ID joins the bucket of a
    same-named invoice that has one.
    """
    buckets: list[tuple[set[str], list[int]]] = []
    for position, invoice in enumerate(invoices):
        keys: set[str] = set()
        name = strip_legal_suffixes(invoice.counterparty_name)
        if name:
            keys.add(f"name:{name}")
        nip = normalize_nip(invoice.counterparty_nip)
        if nip:
            keys.add(f"nip:{nip}")

        positions = [position]
        unlinked: list[tuple[set[str], list[int]]] = []
        for bucket_keys, bucket_positions in buckets:
            if bucket_keys & keys:
                keys |= bucket_keys
                positions.extend(bucket_positions)
            else:
                unlinked.append((bucket_keys, bucket_positions))
        buckets = [*unlinked, (keys, positions)]

    ordered = sorted((sorted(positions) for _, positions in buckets), key=lambda p: p[0])
    return [[invoices[position] for position in positions] for positions in ordered]


def _weighted_confidence(
    members: Sequence[Invoice], results: Sequence[MatchResult], total: Decimal
) -> float:
    if total <= 0:
        return 0.0
    weighted = sum(
        (
            Decimal(str(result.confidence)) * invoice.gross_amount
            for invoice, result in zip(members, results)
        ),
        Decimal("0"),
    )
    return round_confidence(weighted / total)


def _months_apart(first: date, second: date) -> int:
    return abs((first.year * 12 + first.month) - (second.year * 12 + second.month))


def _month_label(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"
