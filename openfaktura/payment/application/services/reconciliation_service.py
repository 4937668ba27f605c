"""Reconciliation service: one full matching run over invoices and payments.

The service is the engine's only entry point for callers. It validates the
input against the configured limits, runs single-pair matching and, when
enabled, group matching on what the auto-matches left over, then assembles
one ``ReconciliationResult``. It holds no state between runs; every call
works on its own consumed-sets, so one instance may serve concurrent callers.

Persisting auto-matches, flipping invoice status to paid and presenting the
review queue are the caller's job. After the user confirms or rejects a
suggestion the caller re-runs the service without the settled records.
"""

from collections.abc import Iterable, Sequence

from ....exceptions import InputLimitError, ValidationError
from ....utils.config import MatchingSettings, get_settings
from ....utils.logging import (
    LogPerformance,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from ...domain.enums import InvoiceStatus, MatchKind
from ...domain.models import Invoice, Payment
from ...domain.value_objects import (
    GroupMatchSuggestion,
    MatchCandidate,
    MatchOptions,
    MatchResult,
    ReconciliationResult,
)
from ...matchers.base import IAssignmentStrategy, matchable_invoices
from ...matchers.composite import ConfidenceAggregator
from ...matchers.greedy import SinglePairMatcher
from ...matchers.group import GroupMatcher
from ...metrics import record_reconciliation, record_rejected_input

logger = get_logger(__name__)


class ReconciliationService:
    """Run the matching engine over one batch of invoices and payments.

    Example:
        >>> service = ReconciliationService()
        >>> result = service.run(invoices, payments, MatchOptions(max_months_to_group=2))
        >>> print(result.summary())
        2 auto-matches, 1 suggestion, 1 group suggestion; 3 invoices and 1 payments left unmatched
    """

    def __init__(
        self,
        settings: MatchingSettings | None = None,
        single_matcher: IAssignmentStrategy | None = None,
        group_matcher: GroupMatcher | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            settings: Thresholds, weights and limits (process settings if omitted)
            single_matcher: One-to-one strategy (greedy if omitted)
            group_matcher: Group strategy (built from settings if omitted)
        """
        self.settings = settings or get_settings()
        self.aggregator = ConfidenceAggregator.from_settings(self.settings)
        self.single_matcher = single_matcher or SinglePairMatcher(self.aggregator)
        self.group_matcher = group_matcher or GroupMatcher(
            self.aggregator,
            max_group_candidates=self.settings.max_group_candidates,
            name_threshold=self.settings.group_name_threshold,
        )

    def run(
        self,
        invoices: Iterable[Invoice],
        payments: Iterable[Payment],
        options: MatchOptions | None = None,
    ) -> ReconciliationResult:
        """Reconcile invoices against payments.

        Args:
            invoices: Invoices in caller order (ineligible statuses are ignored)
            payments: Payments in caller order
            options: Group matching switches

        Returns:
            Auto-matches, review candidates and unmatched IDs.

        Raises:
            InputLimitError: If a size, comparison or currency cap is exceeded
            ValidationError: If a record cannot take part in matching
        """
        # Keep a caller-provided correlation ID, else start a new one per run
        if get_correlation_id() is None:
            set_correlation_id()
        options = options or MatchOptions()
        invoices = tuple(invoices)
        payments = tuple(payments)

        try:
            comparisons = self.validate_inputs(invoices, payments)
        except InputLimitError as e:
            logger.error("reconciliation_rejected", error=str(e), **e.context)
            record_rejected_input("limit")
            record_reconciliation("rejected")
            raise
        except ValidationError as e:
            logger.error("reconciliation_rejected", error=str(e), **e.context)
            record_rejected_input("validation")
            record_reconciliation("rejected")
            raise

        logger.info(
            "reconciliation_started",
            invoices=len(invoices),
            payments=len(payments),
            comparisons=comparisons,
            group_matching=options.enable_group_matching,
        )

        with LogPerformance("reconciliation", logger) as perf:
            result = self._reconcile(invoices, payments, options, comparisons)

        record_reconciliation(
            "success",
            duration_seconds=perf.duration,
            auto_confidences=[match.confidence for match in result.auto_matches],
            suggestion_confidences=[candidate.confidence for candidate in result.suggestions],
            group_confidences=[group.confidence for group in result.group_suggestions],
        )
        logger.info("reconciliation_summary", summary=result.summary())
        return result

    def validate_inputs(self, invoices: Sequence[Invoice], payments: Sequence[Payment]) -> int:
        """Reject inputs the engine must not process.

        Returns:
            Number of invoice x payment comparisons the run will make.

        Raises:
            InputLimitError: If a configured cap is exceeded
            ValidationError: If a record is malformed
        """
        settings = self.settings
        _check_limit("max_invoices", settings.max_invoices, len(invoices), "Too many invoices")
        _check_limit("max_payments", settings.max_payments, len(payments), "Too many payments")
        _check_limit(
            "max_total_records",
            settings.max_total_records,
            len(invoices) + len(payments),
            "Too many records",
        )

        # Status decides which invoices count towards the comparison cap
        for invoice in invoices:
            _check_status(invoice)

        comparisons = len(matchable_invoices(invoices)) * len(payments)
        _check_limit(
            "max_comparisons",
            settings.max_comparisons,
            comparisons,
            "Too many invoice/payment comparisons",
        )

        currencies = {invoice.currency.upper() for invoice in invoices if invoice.currency}
        currencies |= {payment.currency.upper() for payment in payments if payment.currency}
        _check_limit(
            "max_currencies", settings.max_currencies, len(currencies), "Too many currencies"
        )

        seen_invoice_ids: set[str] = set()
        for invoice in invoices:
            _check_identifier("invoice", invoice.id, seen_invoice_ids)
            if not invoice.currency:
                raise ValidationError(
                    f"Invoice {invoice.id} has no currency", field="currency", value=invoice.id
                )
            if invoice.gross_amount <= 0:
                raise ValidationError(
                    f"Invoice {invoice.id} amount must be positive",
                    field="gross_amount",
                    value=invoice.gross_amount,
                    constraint="gross_amount > 0",
                )

        seen_payment_ids: set[str] = set()
        for payment in payments:
            _check_identifier("payment", payment.id, seen_payment_ids)
            if not payment.currency:
                raise ValidationError(
                    f"Payment {payment.id} has no currency", field="currency", value=payment.id
                )

        return comparisons

    def _reconcile(
        self,
        invoices: tuple[Invoice, ...],
        payments: tuple[Payment, ...],
        options: MatchOptions,
        comparisons: int,
    ) -> ReconciliationResult:
        single = self.single_matcher.find_matches(invoices, payments)

        groups: list[GroupMatchSuggestion] = []
        if options.enable_group_matching:
            consumed_invoices = {match.invoice_id for match in single.auto_matches}
            consumed_payments = {match.payment_id for match in single.auto_matches}
            groups = self.group_matcher.find_group_matches(
                [invoice for invoice in invoices if invoice.id not in consumed_invoices],
                [payment for payment in payments if payment.id not in consumed_payments],
                max_months_to_group=options.max_months_to_group,
            )

        # A record proposed as part of a group is not also proposed alone
        grouped_invoices = {invoice_id for group in groups for invoice_id in group.invoice_ids}
        grouped_payments = {group.payment.id for group in groups}
        kept_suggestions = [
            suggestion
            for suggestion in single.suggestions
            if suggestion.invoice_id not in grouped_invoices
            and suggestion.payment_id not in grouped_payments
        ]

        # Explicit read-only lookups for this run only
        invoices_by_id = {invoice.id: invoice for invoice in invoices}
        payments_by_id = {payment.id: payment for payment in payments}

        single_candidates = tuple(
            self._single_candidate(
                suggestion,
                invoices_by_id[suggestion.invoice_id],
                payments_by_id[suggestion.payment_id],
            )
            for suggestion in kept_suggestions
        )
        group_candidates = tuple(self._group_candidate(group) for group in groups)
        review_queue = sorted(
            single_candidates + group_candidates,
            key=lambda candidate: candidate.confidence,
            reverse=True,
        )

        return ReconciliationResult(
            auto_matches=single.auto_matches,
            suggestions=single_candidates,
            group_suggestions=tuple(groups),
            unmatched_invoice_ids=single.unmatched_invoice_ids,
            unmatched_payment_ids=single.unmatched_payment_ids,
            review_queue=tuple(review_queue),
            stats={
                "invoices": len(invoices),
                "payments": len(payments),
                "comparisons": comparisons,
                "dropped_suggestions": len(single.suggestions) - len(kept_suggestions),
            },
        )

    def _single_candidate(
        self, result: MatchResult, invoice: Invoice, payment: Payment
    ) -> MatchCandidate:
        return MatchCandidate(
            kind=MatchKind.SINGLE,
            invoices=(invoice,),
            payment=payment,
            confidence=result.confidence,
            quality=self.aggregator.quality(result.confidence),
            reasons=result.reasons,
            result=result,
        )

    def _group_candidate(self, group: GroupMatchSuggestion) -> MatchCandidate:
        return MatchCandidate(
            kind=MatchKind.GROUP,
            invoices=group.invoices,
            payment=group.payment,
            confidence=group.confidence,
            quality=self.aggregator.quality(group.confidence),
            reasons=group.reasons,
            group=group,
        )

    def __repr__(self) -> str:
        return (
            f"<ReconciliationService(single={self.single_matcher!r}, "
            f"group={self.group_matcher!r})>"
        )


def _check_limit(name: str, limit: int, actual: int, message: str) -> None:
    if actual > limit:
        raise InputLimitError(
            f"{message}: {actual} exceeds the limit of {limit}",
            limit_name=name,
            limit=limit,
            actual=actual,
        )


def _check_identifier(kind: str, identifier: str, seen: set[str]) -> None:
    if not identifier:
        raise ValidationError(f"A {kind} has no identifier", field="id", constraint="non-empty")
    if identifier in seen:
        raise ValidationError(
            f"Duplicate {kind} identifier {identifier}",
            field="id",
            value=identifier,
            constraint="unique",
        )
    seen.add(identifier)


def _check_status(invoice: Invoice) -> None:
    try:
        InvoiceStatus(invoice.status)
    except ValueError as e:
        raise ValidationError(
            f"Invoice {invoice.id} has unknown status {invoice.status!r}",
            field="status",
            value=invoice.status,
            constraint="one of " + ", ".join(status.value for status in InvoiceStatus),
            original_error=e,
        ) from e
