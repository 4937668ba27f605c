"""Tests for SinglePairMatcher (greedy one-to-one assignment)."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from openfaktura.payment.domain.enums import InvoiceStatus
from openfaktura.payment.domain.models import Invoice, Payment
from openfaktura.payment.domain.value_objects import FieldScores, MatchResult
from openfaktura.payment.matchers.base import IAssignmentStrategy
from openfaktura.payment.matchers.composite import ConfidenceAggregator
from openfaktura.payment.matchers.greedy import SinglePairMatcher

pytestmark = pytest.mark.unit


class FixedConfidenceAggregator(ConfidenceAggregator):
    """Aggregator returning preset confidences per (invoice, payment) pair."""

    def __init__(self, confidences):
        super().__init__()
        self.confidences = confidences

    def score(self, invoice, payment, amount_override=None):
        return MatchResult(
            invoice_id=invoice.id,
            payment_id=payment.id,
            confidence=self.confidences.get((invoice.id, payment.id), 0.0),
            scores=FieldScores(0.0, 0.0, 0.0, 0.0, 0.0),
        )


class TestSinglePairMatcherScenarios:
    """End-to-end single-pair scenarios on real scorers."""

    def test_exact_match_is_auto_matched(self, invoice, payment):
        outcome = SinglePairMatcher().find_matches([invoice], [payment])

        assert len(outcome.auto_matches) == 1
        assert outcome.auto_matches[0].key == ("inv-1", "pay-1")
        assert outcome.auto_matches[0].confidence == 0.9
        assert outcome.suggestions == ()
        assert outcome.unmatched_invoice_ids == ()
        assert outcome.unmatched_payment_ids == ()

    def test_weak_evidence_becomes_suggestion(self, invoice, make_payment):
        """Same amount and sender but no invoice number: review, not auto."""
        payment = make_payment(title="Przelew")

        outcome = SinglePairMatcher().find_matches([invoice], [payment])

        assert outcome.auto_matches == ()
        assert len(outcome.suggestions) == 1
        # 0.30 amount + 0.15 name + 0.10 date
        assert outcome.suggestions[0].confidence == 0.55
        # Suggestions consume nothing
        assert outcome.unmatched_invoice_ids == ("inv-1",)
        assert outcome.unmatched_payment_ids == ("pay-1",)

    def test_currency_mismatch_never_matches(self, make_invoice, payment):
        invoice = make_invoice(currency="EUR")

        outcome = SinglePairMatcher().find_matches([invoice], [payment])

        assert outcome.auto_matches == ()
        assert outcome.suggestions == ()
        assert outcome.unmatched_invoice_ids == ("inv-1",)
        assert outcome.unmatched_payment_ids == ("pay-1",)

    def test_currency_comparison_ignores_case(self, make_invoice, payment):
        invoice = make_invoice(currency="pln")

        outcome = SinglePairMatcher().find_matches([invoice], [payment])

        assert len(outcome.auto_matches) == 1

    def test_subaccount_match_is_auto_matched(self, make_invoice, make_payment):
        invoice = make_invoice(counterparty_subaccount="PL00SUB0001")
        payment = make_payment(
            amount=Decimal("17.00"),
            sender_name="Jan Kowalski",
            title="Przelew",
            transaction_date=date(2024, 9, 1),
            sender_subaccount="PL00SUB0001",
        )

        outcome = SinglePairMatcher().find_matches([invoice], [payment])

        assert len(outcome.auto_matches) == 1
        assert outcome.auto_matches[0].confidence == 1.0

    @pytest.mark.parametrize("status", [InvoiceStatus.PAID, InvoiceStatus.CANCELED])
    def test_settled_invoices_ignored(self, make_invoice, payment, status):
        invoice = make_invoice(status=status)

        outcome = SinglePairMatcher().find_matches([invoice], [payment])

        assert outcome.auto_matches == ()
        assert outcome.unmatched_invoice_ids == ()
        assert outcome.unmatched_payment_ids == ("pay-1",)

    @pytest.mark.parametrize("status", [InvoiceStatus.OVERDUE, InvoiceStatus.PARTIAL])
    def test_open_statuses_matched(self, make_invoice, payment, status):
        invoice = make_invoice(status=status)

        outcome = SinglePairMatcher().find_matches([invoice], [payment])

        assert len(outcome.auto_matches) == 1

    def test_empty_inputs(self):
        outcome = SinglePairMatcher().find_matches([], [])

        assert outcome.auto_matches == ()
        assert outcome.suggestions == ()


class TestGreedyAssignment:
    """Exclusivity, ordering and threshold behaviour."""

    def test_payment_auto_matched_once(self, make_invoice, payment):
        """The second invoice loses the payment and is not suggested either."""
        first = make_invoice(id="inv-1")
        second = make_invoice(id="inv-2", invoice_number="FV/2024/002")

        outcome = SinglePairMatcher().find_matches([first, second], [payment])

        assert [match.invoice_id for match in outcome.auto_matches] == ["inv-1"]
        assert outcome.suggestions == ()
        assert outcome.unmatched_invoice_ids == ("inv-2",)

    def test_ties_resolved_by_input_order(self, make_invoice, payment):
        first = make_invoice(id="inv-a")
        second = make_invoice(id="inv-b")

        forward = SinglePairMatcher().find_matches([first, second], [payment])
        backward = SinglePairMatcher().find_matches([second, first], [payment])

        assert forward.auto_matches[0].invoice_id == "inv-a"
        assert backward.auto_matches[0].invoice_id == "inv-b"

    def test_higher_confidence_claims_first(self, make_invoice, make_payment):
        invoice_a = make_invoice(id="A")
        invoice_b = make_invoice(id="B")
        payment_1 = make_payment(id="P1")
        payment_2 = make_payment(id="P2")
        aggregator = FixedConfidenceAggregator(
            {("A", "P1"): 0.90, ("A", "P2"): 0.95, ("B", "P1"): 0.86, ("B", "P2"): 0.50}
        )

        outcome = SinglePairMatcher(aggregator).find_matches(
            [invoice_a, invoice_b], [payment_1, payment_2]
        )

        assert [match.key for match in outcome.auto_matches] == [("A", "P2"), ("B", "P1")]
        assert outcome.suggestions == ()

    def test_suggestion_after_auto_match_on_other_pairs(self, make_invoice, make_payment):
        invoice_a = make_invoice(id="A")
        invoice_b = make_invoice(id="B")
        payment_1 = make_payment(id="P1")
        payment_2 = make_payment(id="P2")
        aggregator = FixedConfidenceAggregator(
            {("A", "P1"): 0.90, ("A", "P2"): 0.60, ("B", "P2"): 0.40}
        )

        outcome = SinglePairMatcher(aggregator).find_matches(
            [invoice_a, invoice_b], [payment_1, payment_2]
        )

        assert [match.key for match in outcome.auto_matches] == [("A", "P1")]
        # (A, P2) is skipped because A is taken; (B, P2) stays a suggestion
        assert [match.key for match in outcome.suggestions] == [("B", "P2")]
        assert outcome.unmatched_invoice_ids == ("B",)
        assert outcome.unmatched_payment_ids == ("P2",)

    @pytest.mark.parametrize(
        "confidence,auto,suggested",
        [
            (0.85, 1, 0),
            (0.84, 0, 1),
            (0.35, 0, 1),
            (0.34, 0, 0),
        ],
    )
    def test_threshold_boundaries(self, invoice, payment, confidence, auto, suggested):
        aggregator = FixedConfidenceAggregator({("inv-1", "pay-1"): confidence})

        outcome = SinglePairMatcher(aggregator).find_matches([invoice], [payment])

        assert len(outcome.auto_matches) == auto
        assert len(outcome.suggestions) == suggested

    def test_deterministic(self, make_invoice, make_payment):
        invoices = [
            make_invoice(id=f"inv-{i}", invoice_number=f"FV/2024/{i:03d}") for i in range(1, 6)
        ]
        payments = [
            make_payment(id=f"pay-{i}", title=f"Zaplata FV/2024/{i:03d}") for i in range(5, 0, -1)
        ]

        first = SinglePairMatcher().find_matches(invoices, payments)
        second = SinglePairMatcher().find_matches(invoices, payments)

        assert first == second
        assert {match.key for match in first.auto_matches} == {
            (f"inv-{i}", f"pay-{i}") for i in range(1, 6)
        }


class TestStrategyInterface:
    """SinglePairMatcher honours the assignment strategy contract."""

    def test_is_strategy(self):
        assert isinstance(SinglePairMatcher(), IAssignmentStrategy)

    def test_validate_confidence_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            SinglePairMatcher()._validate_confidence(1.5)

    def test_repr(self):
        assert repr(SinglePairMatcher()) == "<SinglePairMatcher(high=85%, medium=35%)>"


# Small pools so generated records collide on amounts, numbers and names
AMOUNTS = st.sampled_from(["100.00", "250.00", "995.00", "1000.00", "1230.00"]).map(Decimal)
NUMBERS = st.sampled_from(["FV/2024/001", "FV/2024/002", "PS 27/12/2025", "FV 102"])
NAMES = st.sampled_from(["ACME Sp. z o.o.", "ACME", "Beta S.A.", "JANOWSKI TOMASZ"])
DAYS = st.integers(min_value=0, max_value=45).map(lambda day: date(2024, 3, 1) + timedelta(day))
TITLES = st.one_of(
    st.just("Przelew"),
    NUMBERS.map(lambda number: f"Zaplata {number}"),
    st.just("Oplata NIP 1234567890"),
)


@st.composite
def invoice_lists(draw):
    count = draw(st.integers(min_value=0, max_value=6))
    return [
        Invoice(
            id=f"inv-{index}",
            invoice_number=draw(NUMBERS),
            issue_date=date(2024, 3, 1),
            due_date=draw(DAYS),
            gross_amount=draw(AMOUNTS),
            currency="PLN",
            counterparty_name=draw(NAMES),
            counterparty_nip=draw(st.sampled_from([None, "1234567890"])),
            counterparty_subaccount=draw(st.sampled_from([None, "ACC-77"])),
            status=draw(st.sampled_from(list(InvoiceStatus))),
        )
        for index in range(count)
    ]


@st.composite
def payment_lists(draw):
    count = draw(st.integers(min_value=0, max_value=6))
    return [
        Payment(
            id=f"pay-{index}",
            transaction_date=draw(DAYS),
            amount=draw(AMOUNTS),
            currency="PLN",
            sender_name=draw(NAMES),
            title=draw(TITLES),
            sender_subaccount=draw(st.sampled_from([None, "ACC-77"])),
        )
        for index in range(count)
    ]


class TestSinglePairMatcherProperties:
    """Properties holding for any invoice and payment lists."""

    @given(invoices=invoice_lists(), payments=payment_lists())
    def test_auto_matches_are_exclusive(self, invoices, payments):
        outcome = SinglePairMatcher().find_matches(invoices, payments)

        invoice_ids = [match.invoice_id for match in outcome.auto_matches]
        payment_ids = [match.payment_id for match in outcome.auto_matches]
        assert len(invoice_ids) == len(set(invoice_ids))
        assert len(payment_ids) == len(set(payment_ids))

    @given(invoices=invoice_lists(), payments=payment_lists())
    def test_suggestions_avoid_matched_records(self, invoices, payments):
        outcome = SinglePairMatcher().find_matches(invoices, payments)

        matched_invoices = {match.invoice_id for match in outcome.auto_matches}
        matched_payments = {match.payment_id for match in outcome.auto_matches}
        for suggestion in outcome.suggestions:
            assert suggestion.invoice_id not in matched_invoices
            assert suggestion.payment_id not in matched_payments
        assert matched_invoices.isdisjoint(outcome.unmatched_invoice_ids)
        assert matched_payments.isdisjoint(outcome.unmatched_payment_ids)

    @given(invoices=invoice_lists(), payments=payment_lists())
    def test_only_matchable_invoices_are_used(self, invoices, payments):
        outcome = SinglePairMatcher().find_matches(invoices, payments)

        matchable = {invoice.id for invoice in invoices if invoice.is_matchable}
        used = {match.invoice_id for match in outcome.auto_matches + outcome.suggestions}
        assert used <= matchable

    @given(invoices=invoice_lists(), payments=payment_lists())
    def test_repeated_runs_are_equal(self, invoices, payments):
        first = SinglePairMatcher().find_matches(invoices, payments)
        second = SinglePairMatcher().find_matches(list(invoices), list(payments))

        assert first == second
