"""Enumerations for the reconciliation domain."""

from enum import Enum


class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    PARTIAL = "partial"
    CANCELED = "canceled"

    @property
    def is_matchable(self) -> bool:
        """Whether invoices in this status still wait for a payment."""
        return self in MATCHABLE_STATUSES


MATCHABLE_STATUSES = frozenset(
    {InvoiceStatus.PENDING, InvoiceStatus.OVERDUE, InvoiceStatus.PARTIAL}
)


class MatchKind(str, Enum):
    """Discriminator of a review candidate."""

    SINGLE = "single"  # One invoice <-> one payment
    GROUP = "group"  # Several invoices <-> one payment


class MatchQuality(str, Enum):
    """Confidence band shown next to a candidate."""

    HIGH = "high"  # >= auto-match threshold
    GOOD = "good"  # >= 0.75
    MEDIUM = "medium"  # >= suggestion threshold
    LOW = "low"

    @property
    def label(self) -> str:
        return _QUALITY_LABELS[self]


_QUALITY_LABELS = {
    MatchQuality.HIGH: "High match",
    MatchQuality.GOOD: "Good match",
    MatchQuality.MEDIUM: "Medium match",
    MatchQuality.LOW: "Low match",
}
