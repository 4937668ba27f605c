"""Domain layer: input records, enums and engine value objects."""

from .enums import MATCHABLE_STATUSES, InvoiceStatus, MatchKind, MatchQuality
from .models import Invoice, Payment
from .value_objects import (
    FieldScores,
    GroupMatchSuggestion,
    GroupPeriod,
    MatchCandidate,
    MatchOptions,
    MatchResult,
    ReconciliationResult,
    SinglePairOutcome,
)

__all__ = [
    "MATCHABLE_STATUSES",
    "InvoiceStatus",
    "MatchKind",
    "MatchQuality",
    "Invoice",
    "Payment",
    "FieldScores",
    "GroupMatchSuggestion",
    "GroupPeriod",
    "MatchCandidate",
    "MatchOptions",
    "MatchResult",
    "ReconciliationResult",
    "SinglePairOutcome",
]
