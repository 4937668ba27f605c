"""Invoice and bank payment reconciliation.

This module implements:
- Text normalization and invoice number / tax ID extraction
- Per-field scoring and weighted confidence
- Greedy one-to-one assignment with auto-match and suggestion bands
- Group matching (one payment settling several invoices)
- Prometheus metrics monitoring

Architecture: Domain-Driven Design (DDD) + Hexagonal Architecture
"""

__all__ = [
    "Invoice",
    "Payment",
    "InvoiceStatus",
    "MatchKind",
    "MatchQuality",
    "MatchCandidate",
    "MatchOptions",
    "MatchResult",
    "GroupMatchSuggestion",
    "ReconciliationResult",
    "ReconciliationService",
    # Metrics
    "start_metrics_server",
    "record_reconciliation",
]

from .application.services import ReconciliationService
from .domain.enums import InvoiceStatus, MatchKind, MatchQuality
from .domain.models import Invoice, Payment
from .domain.value_objects import (
    GroupMatchSuggestion,
    MatchCandidate,
    MatchOptions,
    MatchResult,
    ReconciliationResult,
)
from .metrics import record_reconciliation, start_metrics_server
