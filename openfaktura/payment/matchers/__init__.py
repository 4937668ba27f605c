"""Invoice/payment matching: normalization, scoring and assignment.

Available building blocks:
- text: normalize(), similarity(), compare_company_names()
- extractors: invoice number and tax ID (NIP) extraction from titles
- scorers: six per-field scorers, each returning a value in [0, 1]
- ConfidenceAggregator: weighted confidence with sub-account override
- SinglePairMatcher: greedy one-to-one assignment
- GroupMatcher: one payment settling several invoices

Usage:
    >>> from openfaktura.payment.matchers import SinglePairMatcher
    >>> outcome = SinglePairMatcher().find_matches(invoices, payments)
    >>> outcome.auto_matches[0].confidence
    1.0
"""

__all__ = [
    "IAssignmentStrategy",
    "ConfidenceAggregator",
    "MatchingWeights",
    "SinglePairMatcher",
    "GroupMatcher",
    "match_quality",
    "normalize",
    "similarity",
    "compare_company_names",
    "extract_invoice_numbers",
    "extract_nip",
]

from .base import IAssignmentStrategy
from .composite import ConfidenceAggregator, MatchingWeights, match_quality
from .extractors import extract_invoice_numbers, extract_nip
from .greedy import SinglePairMatcher
from .group import GroupMatcher
from .text import compare_company_names, normalize, similarity
