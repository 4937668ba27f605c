"""Base interface for invoice/payment assignment strategies.

Implements the Strategy pattern so the greedy assignment can be replaced by
another algorithm (e.g. a weighted bipartite matching) without touching
scoring or classification.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.models import Invoice, Payment
    from ..domain.value_objects import SinglePairOutcome


class IAssignmentStrategy(ABC):
    """Abstract base class for one-to-one assignment strategies.

    Implementing a new strategy:
        1. Inherit from IAssignmentStrategy
        2. Implement find_matches()
        3. Give every invoice and payment at most one auto-match
        4. Keep the output deterministic for identical, identically ordered input
    """

    @abstractmethod
    def find_matches(
        self, invoices: Sequence["Invoice"], payments: Sequence["Payment"]
    ) -> "SinglePairOutcome":
        """Assign payments to invoices.

        Args:
            invoices: Candidate invoices, in caller order
            payments: Candidate payments, in caller order

        Returns:
            Auto-matches, suggestions and the IDs left unmatched.
        """

    def _validate_confidence(self, confidence: float) -> float:
        """Ensure confidence is within valid range [0.0, 1.0].

        Raises:
            ValueError: If confidence is negative or greater than 1.0
        """
        if not 0.0 <= confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {confidence}")
        return confidence

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


def matchable_invoices(invoices: Iterable["Invoice"]) -> list["Invoice"]:
    """Keep invoices still waiting for payment (pending, overdue, partial)."""
    return [invoice for invoice in invoices if invoice.is_matchable]
