"""Business logic services for invoice/payment reconciliation.

Service Layer Pattern implementation following DDD and Hexagonal Architecture.
"""

__all__ = ["ReconciliationService"]

from .reconciliation_service import ReconciliationService
