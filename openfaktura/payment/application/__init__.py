"""Application layer for invoice/payment reconciliation."""
