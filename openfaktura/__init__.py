"""OpenFaktura - invoice and bank payment reconciliation for small businesses."""

__version__ = "0.1.0"
__author__ = "OpenFaktura contributors"

__all__ = ["__version__"]
