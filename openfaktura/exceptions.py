"""Standardized exception hierarchy for OpenFaktura.

All exceptions carry a human-readable message plus structured context so they
can be logged as key-value pairs.

Usage:
    from openfaktura.exceptions import InputLimitError, ValidationError

    try:
        service.run(invoices, payments)
    except InputLimitError as e:
        logger.error("reconciliation_rejected", error=str(e), context=e.context)
"""

from __future__ import annotations

from typing import Any


class OpenFakturaError(Exception):
    """Base exception for all OpenFaktura errors.

    Attributes:
        message: Human-readable error message
        context: Additional context for debugging (dict)
        original_error: Original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """Format exception with context for logging."""
        base = self.message
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({ctx_str})"
        if self.original_error:
            base = f"{base} [caused by: {type(self.original_error).__name__}]"
        return base

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


# =============================================================================
# Validation & Input Errors
# =============================================================================


class ValidationError(OpenFakturaError):
    """Raised when an invoice or payment record is unusable for matching.

    Examples: non-positive invoice amount, empty or duplicate identifier,
    missing currency.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Error description
            field: Name of the invalid field
            value: The invalid value (truncated in context)
            constraint: Validation constraint that was violated
            **kwargs: Additional context
        """
        context = kwargs.get("context", {})
        if field:
            context["field"] = field
        if value is not None:
            context["value"] = str(value)[:100]
        if constraint:
            context["constraint"] = constraint
        kwargs["context"] = context
        super().__init__(message, **kwargs)


class InputLimitError(ValidationError):
    """Raised when inputs exceed a configured size, comparison or currency cap."""

    def __init__(
        self,
        message: str,
        *,
        limit_name: str,
        limit: int,
        actual: int,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        context["limit_name"] = limit_name
        context["limit"] = limit
        context["actual"] = actual
        kwargs["context"] = context
        super().__init__(message, constraint=f"{limit_name}<={limit}", **kwargs)
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual


class ConfigurationError(OpenFakturaError):
    """Raised when matching configuration is invalid.

    Used for weights that do not sum to 1.0, inverted thresholds and similar
    setting errors.
    """

    def __init__(
        self,
        message: str,
        *,
        setting: str | None = None,
        expected: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if setting:
            context["setting"] = setting
        if expected:
            context["expected"] = expected
        kwargs["context"] = context
        super().__init__(message, **kwargs)


__all__ = [
    "OpenFakturaError",
    "ValidationError",
    "InputLimitError",
    "ConfigurationError",
]
