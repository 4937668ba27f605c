"""Matching engine configuration.

Pydantic-based settings for thresholds, field weights, input limits and group
matching. Every value can be overridden with an environment variable.

Environment Variables:
- OPENFAKTURA_MATCHING_HIGH_THRESHOLD: Auto-match threshold (default: 0.85)
- OPENFAKTURA_MATCHING_MEDIUM_THRESHOLD: Suggestion threshold (default: 0.35)
- OPENFAKTURA_MATCHING_WEIGHT_*: Field weights, must sum to 1.0
- OPENFAKTURA_MATCHING_MAX_INVOICES / MAX_PAYMENTS / MAX_TOTAL_RECORDS
- OPENFAKTURA_MATCHING_MAX_COMPARISONS: Cap on invoice x payment pairs (default: 400000)
- OPENFAKTURA_MATCHING_MAX_CURRENCIES: Distinct currencies per run (default: 10)
- OPENFAKTURA_MATCHING_MAX_GROUP_CANDIDATES: Invoices per subset search (default: 12)
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from openfaktura.utils.logging import get_logger

logger = get_logger(__name__)

WEIGHT_SUM_TOLERANCE = 1e-6


class MatchingSettings(BaseSettings):
    """Reconciliation engine configuration.

    Example:
        >>> settings = MatchingSettings()
        >>> settings.high_threshold
        0.85
        >>> # Override via environment
        >>> os.environ["OPENFAKTURA_MATCHING_MAX_COMPARISONS"] = "1000"
        >>> reload_settings().max_comparisons
        1000
    """

    model_config = SettingsConfigDict(
        env_prefix="OPENFAKTURA_MATCHING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Classification thresholds
    high_threshold: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Confidence at or above which a pair is auto-matched",
    )
    medium_threshold: float = Field(
        default=0.35,
        ge=0.0,
        le=1.0,
        description="Confidence at or above which a pair is suggested for review",
    )

    # Field weights
    weight_amount: float = Field(default=0.30, ge=0.0, le=1.0)
    weight_invoice_number: float = Field(default=0.35, ge=0.0, le=1.0)
    weight_name: float = Field(default=0.15, ge=0.0, le=1.0)
    weight_nip: float = Field(default=0.10, ge=0.0, le=1.0)
    weight_date: float = Field(default=0.10, ge=0.0, le=1.0)

    # Input limits
    max_invoices: int = Field(default=2500, ge=1, description="Invoices accepted per run")
    max_payments: int = Field(default=2500, ge=1, description="Payments accepted per run")
    max_total_records: int = Field(
        default=5000, ge=1, description="Invoices plus payments accepted per run"
    )
    max_comparisons: int = Field(
        default=400_000, ge=1, description="Invoice x payment pairs scored per run"
    )
    max_currencies: int = Field(
        default=10, ge=1, description="Distinct currencies across one run's inputs"
    )

    # Group matching
    max_group_candidates: int = Field(
        default=12,
        ge=2,
        le=20,
        description="Invoices considered in one counterparty subset search",
    )
    group_name_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Company name score for an invoice to share the payment's counterparty",
    )

    @model_validator(mode="after")
    def _check_consistency(self) -> "MatchingSettings":
        if self.medium_threshold >= self.high_threshold:
            raise ValueError(
                f"medium_threshold ({self.medium_threshold}) must be below "
                f"high_threshold ({self.high_threshold})"
            )

        total = (
            self.weight_amount
            + self.weight_invoice_number
            + self.weight_name
            + self.weight_nip
            + self.weight_date
        )
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"Field weights must sum to 1.0, got {total}")

        if self.max_total_records < max(self.max_invoices, self.max_payments):
            logger.warning(
                "matching_limits_inconsistent",
                max_total_records=self.max_total_records,
                max_invoices=self.max_invoices,
                max_payments=self.max_payments,
            )
        return self


_settings: MatchingSettings | None = None


def get_settings() -> MatchingSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = MatchingSettings()
    return _settings


def reload_settings() -> MatchingSettings:
    """Re-read settings from the environment."""
    global _settings
    _settings = MatchingSettings()
    return _settings
