"""Prometheus metrics instrumentation for the reconciliation engine.

Provides metrics for monitoring reconciliation volume, outcome mix and
performance.
"""

import os

from prometheus_client import Counter, Histogram, start_http_server

from ..utils.logging import get_logger

logger = get_logger(__name__)

# ============================================================================
# Metric Definitions
# ============================================================================

# Counter: Reconciliation runs
reconciliation_runs_total = Counter(
    "openfaktura_reconciliation_runs_total",
    "Total number of reconciliation runs",
    ["status"],  # labels: success/rejected
)

# Counter: Outcomes produced
matches_produced_total = Counter(
    "openfaktura_matches_produced_total",
    "Total number of match outcomes produced",
    ["kind"],  # labels: auto/suggestion/group
)

# Counter: Rejected inputs
rejected_inputs_total = Counter(
    "openfaktura_rejected_inputs_total",
    "Reconciliation runs rejected before matching",
    ["reason"],  # labels: validation/limit
)

# Histogram: Confidence scores
matching_confidence_scores = Histogram(
    "openfaktura_matching_confidence_scores",
    "Distribution of matching confidence scores",
    ["kind"],
    buckets=(0.0, 0.35, 0.5, 0.6, 0.7, 0.75, 0.8, 0.85, 0.9, 0.95, 1.0),
)

# Histogram: Run duration
reconciliation_duration_seconds = Histogram(
    "openfaktura_reconciliation_duration_seconds",
    "Time taken by one reconciliation run",
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0),
)


# ============================================================================
# Helper Functions
# ============================================================================


def record_reconciliation(
    status: str,
    duration_seconds: float | None = None,
    auto_confidences: list[float] | None = None,
    suggestion_confidences: list[float] | None = None,
    group_confidences: list[float] | None = None,
) -> None:
    """Record a finished (or rejected) reconciliation run.

    Args:
        status: "success" or "rejected"
        duration_seconds: Wall time of the run
        auto_confidences: Confidence of every auto-match
        suggestion_confidences: Confidence of every single-pair suggestion
        group_confidences: Confidence of every group suggestion
    """
    reconciliation_runs_total.labels(status=status).inc()
    if duration_seconds is not None:
        reconciliation_duration_seconds.observe(duration_seconds)

    for kind, confidences in (
        ("auto", auto_confidences),
        ("suggestion", suggestion_confidences),
        ("group", group_confidences),
    ):
        if not confidences:
            continue
        matches_produced_total.labels(kind=kind).inc(len(confidences))
        for confidence in confidences:
            matching_confidence_scores.labels(kind=kind).observe(confidence)


def record_rejected_input(reason: str) -> None:
    """Record a run rejected by input validation ("validation" or "limit")."""
    rejected_inputs_total.labels(reason=reason).inc()


# ============================================================================
# Metrics Server
# ============================================================================


def start_metrics_server(port: int = 8000) -> None:
    """Start Prometheus metrics HTTP server when PROMETHEUS_ENABLED=true.

    Args:
        port: Port to expose metrics on (default: 8000)
    """
    if os.getenv("PROMETHEUS_ENABLED", "false").lower() == "true":
        try:
            start_http_server(port)
            logger.info("metrics_server_started", port=port)
        except OSError as e:
            # Port already in use, skip
            logger.warning("metrics_server_not_started", port=port, error=str(e))
