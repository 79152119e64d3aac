"""Prometheus metrics definitions for s3signer.

Custom metrics use the ``s3signer_`` prefix.  HTTP-level metrics (request
count, duration, sizes) come from ``prometheus-fastapi-instrumentator``;
this module only adds the sign outcome counter.
"""

from __future__ import annotations

from prometheus_client import Counter

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# Sign outcomes (labels: outcome, category)
sign_requests_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics.

    Safe to call more than once; collectors are registered in the global
    registry only on the first call.  When metrics are disabled the
    module-level references stay ``None``.
    """
    global _initialized, sign_requests_total

    if _initialized:
        return

    sign_requests_total = Counter(
        "s3signer_sign_requests_total",
        "Total sign requests by outcome and error category",
        ["outcome", "category"],
    )

    _initialized = True


def record_outcome(outcome: str, category: str = "none") -> None:
    """Increment the sign outcome counter if metrics are enabled."""
    if sign_requests_total is not None:
        sign_requests_total.labels(outcome=outcome, category=category).inc()
