"""Prometheus metrics for allocation and redirect resolution."""

from prometheus_client import Counter, Histogram

__all__ = [
    "ALLOCATION_COLLISIONS_TOTAL",
    "ALLOCATION_DURATION",
    "ALLOCATION_FALLBACKS_TOTAL",
    "ALLOCATION_REQUESTS_TOTAL",
    "REDIRECT_RESOLUTIONS_TOTAL",
    "USAGE_INCREMENT_FAILURES_TOTAL",
]

ALLOCATION_REQUESTS_TOTAL = Counter(
    "shortlinks_allocation_requests_total",
    "Total short code allocations by outcome",
    ["status"],
)
ALLOCATION_COLLISIONS_TOTAL = Counter(
    "shortlinks_allocation_collisions_total",
    "Generated candidates rejected because the code already existed",
)
ALLOCATION_FALLBACKS_TOTAL = Counter(
    "shortlinks_allocation_fallbacks_total",
    "Allocations that exhausted the random loop and tried a fallback code",
)
ALLOCATION_DURATION = Histogram(
    "shortlinks_allocation_duration_seconds",
    "Time taken to allocate a short code",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

REDIRECT_RESOLUTIONS_TOTAL = Counter(
    "shortlinks_redirect_resolutions_total",
    "Total redirect resolutions by terminal state",
    ["state"],
)
USAGE_INCREMENT_FAILURES_TOTAL = Counter(
    "shortlinks_usage_increment_failures_total",
    "Usage increments that failed or found no record",
    ["reason"],
)
