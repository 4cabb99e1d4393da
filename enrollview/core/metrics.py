"""Prometheus metrics, defined in one place.

Modules import the metric they need and increment it at the point of
action.  HTTP metrics are labelled by route template
("/v1/enrollments/{enrollment_id}"), never by raw path, so enrollment ids
do not explode label cardinality.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # Detail views expand four or five levels of the course graph, so the
    # upper buckets matter more here than for plain CRUD.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

RELATION_LOOKUPS = Counter(
    "relation_lookups_total",
    "Batched id lookups issued by the relation expander",
    ["collection"],
)

ENROLLMENT_ROWS_SKIPPED = Counter(
    "enrollment_rows_skipped_total",
    "Enrollment rows dropped from a list page",
    ["reason"],  # "dangling_course" or "aggregation_error"
)

AGGREGATION_FAILURES = Counter(
    "aggregation_failures_total",
    "Read operations that fell back to an empty result",
    ["operation"],  # "list" or "detail"
)
