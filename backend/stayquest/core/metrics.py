"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reconciliation metrics
reconcile_attempts = Counter(
    'reconcile_attempts_total',
    'Booking reconciliation attempts',
    ['outcome']  # created, existing, conflict, payment_incomplete, missing_metadata, error
)

reconcile_latency = Histogram(
    'reconcile_latency_seconds',
    'Booking reconciliation latency',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Checkout metrics
checkout_sessions = Counter(
    'checkout_sessions_total',
    'Checkout session operations',
    ['operation', 'result']  # create/retrieve, success/error
)

# Places metrics
places_requests = Counter(
    'places_requests_total',
    'Places provider requests',
    ['endpoint', 'result']  # nearby/details, success/error
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )

# Convenience functions for instrumentation
def record_reconcile(outcome: str):
    """Record reconciliation outcome."""
    reconcile_attempts.labels(outcome=outcome).inc()

def record_checkout(operation: str, success: bool):
    result = "success" if success else "error"
    checkout_sessions.labels(operation=operation, result=result).inc()

def record_places_request(endpoint: str, success: bool):
    result = "success" if success else "error"
    places_requests.labels(endpoint=endpoint, result=result).inc()

def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
