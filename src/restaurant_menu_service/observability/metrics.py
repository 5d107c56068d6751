"""Custom metrics for the restaurant menu service."""

from opentelemetry import metrics

meter = metrics.get_meter("menu-svc")

cache_lookup_counter = meter.create_counter(
    name="cache_lookup_total",
    description="Response cache lookups by key namespace and result (hit/miss)",
    unit="1",
)

cache_invalidation_counter = meter.create_counter(
    name="cache_keys_invalidated_total",
    description="Cache keys deleted by pattern invalidation",
    unit="1",
)

catalog_pages_counter = meter.create_counter(
    name="catalog_pages_fetched_total",
    description="Pages fetched from the Square catalog search endpoint",
    unit="1",
)

upstream_request_duration = meter.create_histogram(
    name="upstream_request_duration_seconds",
    description="Duration of Square API calls",
    unit="s",
)


def record_cache_lookup(key: str, hit: bool) -> None:
    """Record a cache lookup.

    Args:
        key: The cache key; only its namespace (text before ':') is recorded
        hit: Whether the key was present
    """
    namespace = key.split(":", 1)[0]
    cache_lookup_counter.add(1, {"namespace": namespace, "result": "hit" if hit else "miss"})


def record_cache_invalidation(pattern: str, count: int) -> None:
    """Record keys removed by a pattern invalidation.

    Args:
        pattern: The glob pattern used
        count: Number of keys deleted
    """
    cache_invalidation_counter.add(count, {"pattern": pattern})


def record_catalog_page() -> None:
    """Record one fetched catalog search page."""
    catalog_pages_counter.add(1)


def record_upstream_request(method: str, path: str, status: int, duration_seconds: float) -> None:
    """Record a Square API call.

    Args:
        method: HTTP method
        path: API path (e.g. "/catalog/search")
        status: HTTP status, or 0 when the request never completed
        duration_seconds: Duration in seconds
    """
    upstream_request_duration.record(
        duration_seconds, {"method": method, "path": path, "status": status}
    )
