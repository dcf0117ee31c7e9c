"""Prometheus metrics for the tenant resolution layer.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram, Gauge

# Tenant cache metrics
tenant_cache_lookups_total = Counter(
    "ordira_tenant_cache_lookups_total",
    "Tenant cache lookups",
    ["lookup_type", "result"]  # result: hit|miss|expired
)

tenant_cache_entries = Gauge(
    "ordira_tenant_cache_entries",
    "Number of entries currently held in the tenant cache"
)

# Resolution metrics
tenant_resolutions_total = Counter(
    "ordira_tenant_resolutions_total",
    "Host to tenant resolutions",
    ["lookup_type", "outcome"]  # outcome: resolved|not_found|invalid|platform
)

tenant_lookup_duration_seconds = Histogram(
    "ordira_tenant_lookup_duration_seconds",
    "Database lookup time for tenant resolution cache misses",
    ["lookup_type"],
    buckets=[0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Custom domain metrics
domain_verifications_total = Counter(
    "ordira_domain_verifications_total",
    "Custom domain ownership verification attempts",
    ["result"]  # result: verified|pending|error
)
