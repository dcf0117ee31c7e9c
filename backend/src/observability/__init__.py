"""Observability module for the Ordira backend.

Provides structured logging, metrics, and health checks.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    tenant_cache_lookups_total,
    tenant_cache_entries,
    tenant_resolutions_total,
    tenant_lookup_duration_seconds,
    domain_verifications_total,
)
from .request_id import (
    request_id_var,
    business_id_var,
    get_request_id,
    set_request_id,
    generate_request_id,
    get_business_id,
    set_business_id,
)
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "tenant_cache_lookups_total",
    "tenant_cache_entries",
    "tenant_resolutions_total",
    "tenant_lookup_duration_seconds",
    "domain_verifications_total",
    # Request context
    "request_id_var",
    "business_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    "get_business_id",
    "set_business_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "RequestIDMiddleware",
]
