"""Tenant resolution: hostname validation, lookup and caching.

Provides:
- validation: pure host / subdomain / custom domain checks
- TenantCache: bounded TTL cache of resolved tenants
- TenantResolver: host -> TenantContext via subdomain or custom domain
- TenantResolutionMiddleware: per-request resolution into request.state
"""

from .cache import TenantCache
from .resolver import InvalidHostError, TenantContext, TenantResolver, build_resolver
from .middleware import TenantResolutionMiddleware
from .dependencies import get_current_tenant, require_tenant

__all__ = [
    "TenantCache",
    "TenantContext",
    "TenantResolver",
    "InvalidHostError",
    "build_resolver",
    "TenantResolutionMiddleware",
    "get_current_tenant",
    "require_tenant",
]
