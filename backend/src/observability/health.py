"""Health check utilities.

Provides health and readiness checks for monitoring infrastructure components.
"""

import time
from enum import Enum
from typing import Dict, Optional, TYPE_CHECKING
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.orm import Session
import redis

from config import settings
from .logging_config import get_logger

if TYPE_CHECKING:
    from tenants.cache import TenantCache

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status enum."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    """Check database connectivity and health.

    Args:
        db: Database session

    Returns:
        ComponentHealth: Database health status
    """
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Database error: {str(e)}"
        )


def check_redis_health() -> ComponentHealth:
    """Check Redis connectivity.

    Redis only backs login rate limiting, which degrades to a no-op without
    it, so an unreachable Redis reports DEGRADED rather than UNHEALTHY.

    Returns:
        ComponentHealth: Redis health status
    """
    try:
        client = redis.from_url(settings.REDIS_URL, decode_responses=True, socket_connect_timeout=1)

        start = time.time()
        client.ping()
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Redis connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except redis.RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            message=f"Redis unavailable: {str(e)}"
        )


def check_tenant_cache_health(cache: "TenantCache") -> ComponentHealth:
    """Report tenant cache occupancy.

    The cache is in-process, so it is always reachable; it is DEGRADED when
    it has filled up and started dropping entries.
    """
    stats = cache.stats()
    message = f"{stats['entries']} entries, hit rate {stats['hit_rate'] * 100:.1f}%"
    if stats["entries"] >= stats["max_entries"]:
        return ComponentHealth(status=HealthStatus.DEGRADED, message=f"Cache full: {message}")
    return ComponentHealth(status=HealthStatus.HEALTHY, message=message)


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Determine overall health from component statuses.

    Args:
        components: Dictionary of component health statuses

    Returns:
        HealthStatus: Overall system health
    """
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY

    if any(c.status == HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY

    return HealthStatus.DEGRADED
